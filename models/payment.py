"""
Payment Model - Stripe payment intent handed back by the DreamLift API
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ._parse import as_number


@dataclass
class PaymentIntent:
    client_secret: str
    payment_intent_id: Optional[str]
    amount: float
    campaign_id: str

    @classmethod
    def from_api(cls, data: Dict[str, Any], campaign_id: str, amount: float) -> 'PaymentIntent':
        return cls(
            client_secret=data.get('clientSecret') or '',
            payment_intent_id=data.get('paymentIntentId'),
            amount=as_number(data.get('amount', amount)),
            campaign_id=campaign_id,
        )
