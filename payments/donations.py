"""
Donation Service

Creates Stripe payment intents through the DreamLift API. Card
confirmation itself happens in Stripe's client SDK with the returned
client secret.
"""
import logging
from typing import Any, Dict, List

from models import PaymentIntent
from utils.api import APIError, ValidationError

logger = logging.getLogger(__name__)


class DonationService:
    def __init__(self, client, event_bus=None):
        self.client = client
        self.event_bus = event_bus

    async def create_payment_intent(
        self,
        amount: float,
        campaign_id: str,
        is_anonymous: bool = False,
        donor_email: str = None,
    ) -> PaymentIntent:
        if not campaign_id:
            raise ValidationError("Campaign is required")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Please enter a valid donation amount")
        if amount <= 0:
            raise ValidationError("Please enter a valid donation amount")
        if donor_email and "@" not in donor_email:
            raise ValidationError("Please enter a valid email address")

        try:
            data = await self.client.create_payment_intent(amount, campaign_id, is_anonymous, donor_email)
        except APIError as e:
            logger.error(f"Error creating payment intent for campaign {campaign_id}: {e.message}")
            if self.event_bus:
                await self.event_bus.emit("admin.error", {"message": f"Payment failed: {e.message}"})
            raise

        intent = PaymentIntent.from_api(data, campaign_id=campaign_id, amount=amount)
        if not intent.client_secret:
            raise APIError("Payment provider did not return a client secret")
        logger.info(f"Payment intent {intent.payment_intent_id} created for campaign {campaign_id}")
        return intent

    async def my_donations(self) -> Dict[str, List[Dict[str, Any]]]:
        """Donations the user made and donations received on their campaigns"""
        data = await self.client.get_user_donations()
        return {
            "made": list(data.get("made") or []),
            "received": list(data.get("received") or []),
        }

    async def campaign_donations(self, campaign_id: str) -> List[Dict[str, Any]]:
        data = await self.client.get_campaign_donations(campaign_id)
        return list(data.get("donations") or [])
