"""
Donation payments through the DreamLift API (Stripe payment intents).
"""
from .donations import DonationService

__all__ = ['DonationService']
