"""
Data Models - Typed dataclasses for DreamLift entities
"""
from .campaign import Campaign
from .user import User
from .analytics import AnalyticsSnapshot
from .notification import Notification
from .payment import PaymentIntent

__all__ = ['Campaign', 'User', 'AnalyticsSnapshot', 'Notification', 'PaymentIntent']
