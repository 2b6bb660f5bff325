"""
DreamLift Admin Client - Core

Application-wide plumbing: the event bus and the auth session.
"""

from .event_bus import EventBus
from .session import AuthSession, extract_auth_payload

__all__ = [
    "EventBus",
    "AuthSession",
    "extract_auth_payload",
]
