"""
Notifications: REST-backed inbox plus the live WebSocket channel that feeds it.
"""
from .center import NotificationCenter
from .live import LiveChannel

__all__ = ['NotificationCenter', 'LiveChannel']
