"""Notification inbox for the signed-in user"""
import logging
from typing import List

import config
from models import Notification
from utils.api import APIError

logger = logging.getLogger(__name__)


class NotificationCenter:
    def __init__(self, client, session=None, event_bus=None):
        self.client = client
        self.session = session
        self.event_bus = event_bus
        self.notifications: List[Notification] = []
        self.unread_count = 0
        self.loading = False
        if event_bus:
            event_bus.subscribe("auth.logout", self._on_signed_out)
            event_bus.subscribe("auth.expired", self._on_signed_out)

    def _authenticated(self) -> bool:
        return self.session is None or self.session.is_authenticated

    async def refresh(self, **params):
        """Reload the list and the unread count."""
        if not self._authenticated():
            return
        self.loading = True
        try:
            data = await self.client.get_notifications(**params)
            self.notifications = [Notification.from_api(n) for n in data.get("notifications") or []]
        except APIError as e:
            logger.error(f"Error fetching notifications: {e.message}")
            await self._emit("admin.error", {"message": "Failed to load notifications"})
        finally:
            self.loading = False
        await self.refresh_unread_count()

    async def refresh_unread_count(self):
        if not self._authenticated():
            return
        try:
            self.unread_count = await self.client.get_unread_count()
        except APIError as e:
            logger.error(f"Error fetching unread count: {e.message}")

    async def mark_read(self, notification_id: str):
        try:
            await self.client.mark_notification_read(notification_id)
        except APIError as e:
            logger.error(f"Error marking notification as read: {e.message}")
            await self._emit("admin.error", {"message": "Failed to mark notification as read"})
            raise
        now = config.get_now()
        self.notifications = [
            n.mark_read(now) if n.id == notification_id else n for n in self.notifications
        ]
        self.unread_count = max(0, self.unread_count - 1)

    async def mark_all_read(self):
        try:
            await self.client.mark_all_notifications_read()
        except APIError as e:
            logger.error(f"Error marking all notifications as read: {e.message}")
            await self._emit("admin.error", {"message": "Failed to mark all notifications as read"})
            raise
        now = config.get_now()
        self.notifications = [n.mark_read(now) for n in self.notifications]
        self.unread_count = 0
        await self._emit("admin.success", {"message": "All notifications marked as read"})

    async def add(self, notification: Notification):
        """Record a notification pushed over the live channel."""
        self.notifications.insert(0, notification)
        self.unread_count += 1
        await self._emit("notification.new", {"message": notification.message, "id": notification.id})

    async def _on_signed_out(self, data):
        self.notifications = []
        self.unread_count = 0

    async def _emit(self, event_name: str, data: dict):
        if self.event_bus:
            await self.event_bus.emit(event_name, data)
