"""
Live Channel

WebSocket connection that pushes notifications, donations and campaign
updates while a user is signed in. Frames are JSON text:
{"event": "<name>", "data": <payload>}.
"""
import asyncio
import logging
from typing import Any, Optional

import aiohttp
import orjson

import config
from models import Notification

logger = logging.getLogger(__name__)

# server event -> event bus name
FORWARDED_EVENTS = {
    "new-donation": "donation.new",
    "campaign-update": "campaign.updated",
}


class LiveChannel:
    def __init__(
        self,
        client,
        session,
        notifications=None,
        event_bus=None,
        url: str = None,
        reconnect_attempts: int = None,
        reconnect_delay: float = None,
    ):
        self.client = client
        self.session = session
        self.notifications = notifications
        self.event_bus = event_bus
        self.url = url or config.SOCKET_URL
        self.reconnect_attempts = config.SOCKET_RECONNECT_ATTEMPTS if reconnect_attempts is None else reconnect_attempts
        self.reconnect_delay = config.SOCKET_RECONNECT_DELAY if reconnect_delay is None else reconnect_delay
        self.connected = False
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    async def start(self) -> bool:
        """Connect in the background. Only signed-in users get a channel."""
        if not self.session.is_authenticated:
            logger.info("Live channel not started: no authenticated user")
            return False
        if self._task and not self._task.done():
            return True
        self._stopping = False
        await self.client.start()
        self._task = asyncio.create_task(self._run())
        return True

    async def stop(self):
        self._stopping = True
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._set_connected(False)

    async def wait(self):
        """Block until the channel gives up or is stopped."""
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    # === Outgoing ===

    async def send(self, event: str, data: Any = None) -> bool:
        if self._ws is None or self._ws.closed:
            logger.warning(f"Live channel not connected, dropping '{event}'")
            return False
        await self._ws.send_str(orjson.dumps({"event": event, "data": data}).decode())
        return True

    async def join_campaign(self, campaign_id: str) -> bool:
        return await self.send("join-campaign", campaign_id)

    async def leave_campaign(self, campaign_id: str) -> bool:
        return await self.send("leave-campaign", campaign_id)

    # === Connection loop ===

    async def _run(self):
        failures = 0
        while not self._stopping:
            try:
                await self._connect_once()
                failures = 0
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                failures += 1
                logger.warning(f"Live channel connection error ({failures}/{self.reconnect_attempts}): {e}")
                if failures > self.reconnect_attempts:
                    logger.error("Live channel giving up after repeated failures")
                    break
            if self._stopping:
                break
            await asyncio.sleep(self.reconnect_delay)

    async def _connect_once(self):
        headers = {}
        if self.client.token:
            headers["Authorization"] = f"Bearer {self.client.token}"

        async with self.client.session.ws_connect(self.url, headers=headers, heartbeat=30) as ws:
            self._ws = ws
            await self._set_connected(True)
            if self.session.user:
                await self.send("join-user", self.session.user.id)
            try:
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        await self._dispatch(msg.data)
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.error(f"Live channel error: {ws.exception()}")
                        break
            finally:
                self._ws = None
                await self._set_connected(False)

    async def _dispatch(self, raw: str):
        try:
            message = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning(f"Ignoring malformed live frame: {raw[:100]!r}")
            return
        if not isinstance(message, dict):
            return

        event, data = message.get("event"), message.get("data")
        if event == "new-notification":
            if self.notifications is not None and isinstance(data, dict):
                await self.notifications.add(Notification.from_api(data))
        elif event in FORWARDED_EVENTS:
            if self.event_bus:
                await self.event_bus.emit(FORWARDED_EVENTS[event], data if isinstance(data, dict) else {"data": data})
        else:
            logger.debug(f"Unhandled live event: {event}")

    async def _set_connected(self, connected: bool):
        if connected == self.connected:
            return
        self.connected = connected
        logger.info(f"Live channel {'connected' if connected else 'disconnected'}")
        if self.event_bus:
            await self.event_bus.emit("socket.connected" if connected else "socket.disconnected", {})
