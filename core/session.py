"""
Auth Session

Holds the bearer token and the signed-in user for one application run.
Created explicitly and handed to whatever needs it; nothing here is global.
"""
import logging
from typing import Any, Optional, Tuple

from models import User
from utils.api import DreamLiftClient, APIError, AuthExpiredError, PermissionDeniedError

logger = logging.getLogger(__name__)


def extract_auth_payload(body: Any) -> Tuple[Optional[dict], Optional[str]]:
    """Pull (user, token) out of an auth response body.

    Current servers nest both under `data`; older ones put them at the top
    level. Only this function knows about the older layout.
    """
    if not isinstance(body, dict):
        return None, None

    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    user, token = data.get("user"), data.get("token")
    if user is None and token is None and ("user" in body or "token" in body):
        logger.debug("Auth response uses legacy top-level layout")
        user, token = body.get("user"), body.get("token")
    return user, token


class AuthSession:
    def __init__(self, client: DreamLiftClient, event_bus=None, token: str = None):
        self.client = client
        self.event_bus = event_bus
        self.user: Optional[User] = None
        if token:
            client.set_token(token)
        if event_bus:
            event_bus.subscribe("auth.expired", self._on_expired)

    @property
    def token(self) -> Optional[str]:
        return self.client.token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.client.token is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.user.is_admin

    def require_admin(self):
        if not self.is_admin:
            raise PermissionDeniedError("Access denied. Admin privileges required.", 403)

    async def login(self, email: str, password: str) -> User:
        body = await self.client.login(email, password)
        user_data, token = extract_auth_payload(body)
        if not token:
            raise AuthExpiredError("Authentication failed: No token received")
        if not user_data:
            raise APIError("Invalid response format")

        self.client.set_token(token)
        self.user = User.from_api(user_data)
        logger.info(f"Logged in as {self.user.email} ({self.user.role})")
        await self._emit("auth.login", {"user_id": self.user.id, "role": self.user.role})
        return self.user

    async def restore(self) -> Optional[User]:
        """Resolve the current user from an existing token.

        A 401 drops the token; any other failure keeps it so a later
        call can try again.
        """
        if not self.client.token:
            logger.info("No authentication token found")
            return None

        try:
            body = await self.client.get_me()
        except AuthExpiredError:
            logger.info("Stored token rejected, clearing it")
            self.client.clear_token()
            self.user = None
            return None
        except APIError as e:
            logger.warning(f"Token verification failed ({e.message}), keeping token")
            return None

        user_data, _ = extract_auth_payload(body)
        if not user_data:
            logger.error(f"Invalid user data format received: {body!r}")
            self.client.clear_token()
            return None

        self.user = User.from_api(user_data)
        logger.info(f"Session restored for {self.user.email}")
        return self.user

    async def logout(self):
        if self.client.token:
            try:
                await self.client.logout()
            except APIError as e:
                logger.warning(f"Logout request failed: {e.message}")
        self.client.clear_token()
        self.user = None
        await self._emit("auth.logout", {})

    async def _on_expired(self, data):
        if self.user:
            logger.warning("Session expired, user signed out")
        self.user = None

    async def _emit(self, event_name: str, data: dict):
        if self.event_bus:
            await self.event_bus.emit(event_name, data)
