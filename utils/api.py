"""DreamLift REST API client"""
import aiohttp
import asyncio
import logging
import re
import time
from typing import Any, Dict, Optional

import orjson
import pydantic

import config
from utils.responses import parse_envelope, error_message

logger = logging.getLogger(__name__)


# === Errors ===

class APIError(Exception):
    """Base error for every failed DreamLift call"""

    def __init__(self, message: str, status: Optional[int] = None, errors: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors or []


class NetworkError(APIError):
    """No response received (connection refused, DNS, timeout)"""


class AuthExpiredError(APIError):
    """401 from the API; the bearer token is no longer valid"""


class PermissionDeniedError(APIError):
    pass


class NotFoundError(APIError):
    pass


class ValidationError(APIError):
    """Rejected input, either by the server (400/422) or before dispatch"""


class RateLimitedError(APIError):
    pass


class ServerError(APIError):
    pass


def _error_for_status(status: int, payload: Any) -> APIError:
    errors = []
    if isinstance(payload, dict) and payload.get("errors"):
        errors = list(parse_envelope({"success": False, "errors": payload["errors"]}).errors or [])

    if status == 403:
        return PermissionDeniedError("You do not have permission to perform this action.", status, errors)
    if status == 404:
        return NotFoundError(error_message(payload, "Resource not found."), status, errors)
    if status in (400, 422):
        return ValidationError(error_message(payload, "Validation failed.", prefer_errors=True), status, errors)
    if status == 429:
        return RateLimitedError("Too many requests. Please try again later.", status, errors)
    if status >= 500:
        return ServerError("Server error. Please try again later.", status, errors)
    return APIError(error_message(payload), status, errors)


class DreamLiftClient:
    """Async client for the DreamLift API.

    One aiohttp session per client, created lazily and shared by every call.
    The bearer token is attached to all requests while set; a 401 clears it
    and emits `auth.expired` on the event bus.
    """

    def __init__(
        self,
        base_url: str = None,
        token: str = None,
        event_bus=None,
        timeout: float = None,
        connect_timeout: float = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token = token or None
        self.event_bus = event_bus
        self._timeout = aiohttp.ClientTimeout(
            total=timeout or config.HTTP_TIMEOUT,
            connect=connect_timeout or config.HTTP_CONNECT_TIMEOUT,
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    # === Lifecycle ===

    async def start(self):
        """Initialize the HTTP session (call once at startup)."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=100, limit_per_host=20),
                timeout=self._timeout,
            )

    async def close(self):
        """Close the HTTP session (call at shutdown)."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "DreamLiftClient":
        await self.start()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _ensure_session(self):
        if self._session is None:
            async with self._session_lock:
                # Double-check after acquiring lock
                if self._session is None:
                    await self.start()

    @property
    def session(self) -> Optional[aiohttp.ClientSession]:
        return self._session

    def set_token(self, token: Optional[str]):
        self.token = token or None

    def clear_token(self):
        self.token = None

    # === Transport ===

    def url_for(self, path: str) -> str:
        # Collapse accidental double slashes in the path (never in the scheme)
        path = re.sub(r"/{2,}", "/", "/" + path.lstrip("/"))
        return f"{self.base_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] = None,
        json: Any = None,
        raw: bool = False,
        unwrap: bool = True,
    ) -> Any:
        """Perform a request and return the envelope's `data`.

        `raw` returns the response bytes untouched; `unwrap=False` returns the
        whole decoded body so callers can read fields outside `data`.
        """
        await self._ensure_session()

        headers = self._headers()
        body = None
        if json is not None:
            body = orjson.dumps(json)
            headers["Content-Type"] = "application/json"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        had_token = self.token is not None

        started = time.monotonic()
        try:
            async with self._session.request(
                method, self.url_for(path), params=query or None, data=body, headers=headers
            ) as resp:
                content = await resp.read()
                status = resp.status
        except asyncio.TimeoutError:
            logger.warning(f"{method} {path} timed out")
            raise NetworkError("Request timeout. Please check your connection.")
        except aiohttp.ClientError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError("Network error. Please check your connection.")

        logger.debug(f"API Request: {method} {path} - {(time.monotonic() - started) * 1000:.0f}ms ({status})")

        if 200 <= status < 300 and raw:
            return content

        payload = _decode(content)

        if status == 401:
            if not had_token:
                raise AuthExpiredError(error_message(payload, "Invalid credentials."), status)
            self.clear_token()
            if self.event_bus:
                await self.event_bus.emit("auth.expired", {"path": path})
            raise AuthExpiredError("Session expired. Please login again.", status)

        if not 200 <= status < 300:
            err = _error_for_status(status, payload)
            logger.warning(f"{method} {path} -> HTTP {status}: {err.message}")
            raise err

        try:
            envelope = parse_envelope(payload)
        except pydantic.ValidationError:
            logger.warning(f"{method} {path} -> malformed response envelope")
            raise APIError("An error occurred.", status)
        if not envelope.success:
            raise APIError(envelope.message or "An error occurred.", status, envelope.errors)
        return envelope.data if unwrap else payload

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    # === Auth ===

    async def login(self, email: str, password: str) -> Any:
        """POST /api/auth/login. Returns the raw body (format varies by server version)."""
        return await self.post("/api/auth/login", json={"email": email, "password": password}, unwrap=False)

    async def get_me(self) -> Any:
        return await self.get("/api/auth/me", unwrap=False)

    async def logout(self) -> Any:
        return await self.post("/api/auth/logout")

    # === Admin: campaigns ===

    async def get_pending_campaigns(self) -> Dict[str, Any]:
        return await self.get("/api/admin/campaigns/pending") or {}

    async def get_all_campaigns(self, status: str = None, search: str = None) -> Dict[str, Any]:
        return await self.get("/api/admin/campaigns", params={"status": status, "search": search}) or {}

    async def approve_campaign(self, campaign_id: str, review_notes: str) -> Dict[str, Any]:
        return await self.put(f"/api/admin/campaigns/{campaign_id}/approve", json={"reviewNotes": review_notes}) or {}

    async def reject_campaign(self, campaign_id: str, review_notes: str) -> Dict[str, Any]:
        return await self.put(f"/api/admin/campaigns/{campaign_id}/reject", json={"reviewNotes": review_notes}) or {}

    async def delete_campaign(self, campaign_id: str) -> Any:
        return await self.delete(f"/api/admin/campaigns/{campaign_id}")

    # === Admin: users ===

    async def get_users(self) -> Dict[str, Any]:
        return await self.get("/api/admin/users") or {}

    async def update_user_role(self, user_id: str, role: str) -> Dict[str, Any]:
        return await self.put(f"/api/admin/users/{user_id}/role", json={"role": role}) or {}

    async def update_user_status(self, user_id: str, is_active: bool) -> Dict[str, Any]:
        return await self.put(f"/api/admin/users/{user_id}/status", json={"isActive": is_active}) or {}

    # === Admin: analytics & reports ===

    async def get_analytics(self) -> Dict[str, Any]:
        return await self.get("/api/admin/analytics") or {}

    async def get_financial_report(self, period: str) -> bytes:
        """Download the financial report PDF for `period`."""
        return await self.request("GET", "/api/admin/reports/financial", params={"period": period}, raw=True)

    # === Notifications ===

    async def get_notifications(self, **params) -> Dict[str, Any]:
        return await self.get("/api/notifications", params=params) or {}

    async def get_unread_count(self) -> int:
        data = await self.get("/api/notifications/unread-count") or {}
        return int(data.get("count") or 0)

    async def mark_notification_read(self, notification_id: str) -> Any:
        return await self.put(f"/api/notifications/{notification_id}/read")

    async def mark_all_notifications_read(self) -> Any:
        return await self.put("/api/notifications/read-all")

    # === Donations ===

    async def create_payment_intent(
        self, amount: float, campaign_id: str, is_anonymous: bool = False, donor_email: str = None
    ) -> Dict[str, Any]:
        return await self.post("/api/payments/stripe/create-intent", json={
            "amount": amount,
            "campaignId": campaign_id,
            "isAnonymous": is_anonymous,
            "donorEmail": donor_email,
        }) or {}

    async def get_user_donations(self, **params) -> Dict[str, Any]:
        return await self.get("/api/donations/user", params=params) or {}

    async def get_campaign_donations(self, campaign_id: str, **params) -> Dict[str, Any]:
        return await self.get(f"/api/donations/campaign/{campaign_id}", params=params) or {}


def _decode(content: bytes) -> Any:
    if not content:
        return None
    try:
        return orjson.loads(content)
    except orjson.JSONDecodeError:
        return None
