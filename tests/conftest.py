import asyncio
from typing import Any, Dict, List, Tuple

import orjson
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from admin import AdminCache, AdminPanel
from core import EventBus
from utils.api import ServerError


class Clock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def campaign_doc(cid: str, status: str = "pending", title: str = None, creator: str = "Ravi Kumar") -> Dict[str, Any]:
    return {
        "_id": cid,
        "title": title or f"Campaign {cid}",
        "description": f"Help fund project {cid}",
        "targetAmount": 50000,
        "currentAmount": 1200,
        "status": status,
        "creator": {"_id": f"creator-{cid}", "name": creator, "email": "creator@example.com"},
        "createdAt": "2026-09-01T10:00:00.000Z",
        "location": {"city": "Pune", "state": "MH", "country": "India"},
        "tags": ["education"],
    }


def user_doc(uid: str, name: str, role: str = "user", active: bool = True) -> Dict[str, Any]:
    return {
        "_id": uid,
        "name": name,
        "email": f"{name.split()[0].lower()}@example.com",
        "role": role,
        "isActive": active,
        "createdAt": "2026-08-15T08:30:00.000Z",
    }


class FakeAdminAPI:
    """Stands in for DreamLiftClient in panel tests.

    Every call is recorded in `calls`. Names in `fail` raise ServerError.
    When `gate` is set, list/analytics fetches wait on it before answering.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.fail = set()
        self.gate: asyncio.Event = None
        self.pending = [campaign_doc("c1"), campaign_doc("c2"), campaign_doc("c3")]
        self.all = self.pending + [campaign_doc("c4", status="active")]
        self.users = [user_doc("u1", "Asha Verma"), user_doc("u2", "Jane Smith", role="creator")]
        self.overview = {
            "totalCampaigns": 4,
            "totalUsers": 2,
            "totalDonations": 150,
            "totalRevenue": 25000,
            "pendingCampaigns": 3,
            "activeCampaigns": 1,
        }
        self.report = b"%PDF-1.4 fake report"

    def fetch_calls(self) -> List[str]:
        return [c for c in self.calls if c.startswith("get_")]

    async def _call(self, name: str, result):
        self.calls.append(name)
        if self.gate is not None and name.startswith("get_"):
            await self.gate.wait()
        if name in self.fail:
            raise ServerError("Server error. Please try again later.", 500)
        return result

    async def get_pending_campaigns(self):
        return await self._call("get_pending_campaigns", {"campaigns": list(self.pending)})

    async def get_all_campaigns(self, status=None, search=None):
        return await self._call("get_all_campaigns", {"campaigns": list(self.all)})

    async def get_users(self):
        return await self._call("get_users", {"users": list(self.users)})

    async def get_analytics(self):
        return await self._call("get_analytics", {"overview": dict(self.overview)})

    async def approve_campaign(self, campaign_id, review_notes):
        return await self._call("approve_campaign", {"campaign": campaign_doc(campaign_id, status="active")})

    async def reject_campaign(self, campaign_id, review_notes):
        return await self._call("reject_campaign", {"campaign": campaign_doc(campaign_id, status="rejected")})

    async def delete_campaign(self, campaign_id):
        return await self._call("delete_campaign", {"message": "Campaign deleted successfully"})

    async def update_user_role(self, user_id, role):
        return await self._call("update_user_role", {"user": {"_id": user_id, "role": role}})

    async def update_user_status(self, user_id, is_active):
        return await self._call("update_user_status", {"user": {"_id": user_id, "isActive": is_active}})

    async def get_financial_report(self, period):
        return await self._call("get_financial_report", self.report)


class EventRecorder:
    def __init__(self, bus: EventBus, *names: str):
        self.events: List[Tuple[str, dict]] = []
        for name in names:
            bus.subscribe(name, self._recorder(name))

    def _recorder(self, name):
        async def record(data):
            self.events.append((name, data))
        return record

    def messages(self, name: str) -> List[str]:
        return [data.get("message") for event, data in self.events if event == name]


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(
        bus, "admin.error", "admin.success", "admin.refreshed",
        "auth.expired", "auth.login", "auth.logout", "notification.new",
        "donation.new", "campaign.updated", "socket.connected", "socket.disconnected",
    )


@pytest.fixture
def fake_api():
    return FakeAdminAPI()


@pytest.fixture
def panel(fake_api, bus, clock):
    return AdminPanel(fake_api, event_bus=bus, cache=AdminCache(ttl=300, clock=clock))


# === Fake DreamLift HTTP server ===

class FakeServer:
    """Canned-response HTTP server. Register answers with `respond()`."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[Dict[str, Any]] = []
        self.ws_frames: List[Dict[str, Any]] = []
        self.ws_received: List[Any] = []
        self.app = web.Application()
        self.app.router.add_get("/ws", self._websocket)
        self.app.router.add_route("*", "/{tail:.*}", self._handle)
        self.server = TestServer(self.app)

    def respond(self, method: str, path: str, status: int = 200, body: Any = None):
        self.routes[(method, path)] = (status, body)

    @property
    def base_url(self) -> str:
        return str(self.server.make_url("/")).rstrip("/")

    @property
    def ws_url(self) -> str:
        return str(self.server.make_url("/ws"))

    async def _handle(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "json": orjson.loads(raw) if raw else None,
        })
        status, body = self.routes.get(
            (request.method, request.path),
            (404, {"success": False, "message": "Route not found"}),
        )
        if isinstance(body, bytes):
            return web.Response(status=status, body=body, content_type="application/pdf")
        return web.json_response(body, status=status)

    async def _websocket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.requests.append({"method": "WS", "path": request.path, "headers": dict(request.headers)})
        first = await ws.receive()
        self.ws_received.append(orjson.loads(first.data))
        for frame in self.ws_frames:
            await ws.send_str(orjson.dumps(frame).decode())
        await ws.close()
        return ws


@pytest.fixture
async def fake_server():
    server = FakeServer()
    await server.server.start_server()
    yield server
    await server.server.close()
