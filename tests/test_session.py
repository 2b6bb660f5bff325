import pytest

from core import AuthSession, extract_auth_payload
from utils.api import AuthExpiredError, DreamLiftClient, PermissionDeniedError

ADMIN = {"_id": "a1", "name": "Site Admin", "email": "admin@dreamlift.org", "role": "admin"}


@pytest.fixture
async def client(fake_server, bus):
    api = DreamLiftClient(base_url=fake_server.base_url, event_bus=bus)
    yield api
    await api.close()


def test_extract_prefers_nested_layout():
    body = {"success": True, "data": {"user": ADMIN, "token": "new"}, "user": {"_id": "old"}, "token": "old"}
    assert extract_auth_payload(body) == (ADMIN, "new")


def test_extract_accepts_legacy_layout():
    body = {"success": True, "user": ADMIN, "token": "legacy"}
    assert extract_auth_payload(body) == (ADMIN, "legacy")


def test_extract_handles_garbage():
    assert extract_auth_payload(None) == (None, None)
    assert extract_auth_payload({"success": True, "data": None}) == (None, None)


async def test_login_sets_token_and_user(client, fake_server, bus, recorder):
    fake_server.respond("POST", "/api/auth/login", body={"success": True, "data": {"user": ADMIN, "token": "tok-1"}})
    session = AuthSession(client, bus)

    user = await session.login("admin@dreamlift.org", "secret")

    assert user.role == "admin"
    assert session.is_admin
    assert client.token == "tok-1"
    assert fake_server.requests[-1]["json"] == {"email": "admin@dreamlift.org", "password": "secret"}
    assert [name for name, _ in recorder.events] == ["auth.login"]


async def test_login_with_legacy_response(client, fake_server, bus):
    fake_server.respond("POST", "/api/auth/login", body={"success": True, "user": ADMIN, "token": "tok-legacy"})
    session = AuthSession(client, bus)

    await session.login("admin@dreamlift.org", "secret")

    assert session.token == "tok-legacy"


async def test_login_without_token_fails(client, fake_server, bus):
    fake_server.respond("POST", "/api/auth/login", body={"success": True, "data": {"user": ADMIN}})
    session = AuthSession(client, bus)
    with pytest.raises(AuthExpiredError, match="No token"):
        await session.login("admin@dreamlift.org", "secret")
    assert not session.is_authenticated


async def test_restore_resolves_user(client, fake_server, bus):
    fake_server.respond("GET", "/api/auth/me", body={"success": True, "data": {"user": ADMIN}})
    session = AuthSession(client, bus, token="stored")

    user = await session.restore()

    assert user.email == "admin@dreamlift.org"
    assert fake_server.requests[-1]["headers"]["Authorization"] == "Bearer stored"


async def test_restore_drops_rejected_token(client, fake_server, bus):
    fake_server.respond("GET", "/api/auth/me", status=401, body={"success": False, "message": "Token expired"})
    session = AuthSession(client, bus, token="stale")

    assert await session.restore() is None
    assert session.token is None


async def test_restore_keeps_token_on_server_error(client, fake_server, bus):
    fake_server.respond("GET", "/api/auth/me", status=500, body={"success": False})
    session = AuthSession(client, bus, token="stored")

    assert await session.restore() is None
    assert session.token == "stored"


async def test_restore_without_token_skips_request(client, fake_server, bus):
    session = AuthSession(client, bus)
    assert await session.restore() is None
    assert fake_server.requests == []


async def test_expiry_elsewhere_signs_user_out(client, fake_server, bus):
    fake_server.respond("GET", "/api/auth/me", body={"success": True, "data": {"user": ADMIN}})
    fake_server.respond("GET", "/api/admin/users", status=401, body={"success": False})
    session = AuthSession(client, bus, token="stored")
    await session.restore()

    with pytest.raises(AuthExpiredError):
        await client.get_users()

    assert session.user is None
    assert not session.is_authenticated


async def test_require_admin(client, fake_server, bus):
    fake_server.respond("GET", "/api/auth/me", body={"success": True, "data": {"user": dict(ADMIN, role="creator")}})
    session = AuthSession(client, bus, token="stored")
    await session.restore()

    with pytest.raises(PermissionDeniedError, match="Admin privileges required"):
        session.require_admin()


async def test_logout_clears_state(client, fake_server, bus, recorder):
    fake_server.respond("GET", "/api/auth/me", body={"success": True, "data": {"user": ADMIN}})
    fake_server.respond("POST", "/api/auth/logout", body={"success": True, "data": None})
    session = AuthSession(client, bus, token="stored")
    await session.restore()

    await session.logout()

    assert session.user is None
    assert client.token is None
    assert fake_server.requests[-1]["path"] == "/api/auth/logout"
    assert "auth.logout" in [name for name, _ in recorder.events]
