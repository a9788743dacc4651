"""
tests/test_client_e2e.py -- The client SDK against the real app, in process.

httpx.ASGITransport runs the FastAPI app without a socket. ASGITransport does
not run the lifespan, so the stores are wired with init_state() directly.
"""

from __future__ import annotations

import uuid

import httpx
import pytest
import pytest_asyncio

from api.main import init_state
from asgi import app
from auth.store import UserStore
from client.coordinator import SessionStateCoordinator
from client.forms import SignInForm, SignUpForm
from client.http import SessionStoreClient, SessionStoreError
from client.storage import TokenStorage
from core.models import SessionState
from records.store import RecordStore


@pytest.fixture
def stores():
    suffix = uuid.uuid4().hex[:8]
    user_store = UserStore(f"sqlite:///file:e2e_auth_{suffix}?mode=memory&cache=shared&uri=true")
    records = RecordStore(f"sqlite:///file:e2e_records_{suffix}?mode=memory&cache=shared&uri=true")
    init_state(app, user_store, records)
    yield user_store, records
    user_store.close()
    records.close()


@pytest_asyncio.fixture
async def api(stores):
    client = SessionStoreClient("http://testserver", transport=httpx.ASGITransport(app=app))
    yield client
    await client.aclose()


@pytest.mark.asyncio
async def test_sign_up_flow_end_to_end(api, stores):
    _users, records = stores
    coordinator = SessionStateCoordinator(api, TokenStorage())
    assert await coordinator.mount() is SessionState.unauthenticated

    form = SignUpForm(coordinator, "Ada", "ada@example.com", "password123")
    assert await form.submit() is True
    assert coordinator.state is SessionState.authenticated

    token = coordinator.storage.get()
    me = await api.get_current_user_preferences(token)
    assert me["user"]["id"] == coordinator.identity.id
    assert me["preferences"] == {"theme": "system", "notifications": True, "language": "en"}
    assert records.count_preferences(coordinator.identity.id) == 1


@pytest.mark.asyncio
async def test_short_password_creates_nothing(api, stores):
    users, _records = stores
    coordinator = SessionStateCoordinator(api, TokenStorage())
    form = SignUpForm(coordinator, "Ada", "short@example.com", "1234567")
    assert await form.submit() is False
    assert form.error == "Password must be at least 8 characters long"
    assert users.get_by_email("short@example.com") is None


@pytest.mark.asyncio
async def test_sign_out_then_reload_stays_signed_out(api):
    storage = TokenStorage()
    coordinator = SessionStateCoordinator(api, storage)
    await SignUpForm(coordinator, "Ada", "ada@example.com", "password123").submit()
    token = storage.get()

    await coordinator.sign_out()
    assert coordinator.state is SessionState.unauthenticated
    assert coordinator.identity is None
    assert await api.get_current_session(token) is None
    assert await api.get_current_user_preferences(token) is None

    reloaded = SessionStateCoordinator(api, storage)
    assert await reloaded.mount() is SessionState.unauthenticated


@pytest.mark.asyncio
async def test_reload_rederives_same_identity(api):
    storage = TokenStorage()
    first = SessionStateCoordinator(api, storage)
    await SignUpForm(first, "Ada", "ada@example.com", "password123").submit()

    reloaded = SessionStateCoordinator(api, TokenStorage(storage.get()))
    assert await reloaded.mount() is SessionState.authenticated
    assert reloaded.identity.id == first.identity.id


@pytest.mark.asyncio
async def test_unknown_email_sign_in(api):
    coordinator = SessionStateCoordinator(api, TokenStorage())
    await coordinator.mount()
    form = SignInForm(coordinator, "nobody@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Invalid email or password"
    assert coordinator.state is SessionState.unauthenticated


@pytest.mark.asyncio
async def test_records_round_trip(api):
    coordinator = SessionStateCoordinator(api, TokenStorage())
    await SignUpForm(coordinator, "Ada", "ada@example.com", "password123").submit()
    token = coordinator.storage.get()

    prefs = await api.update_user_preferences(token, theme="dark")
    assert prefs["theme"] == "dark"

    task = await api.create_task(token, "ship it")
    toggled = await api.toggle_task(token, task["id"])
    assert toggled["is_completed"] is True
    assert [t["id"] for t in await api.get_user_tasks(token)] == [task["id"]]
    await api.delete_task(token, task["id"])
    assert await api.get_user_tasks(token) == []

    await api.delete_account(token)
    assert await api.get_current_user_preferences(token) is None
    assert await api.get_current_session(token) is None


@pytest.mark.asyncio
async def test_signed_out_write_raises_client_error(api):
    with pytest.raises(SessionStoreError) as exc:
        await api.update_user_preferences(None, theme="dark")
    assert exc.value.status_code == 401
    assert exc.value.message == "Not authenticated"


@pytest.mark.asyncio
async def test_unreachable_server_is_service_unavailable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = SessionStoreClient("http://testserver", transport=httpx.MockTransport(refuse))
    coordinator = SessionStateCoordinator(client, TokenStorage("some-token"))
    assert await coordinator.mount() is SessionState.unauthenticated
    # No definitive answer from the server: the stored token is kept.
    assert coordinator.storage.get() == "some-token"
    form = SignInForm(coordinator, "ada@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Something went wrong. Please try again."
    await client.aclose()


@pytest.mark.asyncio
async def test_malformed_session_reply_degrades_to_signed_out():
    def answer(request):
        if request.url.path == "/api/v1/auth/session":
            return httpx.Response(200, json={"session": {"session_id": "abc"}})
        return httpx.Response(200, json={"access_token": "t"})

    client = SessionStoreClient("http://testserver", transport=httpx.MockTransport(answer))
    coordinator = SessionStateCoordinator(client, TokenStorage("some-token"))
    assert await coordinator.mount() is SessionState.unauthenticated
    assert coordinator.identity is None
    assert coordinator.storage.get() == "some-token"

    form = SignInForm(coordinator, "ada@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Something went wrong. Please try again."
    await client.aclose()
