"""Tests for client/forms.py and client/gate.py against the in-process fake store."""

from __future__ import annotations

import pytest

from client.coordinator import SessionStateCoordinator
from client.forms import SignInForm, SignUpForm
from client.gate import GateDecision, ProtectedViewGate
from client.storage import TokenStorage
from core.models import SessionState
from fakes import FakeSessionStore, unavailable


@pytest.fixture
def server():
    return FakeSessionStore()


@pytest.fixture
def coordinator(server):
    return SessionStateCoordinator(server, TokenStorage())


# ---------------------------------------------------------------------------
# Sign-up
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sign_up_success_authenticates(server, coordinator):
    successes = []
    form = SignUpForm(coordinator, "Ada", "ada@example.com", "password123", on_success=successes.append)

    assert await form.submit() is True

    assert form.error is None
    assert form.loading is False
    assert coordinator.state is SessionState.authenticated
    assert coordinator.identity.name == "Ada"
    assert coordinator.storage.get() == successes[0].access_token


@pytest.mark.asyncio
async def test_short_password_never_reaches_server(server, coordinator):
    form = SignUpForm(coordinator, "Ada", "ada@example.com", "1234567")
    assert await form.submit() is False
    assert form.error == "Password must be at least 8 characters long"
    assert server.calls == []
    assert server.users == {}


@pytest.mark.asyncio
async def test_blank_name_never_reaches_server(server, coordinator):
    form = SignUpForm(coordinator, "  ", "ada@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Name is required"
    assert server.calls == []


@pytest.mark.asyncio
async def test_duplicate_email_shows_server_message(server, coordinator):
    await server.sign_up("Ada", "ada@example.com", "password123")
    form = SignUpForm(coordinator, "Other", "ada@example.com", "another-pass")
    assert await form.submit() is False
    assert form.error == "User already exists. Use another email."
    assert coordinator.storage.get() is None


# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sign_in_unknown_email(server, coordinator):
    await coordinator.mount()
    form = SignInForm(coordinator, "nobody@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Invalid email or password"
    assert coordinator.state is SessionState.unauthenticated


@pytest.mark.asyncio
async def test_sign_in_has_no_length_check(server, coordinator):
    form = SignInForm(coordinator, "ada@example.com", "short")
    await form.submit()
    assert server.calls == ["sign_in"]


@pytest.mark.asyncio
async def test_sign_in_transport_failure_is_generic(server, coordinator):
    server.fail = unavailable()
    form = SignInForm(coordinator, "ada@example.com", "password123")
    assert await form.submit() is False
    assert form.error == "Something went wrong. Please try again."
    assert form.loading is False


@pytest.mark.asyncio
async def test_sign_in_success(server, coordinator):
    await server.sign_up("Ada", "ada@example.com", "password123")
    form = SignInForm(coordinator, "ada@example.com", "password123")
    assert await form.submit() is True
    assert coordinator.identity.email == "ada@example.com"


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_gate_follows_coordinator(server, coordinator):
    redirects = []
    gate = ProtectedViewGate(coordinator, redirects.append)

    assert gate.decide() is GateDecision.loading
    assert gate.render(lambda user: "content", loading="spinner") == "spinner"

    await coordinator.mount()
    assert gate.decide() is GateDecision.redirect
    assert gate.render(lambda user: "content") is None
    assert redirects == ["/"]

    await SignUpForm(coordinator, "Ada", "ada@example.com", "password123").submit()
    assert gate.decide() is GateDecision.render
    assert gate.render(lambda user: f"hello {user.name}") == "hello Ada"


@pytest.mark.asyncio
async def test_gate_watch_redirects_on_sign_out(server, coordinator):
    await SignUpForm(coordinator, "Ada", "ada@example.com", "password123").submit()
    redirects = []
    gate = ProtectedViewGate(coordinator, redirects.append)
    unwatch = gate.watch()

    await coordinator.sign_out()
    unwatch()

    assert redirects == ["/"]
    assert gate.decide() is GateDecision.redirect
