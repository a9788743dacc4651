"""
tests/conftest.py -- Shared test fixtures for the boilerplate integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for auth + records
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient for JSON API integration tests
  - web_client: TestClient with follow_redirects=False for web route tests
  - sign_up(): helper that creates an account over the API and returns its token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The environment must be set before any core/auth import: get_settings() is
cached on first call and refuses to start without DEPLOYMENT_ID and SITE_URL.
SITE_URL points at "testserver" so TrustedHostMiddleware accepts TestClient
requests.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DEPLOYMENT_ID", "test-deployment")
os.environ.setdefault("SITE_URL", "http://testserver")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import init_state
from asgi import app
from auth.store import UserStore
from records.store import RecordStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, RecordStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'web').
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    records_url = f"sqlite:///file:test_records_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=auth_url), RecordStore(db_url=records_url)


def _patch_lifespan(user_store: UserStore, records: RecordStore):
    """Return an async context manager that replaces the real lifespan.

    Uses the same init_state() as production so the lifecycle hooks are wired
    exactly as they are in a running server.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, user_store, records)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


def sign_up(client: TestClient, name: str = "Test User", email: str | None = None, password: str = "password123"):
    """Create an account over the API and return (token, body).

    The cookie the server sets is dropped so later requests authenticate only
    with the Bearer header the test chooses to send.
    """
    resp = client.post(
        "/api/v1/auth/sign-up",
        json={"name": name, "email": email or unique_email(), "password": password},
    )
    assert resp.status_code == 201, resp.text
    client.cookies.clear()
    body = resp.json()
    return body["access_token"], body


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, UserStore, RecordStore], None, None]:
    """Yield (client, user_store, records) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores.
    """
    user_store, records = _make_test_stores(f"api_{uuid.uuid4().hex[:8]}")
    app.router.lifespan_context = _patch_lifespan(user_store, records)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store, records

    user_store.close()
    records.close()


@pytest.fixture(scope="module")
def web_client() -> Generator[tuple[TestClient, UserStore, RecordStore], None, None]:
    """Yield (client, user_store, records) for web route integration tests.

    follow_redirects=False is essential for web route tests: we assert on
    redirect *locations* (e.g. 302 to /), which are invisible once the client
    follows the redirect and returns the final 200 response.
    """
    user_store, records = _make_test_stores(f"web_{uuid.uuid4().hex[:8]}")
    app.router.lifespan_context = _patch_lifespan(user_store, records)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, user_store, records

    user_store.close()
    records.close()
