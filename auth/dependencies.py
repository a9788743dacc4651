"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token carriers are checked in priority order:
  1. JWT cookie ("access_token") -- set by the web UI sign-in/sign-up flow.
  2. Authorization: Bearer <token> header -- the client SDK and API callers.

Both converge on an Identity after SessionService.get_current_session()
confirms the session row is live.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from web/, records/, or client/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.tokens import COOKIE_NAME


def get_request_token(request: Request) -> str | None:
    """Return the raw token from the cookie or the Bearer header, if any."""
    token: str | None = request.cookies.get(COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def try_get_current_identity(request: Request) -> Identity | None:
    """Resolve the caller's Identity. Never raises."""
    token = get_request_token(request)
    if token is None:
        return None
    return request.app.state.session_service.get_current_session(token)


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/tasks")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Not authenticated"},
        )
    return identity
