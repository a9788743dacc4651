"""
api/routes/v1/auth.py -- Session Store REST endpoints.

Routes:
  POST   /api/v1/auth/sign-up   -- create account, start session; sets cookie
  POST   /api/v1/auth/sign-in   -- start session; sets cookie
  POST   /api/v1/auth/sign-out  -- revoke current session; clears cookie
  GET    /api/v1/auth/session   -- {"session": {...}} or {"session": null}
  DELETE /api/v1/auth/account   -- delete own account (fires deletion hook)

The token is returned in the body (for the client SDK, which sends it back as
a Bearer header) and set as an httpOnly cookie (for the browser).

Security:
  sign-up and sign-in are rate-limited per IP (AUTH_RATE_LIMIT).
  Unknown email and wrong password return the same message.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    AuthResponse,
    MessageResponse,
    SessionInfo,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserInfo,
)
from auth.dependencies import get_current_identity, get_request_token
from auth.errors import AuthError
from auth.models import Identity
from auth.service import SessionService
from auth.tokens import clear_auth_cookie, set_auth_cookie
from core.config import get_settings

_settings = get_settings()

# Auth policy:
# - POST   /api/v1/auth/sign-up:   public
# - POST   /api/v1/auth/sign-in:   public
# - POST   /api/v1/auth/sign-out:  public -- revoking nothing is a no-op
# - GET    /api/v1/auth/session:   public -- answers "who am I", null when signed out
# - DELETE /api/v1/auth/account:   requires auth (get_current_identity)
router = APIRouter()


def _token_response(identity: Identity, token: str, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            access_token=token,
            expires_in=_settings.token_expire_seconds,
            user=UserInfo.from_identity(identity),
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/sign-up", response_model=AuthResponse, status_code=201)
@limiter.limit(_settings.auth_rate_limit)
def sign_up(request: Request, body: SignUpRequest) -> JSONResponse:
    """Create an account and sign it in.

    A duplicate email is rejected with the Session Store's message; it is
    never merged into the existing account.
    """
    service: SessionService = request.app.state.session_service
    try:
        identity, token = service.sign_up(body.name, body.email, body.password)
    except AuthError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "sign_up_failed", "message": exc.message},
        ) from exc
    return _token_response(identity, token, status_code=201)


@router.post("/auth/sign-in", response_model=AuthResponse)
@limiter.limit(_settings.auth_rate_limit)
def sign_in(request: Request, body: SignInRequest) -> JSONResponse:
    service: SessionService = request.app.state.session_service
    try:
        identity, token = service.sign_in(body.email, body.password)
    except AuthError as exc:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": exc.message}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _token_response(identity, token)


@router.post("/auth/sign-out", response_model=MessageResponse)
def sign_out(request: Request) -> JSONResponse:
    """Revoke the caller's session (if any) and clear the cookie."""
    service: SessionService = request.app.state.session_service
    service.sign_out(get_request_token(request))
    resp = JSONResponse(content=MessageResponse(message="Signed out.").model_dump())
    clear_auth_cookie(resp)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/session", response_model=SessionResponse)
def get_session(request: Request) -> SessionResponse:
    service: SessionService = request.app.state.session_service
    identity = service.get_current_session(get_request_token(request))
    if identity is None:
        return SessionResponse(session=None)
    return SessionResponse(
        session=SessionInfo(user=UserInfo.from_identity(identity), session_id=identity.session_id)
    )


@router.delete("/auth/account", status_code=204)
def delete_account(request: Request, identity: Identity = Depends(get_current_identity)) -> Response:
    """Delete the caller's account, its sessions, and (via the hook) its records."""
    service: SessionService = request.app.state.session_service
    service.delete_account(identity.id)
    resp = Response(status_code=204)
    clear_auth_cookie(resp)
    return resp
