"""
auth/tokens.py -- JWT, password hashing, and cookie utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user id (sub), the session id (sid), and expiry. Verification
       returns None on any failure -- the service layer turns that into
       "no session". A valid signature is necessary but not sufficient: the
       session row named by sid must also be live (see auth/service.py).

  Passwords: bcrypt directly. The _DUMMY_HASH constant enables timing
       equalization in SessionService.sign_in() so response time does not
       reveal whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses to
       start without one in production.

Layer rule: no imports from api/, web/, records/, or client/. Import from
core/ is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("boilerplate.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "access_token"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API layer caps passwords at
    255 characters; anything past byte 72 is ignored by the hash.
    """
    return bcrypt.hashpw(plain.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first sign-in attempt is not measurably
# slower than later ones. Always verify against something, even when the email
# does not exist.
_DUMMY_HASH: str = hash_password("boilerplate_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison whose result is discarded (timing equalization)."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, session_id: str, expires_at: datetime) -> str:
    """Encode a signed JWT bound to one session row.

    The token expiry matches the session row's expires_at so both lapse at
    the same instant.
    """
    payload = {
        "sub": user_id,
        "sid": session_id,
        "exp": expires_at,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected access token: %s", exc)
        return None
    if "sub" not in payload or "sid" not in payload:
        logger.debug("Rejected access token: missing sub or sid claim")
        return None
    return payload


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, max_age: int = 0) -> None:
    """Write the JWT access token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": sent on same-site navigations, not on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: defaults to Settings.token_expire_seconds so the cookie survives
        a browser restart for as long as the session row does.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=max_age if max_age > 0 else _settings.token_expire_seconds,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(COOKIE_NAME)
