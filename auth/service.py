"""
auth/service.py -- The Session Store's four operations plus account deletion.

    sign_up(name, email, password)  -> (Identity, token)   | AuthError
    sign_in(email, password)        -> (Identity, token)   | AuthError
    sign_out(token)                 -> None
    get_current_session(token)      -> Identity | None
    delete_account(user_id)         -> bool

Errors are opaque, human-readable strings (AuthError.message). Callers render
them verbatim; there are no codes to translate.

Sign-in runs bcrypt whether or not the email exists so response time does not
reveal which addresses are registered, and it returns the same message for an
unknown email and a wrong password.

Layer rule: no imports from api/, web/, records/, or client/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from auth.errors import AuthError
from auth.hooks import LifecycleHooks
from auth.models import Identity, Session, User
from auth.store import UserStore
from auth.tokens import (
    burn_password_check,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger("boilerplate.auth.service")

_BAD_CREDENTIALS = "Invalid email or password"
_EMAIL_TAKEN = "User already exists. Use another email."


class SessionService:
    """Issues and validates sessions on top of a UserStore.

    Password policy (minimum length, non-empty name) is enforced by the forms
    that call this service, not here: the store accepts whatever it is given
    apart from an empty email or password.
    """

    def __init__(self, store: UserStore, hooks: LifecycleHooks, token_expire_seconds: int) -> None:
        self.store = store
        self.hooks = hooks
        self.token_expire_seconds = token_expire_seconds

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def sign_up(self, name: str, email: str, password: str) -> tuple[Identity, str]:
        if not email or not password:
            raise AuthError("Email and password are required")
        user = User(
            id=uuid4().hex,
            name=name,
            email=email,
            hashed_password=hash_password(password),
        )
        try:
            self.store.create_user(user)
        except IntegrityError as exc:
            raise AuthError(_EMAIL_TAKEN) from exc
        logger.info("Account created (user_id=%s)", user.id)

        identity = Identity.from_user(user)
        self.hooks.fire_created(identity)
        return self._issue(user)

    def sign_in(self, email: str, password: str) -> tuple[Identity, str]:
        user = self.store.get_by_email(email or "")
        if user is None:
            burn_password_check(password or "")
            raise AuthError(_BAD_CREDENTIALS)
        if not verify_password(password or "", user.hashed_password):
            raise AuthError(_BAD_CREDENTIALS)
        return self._issue(user)

    def sign_out(self, token: str | None) -> None:
        """Revoke the session behind token. Unknown or invalid tokens are a no-op."""
        if not token:
            return
        payload = decode_access_token(token)
        if payload is None:
            return
        if self.store.revoke_session(payload["sid"]):
            logger.info("Session revoked (user_id=%s)", payload["sub"])

    def get_current_session(self, token: str | None) -> Identity | None:
        if not token:
            return None
        payload = decode_access_token(token)
        if payload is None:
            return None
        session = self.store.get_session(payload["sid"])
        if session is None or session.user_id != payload["sub"]:
            return None
        if session.revoked_at is not None or session.expires_at <= _now().isoformat():
            return None
        user = self.store.get_by_id(session.user_id)
        if user is None:
            return None
        return Identity.from_user(user, session_id=session.id)

    def delete_account(self, user_id: str) -> bool:
        """Fire the deletion hook, then remove the account and all its sessions.

        The hook runs first so handlers can still resolve the identity. If the
        account is already gone the hook still fires: a retried deletion must
        be able to finish cleaning up first-party records.
        """
        user = self.store.get_by_id(user_id)
        identity = Identity.from_user(user) if user else Identity(id=user_id, name="", email="")
        self.hooks.fire_deleted(identity)
        deleted = self.store.delete_user(user_id)
        if deleted:
            logger.info("Account deleted (user_id=%s)", user_id)
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(self, user: User) -> tuple[Identity, str]:
        now = _now()
        expires = now + timedelta(seconds=self.token_expire_seconds)
        session = Session(
            id=uuid4().hex,
            user_id=user.id,
            created_at=now.isoformat(),
            expires_at=expires.isoformat(),
        )
        self.store.create_session(session)
        token = create_access_token(user.id, session.id, expires)
        return Identity.from_user(user, session_id=session.id), token


def _now() -> datetime:
    return datetime.now(timezone.utc)
