"""
auth/models.py -- Domain dataclasses for Session Store entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in records/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/, web/, records/, or client/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """An account held by the Session Store.

    id is an opaque uuid4 hex string issued at sign-up. Every first-party
    record (preferences, tasks) links to it by string equality only -- there
    is no foreign key across the two databases.

    email is stored lower-cased; uniqueness is enforced by the UNIQUE index.
    """

    id: str
    name: str
    email: str
    hashed_password: str
    created_at: str = ""


@dataclass
class Session:
    """One signed-in browser or SDK client.

    A JWT is only honoured while its session row exists, has no revoked_at
    stamp, and expires_at is still in the future. Sign-out stamps revoked_at.
    """

    id: str
    user_id: str
    created_at: str
    expires_at: str
    revoked_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The public projection of an authenticated caller.

    This is what crosses the Session Store boundary: handlers in records/ and
    routes in api/ and web/ see an Identity, never a User (no password hash).
    """

    id: str
    name: str
    email: str
    session_id: str | None = None

    @classmethod
    def from_user(cls, user: User, session_id: str | None = None) -> Identity:
        return cls(id=user.id, name=user.name, email=user.email, session_id=session_id)
