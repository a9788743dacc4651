"""
client/models.py -- Client-side views of server payloads.

Plain dataclasses built from the JSON the API returns. The server's own
dataclasses are not imported: the client only knows the wire contract.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionUser:
    id: str
    name: str
    email: str

    @classmethod
    def from_json(cls, data: dict) -> SessionUser:
        return cls(id=data["id"], name=data.get("name", ""), email=data.get("email", ""))


@dataclass(frozen=True)
class AuthResult:
    """What a successful sign-up / sign-in hands back."""

    access_token: str
    expires_in: int
    user: SessionUser

    @classmethod
    def from_json(cls, data: dict) -> AuthResult:
        return cls(
            access_token=data["access_token"],
            expires_in=int(data.get("expires_in", 0)),
            user=SessionUser.from_json(data["user"]),
        )
