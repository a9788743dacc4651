"""
API request and response models for the boilerplate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
records/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Identity
from core.models import Theme
from records.models import Task, UserPreferences

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-up.

    Only shape is validated here. Email format and the minimum password
    length are form-level rules (the HTML form and the client SDK check them
    before dispatch), so the API accepts any non-empty values up to the caps.
    """

    name: str = Field(default="", max_length=255)
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=255)


class SignInRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-in.

    email is a plain string: an unknown or malformed address must produce the
    same "Invalid email or password" message as a wrong password, not a 422.
    """

    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=255)


class PreferencesPatch(BaseModel):
    """Partial update for PATCH /api/v1/me/preferences. Unset fields are left alone."""

    model_config = ConfigDict(extra="forbid")

    theme: Optional[Theme] = None
    notifications: Optional[bool] = None
    language: Optional[str] = Field(default=None, min_length=1, max_length=16)


class TaskCreate(BaseModel):
    """Request body for POST /api/v1/tasks."""

    text: str = Field(min_length=1, max_length=500)
    is_completed: bool = False


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserInfo":
        return cls(id=identity.id, name=identity.name, email=identity.email)


class AuthResponse(BaseModel):
    """Returned by sign-up and sign-in. The token is also set as a cookie."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class SessionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserInfo
    session_id: Optional[str] = None


class SessionResponse(BaseModel):
    """GET /api/v1/auth/session -- session is null when signed out."""

    model_config = ConfigDict(frozen=True)

    session: Optional[SessionInfo] = None


class PreferencesResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    theme: str
    notifications: bool
    language: str

    @classmethod
    def from_domain(cls, prefs: UserPreferences) -> "PreferencesResponse":
        return cls(theme=prefs.theme, notifications=prefs.notifications, language=prefs.language)


class MeResponse(BaseModel):
    """GET /api/v1/me when signed in. preferences is null until the created-hook has run."""

    model_config = ConfigDict(frozen=True)

    user: UserInfo
    preferences: Optional[PreferencesResponse] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    is_completed: bool
    created_at: str
    owner_id: Optional[str] = None

    @classmethod
    def from_domain(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            text=task.text,
            is_completed=task.is_completed,
            created_at=task.created_at,
            owner_id=task.owner_id,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload. message is safe to show to the user verbatim."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    deployment_id: str
