"""
core/models.py -- Domain constants shared by every layer.

The session-state projection and the preference enums live here because the
server (api/, web/, records/) and the client SDK (client/) both speak them.
"""

from enum import Enum


class SessionState(str, Enum):
    """Three-state projection of "is there a valid session right now"."""

    loading = "loading"
    authenticated = "authenticated"
    unauthenticated = "unauthenticated"


class Theme(str, Enum):
    light = "light"
    dark = "dark"
    system = "system"


# Values written by the session-created hook and by the upsert when a field
# is not supplied.
DEFAULT_PREFERENCES: dict = {
    "theme": Theme.system.value,
    "notifications": True,
    "language": "en",
}
