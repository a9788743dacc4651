"""
records/models.py -- Domain dataclasses for first-party user records.

These are pure data containers with zero logic. The upsert rules live in
records/store.py; the authentication gating lives in records/handlers.py.

user_id / owner_id hold the Session Store's opaque account id. Nothing here
enforces that the account exists -- links are string-equality lookups.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class UserPreferences:
    """Per-account settings. At most one row per user_id (UNIQUE index)."""

    user_id: str
    theme: str = "system"  # "light" | "dark" | "system"
    notifications: bool = True
    language: str = "en"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""

    def as_dict(self) -> dict:
        return {
            "theme": self.theme,
            "notifications": self.notifications,
            "language": self.language,
        }


@dataclass
class Task:
    """A to-do item.

    owner_id is None for tasks created before ownership was tracked; such
    tasks are invisible to every per-user query.
    """

    text: str
    is_completed: bool = False
    owner_id: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""
