"""
records/handlers.py -- User-Extension Records: lifecycle hooks and the
query/mutation operations exposed to the API and web layers.

Every operation takes the caller's Identity (or None). Gating rules:

  reads   -- unauthenticated callers get an empty result (None or []).
  writes  -- unauthenticated callers get NotAuthenticatedError.

Task ownership is enforced: a task whose owner_id differs from the caller's
id is reported as NotFoundError, the same as a missing one, so callers
cannot probe for other users' task ids.

Lifecycle hooks (wired by register()):
  on_session_created -- insert the default preferences row. Idempotent.
  on_session_deleted -- delete the preferences row and every owned task.
                        Best-effort and not transactional; idempotent.
"""

import logging
from typing import Optional

from auth.errors import NotAuthenticatedError, NotFoundError, ValidationError
from auth.hooks import LifecycleHooks
from auth.models import Identity
from core.models import Theme
from records.models import Task, UserPreferences
from records.store import PREFERENCE_FIELDS, RecordStore

logger = logging.getLogger("boilerplate.records")

_MAX_TASK_TEXT = 500
_MAX_LANGUAGE = 16


# ---------------------------------------------------------------------------
# Lifecycle hooks
# ---------------------------------------------------------------------------


def on_session_created(store: RecordStore, identity: Identity) -> None:
    if store.insert_default_preferences(identity.id):
        logger.info("Default preferences created (user_id=%s)", identity.id)
    else:
        logger.info("Preferences already present, created-hook skipped (user_id=%s)", identity.id)


def on_session_deleted(store: RecordStore, identity: Identity) -> None:
    removed_prefs = store.delete_preferences(identity.id)
    removed_tasks = store.delete_tasks_by_owner(identity.id)
    logger.info(
        "User records removed (user_id=%s, preferences=%s, tasks=%d)",
        identity.id,
        removed_prefs,
        removed_tasks,
    )


def register(hooks: LifecycleHooks, store: RecordStore) -> None:
    """Attach the two lifecycle handlers to the Session Store's hook registry."""

    @hooks.on_user_created
    def seed_user_preferences(identity: Identity) -> None:
        on_session_created(store, identity)

    @hooks.on_user_deleted
    def remove_user_records(identity: Identity) -> None:
        on_session_deleted(store, identity)


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


def get_current_user_preferences(store: RecordStore, identity: Optional[Identity]) -> Optional[dict]:
    """Return None when signed out, else {"user": ..., "preferences": ... | None}.

    preferences is None when the created-hook has not run yet or failed.
    """
    if identity is None:
        return None
    prefs = store.get_preferences(identity.id)
    return {
        "user": {"id": identity.id, "name": identity.name, "email": identity.email},
        "preferences": prefs.as_dict() if prefs is not None else None,
    }


def update_user_preferences(store: RecordStore, identity: Optional[Identity], **fields) -> UserPreferences:
    """Upsert the caller's preferences with the supplied fields."""
    if identity is None:
        raise NotAuthenticatedError()
    _validate_preferences(fields)
    prefs = store.upsert_preferences(identity.id, fields)
    if prefs is None:
        raise NotFoundError("Preferences not found")
    return prefs


def _validate_preferences(fields: dict) -> None:
    unknown = set(fields) - PREFERENCE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
    if "theme" in fields and fields["theme"] not in {t.value for t in Theme}:
        raise ValidationError("Theme must be one of: light, dark, system")
    if "notifications" in fields and not isinstance(fields["notifications"], bool):
        raise ValidationError("Notifications must be true or false")
    if "language" in fields:
        language = fields["language"]
        if not isinstance(language, str) or not language.strip() or len(language) > _MAX_LANGUAGE:
            raise ValidationError("Language must be a short language code")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def get_user_tasks(store: RecordStore, identity: Optional[Identity]) -> list[Task]:
    if identity is None:
        return []
    return store.list_tasks(identity.id)


def create_task(store: RecordStore, identity: Optional[Identity], text: str, is_completed: bool = False) -> Task:
    if identity is None:
        raise NotAuthenticatedError()
    if not text.strip():
        raise ValidationError("Task text is required")
    if len(text) > _MAX_TASK_TEXT:
        raise ValidationError(f"Task text must be at most {_MAX_TASK_TEXT} characters")
    task_id = store.create_task(Task(text=text, is_completed=is_completed, owner_id=identity.id))
    return _owned_task(store, identity, task_id)


def toggle_task(store: RecordStore, identity: Optional[Identity], task_id: int) -> Task:
    if identity is None:
        raise NotAuthenticatedError()
    _owned_task(store, identity, task_id)
    if not store.toggle_task(task_id):
        raise NotFoundError("Task not found")
    return _owned_task(store, identity, task_id)


def delete_task(store: RecordStore, identity: Optional[Identity], task_id: int) -> None:
    if identity is None:
        raise NotAuthenticatedError()
    _owned_task(store, identity, task_id)
    if not store.delete_task(task_id):
        raise NotFoundError("Task not found")


def _owned_task(store: RecordStore, identity: Identity, task_id: int) -> Task:
    task = store.get_task(task_id)
    if task is None or task.owner_id != identity.id:
        raise NotFoundError("Task not found")
    return task
