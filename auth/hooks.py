"""
auth/hooks.py -- Account lifecycle event registry.

The Session Store fires two events that first-party code may react to:

  created -- after a new account row has been committed (sign-up).
  deleted -- before the account row is removed (account deletion).

Handlers are registered explicitly:

    hooks = LifecycleHooks()

    @hooks.on_user_created
    def seed_preferences(identity: Identity) -> None: ...

Invocation contract:
  SessionService fires each event once per account create/delete. Handlers
  must still be idempotent: a retried request or a crashed-then-replayed
  deletion can deliver the same event again.

  A handler that raises is logged and skipped. The remaining handlers still
  run and the triggering sign-up / deletion still succeeds -- downstream
  records are allowed to be missing (e.g. preferences=None).

Layer rule: no imports from api/, web/, records/, or client/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from auth.models import Identity

logger = logging.getLogger("boilerplate.auth.hooks")

Handler = Callable[[Identity], None]


class LifecycleHooks:
    def __init__(self) -> None:
        self._created: list[Handler] = []
        self._deleted: list[Handler] = []

    def on_user_created(self, fn: Handler) -> Handler:
        self._created.append(fn)
        return fn

    def on_user_deleted(self, fn: Handler) -> Handler:
        self._deleted.append(fn)
        return fn

    def fire_created(self, identity: Identity) -> None:
        self._fire("created", self._created, identity)

    def fire_deleted(self, identity: Identity) -> None:
        self._fire("deleted", self._deleted, identity)

    @staticmethod
    def _fire(event: str, handlers: list[Handler], identity: Identity) -> None:
        for handler in handlers:
            try:
                handler(identity)
            except Exception:
                logger.exception(
                    "Lifecycle handler %s failed for %s event (user_id=%s)",
                    getattr(handler, "__name__", repr(handler)),
                    event,
                    identity.id,
                )
