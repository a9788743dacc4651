"""
client/storage.py -- Token storage with change notifications.

A TokenStorage is the client's equivalent of browser local storage: every
coordinator ("tab") in the process that shares one storage object sees the
same token, and is told when another one changes it.

Change events mirror the browser "storage" event: listeners receive the
origin of the write and are expected to ignore their own writes.

FileTokenStorage persists the token to disk so a new process (a "reload")
starts with the previous session. Writes from other processes are picked up
by poll().
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("boilerplate.client.storage")

Listener = Callable[[Optional[str], Any], None]


class TokenStorage:
    """In-memory token slot shared by every coordinator that holds it."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = token
        self._listeners: list[Listener] = []

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: Optional[str], origin: Any = None) -> None:
        if token == self._token:
            return
        self._token = token
        self._write(token)
        self._notify(token, origin)

    def clear(self, origin: Any = None) -> None:
        self.set(None, origin=origin)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener(token, origin). Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _write(self, token: Optional[str]) -> None:
        """Persistence hook. The in-memory storage keeps nothing beyond _token."""

    def _notify(self, token: Optional[str], origin: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(token, origin)
            except Exception:
                logger.exception("Token storage listener failed")


class FileTokenStorage(TokenStorage):
    """Token storage backed by a small JSON file.

    Usage:
        storage = FileTokenStorage(Path.home() / ".boilerplate" / "session.json")
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(self._read())

    def poll(self) -> bool:
        """Re-read the file; notify listeners if another process changed it.

        Returns True if the token changed. The origin passed to listeners is
        the path, which never equals a coordinator.
        """
        token = self._read()
        if token == self._token:
            return False
        self._token = token
        self._notify(token, self.path)
        return True

    def _read(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, exc)
            return None
        token = data.get("access_token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def _write(self, token: Optional[str]) -> None:
        if token is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Created 0600 and renamed into place: the token is never readable by others.
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump({"access_token": token}, fh)
        tmp.replace(self.path)
