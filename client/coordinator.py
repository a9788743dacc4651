"""
client/coordinator.py -- SessionStateCoordinator: one observable session state.

Holds exactly one of loading / authenticated / unauthenticated plus the
signed-in user, and publishes every change to subscribers. The state is
re-derived from the server on five triggers:

    mount()                 -- first use (and every "reload")
    on_focus()              -- only when the token may have gone stale
    on_storage_change()     -- another coordinator changed the shared token
    on_sign_in_resolved()   -- a form just stored a fresh token
    on_sign_out_initiated() -- sign_out() is under way

refresh() never raises. Errors and timeouts resolve to unauthenticated.
Overlapping refreshes are ordered by a generation counter: a refresh only
publishes if no newer one started while it was waiting.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Optional

from jose import JWTError, jwt

from client.http import SessionStoreClient, SessionStoreError
from client.models import SessionUser
from client.storage import TokenStorage
from core.models import SessionState

logger = logging.getLogger("boilerplate.client.coordinator")

Subscriber = Callable[[SessionState, Optional[SessionUser]], None]


class SessionStateCoordinator:
    def __init__(
        self,
        client: SessionStoreClient,
        storage: TokenStorage,
        session_check_timeout: float = 5.0,
        auth_call_timeout: float = 10.0,
        expiry_skew: int = 30,
    ) -> None:
        self.client = client
        self.storage = storage
        self.session_check_timeout = session_check_timeout
        self.auth_call_timeout = auth_call_timeout
        self.expiry_skew = expiry_skew
        self._state = SessionState.loading
        self._identity: Optional[SessionUser] = None
        self._generation = 0
        self._subscribers: list[Subscriber] = []
        self._pending: set[asyncio.Task] = set()
        self._unsubscribe_storage = storage.subscribe(self._on_storage_event)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[SessionUser]:
        return self._identity

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback(state, identity). Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def mount(self) -> SessionState:
        return await self.refresh("mount")

    async def on_focus(self) -> SessionState:
        """Re-check on focus only if the session may no longer hold."""
        if self._state is SessionState.authenticated and not self._token_near_expiry():
            return self._state
        return await self.refresh("focus")

    async def on_storage_change(self) -> SessionState:
        return await self.refresh("storage")

    async def on_sign_in_resolved(self) -> SessionState:
        return await self.refresh("sign-in")

    async def on_sign_out_initiated(self) -> None:
        self._generation += 1
        self._publish(SessionState.loading, None)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def refresh(self, trigger: str = "manual") -> SessionState:
        self._generation += 1
        generation = self._generation
        self._publish(SessionState.loading, None)

        token = self.storage.get()
        user: Optional[SessionUser] = None
        definitive = False
        try:
            user = await asyncio.wait_for(
                self.client.get_current_session(token), timeout=self.session_check_timeout
            )
            definitive = True
        except asyncio.TimeoutError:
            logger.warning("Session check timed out after %.1fs (trigger=%s)", self.session_check_timeout, trigger)
        except SessionStoreError as exc:
            logger.warning("Session check failed (trigger=%s): %s", trigger, exc.message)

        if generation != self._generation:
            logger.debug("Dropping stale session check (trigger=%s)", trigger)
            return self._state

        if user is None:
            # The server says this token has no session; drop it so other
            # coordinators sharing the storage follow.
            if definitive and token:
                self.storage.clear(origin=self)
            self._publish(SessionState.unauthenticated, None)
        else:
            self._publish(SessionState.authenticated, user)
        return self._state

    async def sign_out(self) -> None:
        await self.on_sign_out_initiated()
        generation = self._generation
        token = self.storage.get()
        try:
            await asyncio.wait_for(self.client.sign_out(token), timeout=self.auth_call_timeout)
        except asyncio.TimeoutError:
            logger.warning("Sign-out call timed out; clearing local session anyway")
        except SessionStoreError as exc:
            logger.warning("Sign-out call failed; clearing local session anyway: %s", exc.message)
        self.storage.clear(origin=self)
        if generation == self._generation:
            self._publish(SessionState.unauthenticated, None)

    async def settle(self) -> None:
        """Wait for refreshes scheduled by storage events to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def close(self) -> None:
        self._unsubscribe_storage()
        for task in self._pending:
            task.cancel()
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _publish(self, state: SessionState, identity: Optional[SessionUser]) -> None:
        if state is self._state and identity == self._identity:
            return
        self._state = state
        self._identity = identity
        for callback in list(self._subscribers):
            try:
                callback(state, identity)
            except Exception:
                logger.exception("Session state subscriber failed")

    def _on_storage_event(self, token: Optional[str], origin: Any) -> None:
        if origin is self:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Storage changed outside an event loop; next trigger will re-check")
            return
        task = loop.create_task(self.on_storage_change())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _token_near_expiry(self) -> bool:
        token = self.storage.get()
        if not token:
            return True
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return True
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return True
        return exp - self.expiry_skew <= time.time()
