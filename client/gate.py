"""
client/gate.py -- ProtectedViewGate: what a protected view shows right now.

The decision is derived from the coordinator alone:

    loading          -> GateDecision.loading   (show the loading view)
    authenticated    -> GateDecision.render    (show the protected content)
    unauthenticated  -> GateDecision.redirect  (go to the public landing route)

Every protected view redirects; none renders a fallback in place.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Optional, TypeVar

from client.coordinator import SessionStateCoordinator
from client.models import SessionUser
from core.models import SessionState

T = TypeVar("T")


class GateDecision(str, Enum):
    render = "render"
    loading = "loading"
    redirect = "redirect"


_DECISIONS = {
    SessionState.loading: GateDecision.loading,
    SessionState.authenticated: GateDecision.render,
    SessionState.unauthenticated: GateDecision.redirect,
}


class ProtectedViewGate:
    def __init__(
        self,
        coordinator: SessionStateCoordinator,
        redirect: Callable[[str], None],
        redirect_to: str = "/",
    ) -> None:
        self.coordinator = coordinator
        self.redirect = redirect
        self.redirect_to = redirect_to

    def decide(self) -> GateDecision:
        return _DECISIONS[self.coordinator.state]

    def render(self, children: Callable[[SessionUser], T], loading: Any = None) -> Optional[T]:
        """Return the protected content, the loading view, or None after redirecting."""
        decision = self.decide()
        if decision is GateDecision.render:
            return children(self.coordinator.identity)
        if decision is GateDecision.loading:
            return loading
        self.redirect(self.redirect_to)
        return None

    def watch(self) -> Callable[[], None]:
        """Redirect as soon as the coordinator turns unauthenticated.

        Returns the unsubscribe function.
        """

        def on_change(state: SessionState, _identity: Optional[SessionUser]) -> None:
            if state is SessionState.unauthenticated:
                self.redirect(self.redirect_to)

        return self.coordinator.subscribe(on_change)
