"""
client/forms.py -- Sign-up and sign-in forms for SDK consumers.

A form owns its inputs, a loading flag and one error string. submit()
validates locally, calls the Session Store, and on success stores the token,
tells the coordinator, and fires on_success. Failures never raise: they end
up in form.error, worded for display.

Usage:
    form = SignUpForm(coordinator, name="Ada", email="ada@example.com", password="...")
    if await form.submit():
        ...
    else:
        show(form.error)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from client.coordinator import SessionStateCoordinator
from client.http import ServiceUnavailable, SessionStoreError
from client.models import AuthResult

logger = logging.getLogger("boilerplate.client.forms")

GENERIC_FAILURE = "Something went wrong. Please try again."
PASSWORD_MIN_LENGTH = 8


class _AuthForm:
    def __init__(
        self,
        coordinator: SessionStateCoordinator,
        on_success: Optional[Callable[[AuthResult], None]] = None,
    ) -> None:
        self.coordinator = coordinator
        self.on_success = on_success
        self.loading = False
        self.error: Optional[str] = None

    def validate(self) -> Optional[str]:
        """Return an inline error, or None when the input may be sent."""
        return None

    async def submit(self) -> bool:
        self.error = self.validate()
        if self.error:
            return False

        self.loading = True
        try:
            result = await asyncio.wait_for(self._dispatch(), timeout=self.coordinator.auth_call_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out", type(self).__name__)
            self.error = GENERIC_FAILURE
            return False
        except ServiceUnavailable as exc:
            logger.warning("%s could not reach the server: %s", type(self).__name__, exc.message)
            self.error = GENERIC_FAILURE
            return False
        except SessionStoreError as exc:
            self.error = exc.message
            return False
        finally:
            self.loading = False

        self.coordinator.storage.set(result.access_token, origin=self.coordinator)
        await self.coordinator.on_sign_in_resolved()
        if self.on_success is not None:
            self.on_success(result)
        return True

    async def _dispatch(self) -> AuthResult:
        raise NotImplementedError


class SignUpForm(_AuthForm):
    def __init__(
        self,
        coordinator: SessionStateCoordinator,
        name: str = "",
        email: str = "",
        password: str = "",
        on_success: Optional[Callable[[AuthResult], None]] = None,
    ) -> None:
        super().__init__(coordinator, on_success)
        self.name = name
        self.email = email
        self.password = password

    def validate(self) -> Optional[str]:
        if not self.name.strip():
            return "Name is required"
        if len(self.password) < PASSWORD_MIN_LENGTH:
            return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        return None

    async def _dispatch(self) -> AuthResult:
        return await self.coordinator.client.sign_up(self.name, self.email, self.password)


class SignInForm(_AuthForm):
    """Sign-in sends the password as typed, with no length check."""

    def __init__(
        self,
        coordinator: SessionStateCoordinator,
        email: str = "",
        password: str = "",
        on_success: Optional[Callable[[AuthResult], None]] = None,
    ) -> None:
        super().__init__(coordinator, on_success)
        self.email = email
        self.password = password

    async def _dispatch(self) -> AuthResult:
        return await self.coordinator.client.sign_in(self.email, self.password)
