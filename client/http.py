"""
client/http.py -- SessionStoreClient: the SDK's only network boundary.

Wraps one httpx.AsyncClient per instance. Every call carries the token (when
there is one) as "Authorization: Bearer <token>" and an explicit timeout;
nothing here waits on library defaults.

Errors:
  SessionStoreError     -- the server answered with a 4xx/5xx. message is the
                         server's human-readable text from the error envelope.
  ServiceUnavailable    -- no usable answer (connect error, timeout, bad JSON).

Usage:
    async with SessionStoreClient("https://app.example.com") as api:
        result = await api.sign_in("ada@example.com", "correct horse")
        session = await api.get_current_session(result.access_token)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

import httpx

from client.models import AuthResult, SessionUser

logger = logging.getLogger("boilerplate.client.http")

_API_PREFIX = "/api/v1"

T = TypeVar("T")


class SessionStoreError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, code: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ServiceUnavailable(SessionStoreError):
    pass


def _decode(factory: Callable[[Any], T], data: Any) -> T:
    """Build a client model from a success payload; a malformed one means no usable answer."""
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Unexpected payload shape (%s)", type(exc).__name__)
        raise ServiceUnavailable("The server sent an unexpected response.") from exc


class SessionStoreClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=False,
        )

    async def __aenter__(self) -> SessionStoreClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Session Store
    # ------------------------------------------------------------------

    async def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST", "/auth/sign-up", json={"name": name, "email": email, "password": password}
        )
        return _decode(AuthResult.from_json, data)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        data = await self._request("POST", "/auth/sign-in", json={"email": email, "password": password})
        return _decode(AuthResult.from_json, data)

    async def sign_out(self, token: Optional[str]) -> None:
        await self._request("POST", "/auth/sign-out", token=token)

    async def get_current_session(self, token: Optional[str]) -> Optional[SessionUser]:
        """Return the signed-in user, or None when the server reports no session."""
        if not token:
            return None
        data = await self._request("GET", "/auth/session", token=token)
        session = data.get("session") if isinstance(data, dict) else None
        if not session:
            return None
        return _decode(lambda s: SessionUser.from_json(s["user"]), session)

    async def delete_account(self, token: str) -> None:
        await self._request("DELETE", "/auth/account", token=token)

    # ------------------------------------------------------------------
    # User-Extension Records
    # ------------------------------------------------------------------

    async def get_current_user_preferences(self, token: Optional[str]) -> Optional[dict]:
        return await self._request("GET", "/me", token=token)

    async def update_user_preferences(self, token: Optional[str], **fields: Any) -> dict:
        return await self._request("PATCH", "/me/preferences", token=token, json=fields)

    async def get_user_tasks(self, token: Optional[str]) -> list[dict]:
        return await self._request("GET", "/tasks", token=token)

    async def create_task(self, token: Optional[str], text: str, is_completed: bool = False) -> dict:
        return await self._request("POST", "/tasks", token=token, json={"text": text, "is_completed": is_completed})

    async def toggle_task(self, token: Optional[str], task_id: int) -> dict:
        return await self._request("POST", f"/tasks/{task_id}/toggle", token=token)

    async def delete_task(self, token: Optional[str], task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}", token=token)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, token: Optional[str] = None, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = await self._http.request(method, _API_PREFIX + path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, path)
            raise ServiceUnavailable("The server took too long to respond.") from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ServiceUnavailable("Could not reach the server.") from exc
        # The SDK authenticates with the Bearer header only; the browser cookie
        # the server also sets must not shadow the token held in storage.
        self._http.cookies.clear()

        if resp.status_code == 204 or not resp.content:
            if resp.is_success:
                return None
        try:
            data = resp.json()
        except ValueError as exc:
            raise ServiceUnavailable("The server sent an unreadable response.", resp.status_code) from exc

        if resp.is_success:
            return data
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            raise SessionStoreError(error.get("message") or "Request failed.", resp.status_code, error.get("code", ""))
        raise SessionStoreError("Request failed.", resp.status_code)
