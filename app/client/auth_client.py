"""
Auth facade consumed by UI code.

The cached user is only ever used for the first render: ``start()`` returns it
immediately and reconfirms with the server in the background. Any login or
signup failure, and every logout, leaves the facade logged out.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from app.client.cache import UserCache
from app.modules.auth.schemas import User

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/auth"


class AuthClientError(Exception):
    """Server-reported auth failure; ``message`` is the server's detail verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthClient:
    def __init__(
        self,
        base_url: str,
        cache: Optional[UserCache] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache = cache or UserCache()
        self.user: Optional[User] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def _set_user(self, user: User) -> None:
        self.user = user
        self.cache.set(user)

    def _reset(self) -> None:
        self.user = None
        self.cache.clear()

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body: Any = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("error") or body.get("message")
            if isinstance(detail, str) and detail:
                return detail
        return fallback

    async def start(self) -> Optional[User]:
        """Render the cached user at once, then reconfirm with the server in the background."""
        self.user = self.cache.get()
        self._refresh_task = asyncio.create_task(self.refresh())
        return self.user

    async def wait_until_confirmed(self) -> Optional[User]:
        if self._refresh_task is not None and not self._refresh_task.cancelled():
            await self._refresh_task
        return self.user

    async def refresh(self) -> Optional[User]:
        """Ask the server who the session belongs to; anything but a user clears local state."""
        try:
            response = await self._client.get(f"{API_PREFIX}/check")
        except httpx.HTTPError as e:
            logger.warning(f"Auth check failed: {e}")
            self._reset()
            return None

        if response.status_code != 200:
            self._reset()
            return None
        try:
            user = User(**response.json()["user"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Auth check returned an unexpected body: {e}")
            self._reset()
            return None
        self._set_user(user)
        return user

    def _cancel_refresh(self) -> None:
        # An explicit login/signup/logout supersedes a pending startup check
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()

    async def _authenticate(self, path: str, payload: dict, fallback: str) -> User:
        self._cancel_refresh()
        try:
            response = await self._client.post(f"{API_PREFIX}/{path}", json=payload)
        except httpx.HTTPError as e:
            self._reset()
            raise AuthClientError(fallback) from e

        if response.status_code != 200:
            self._reset()
            raise AuthClientError(self._error_message(response, fallback), response.status_code)

        try:
            user = User(**response.json()["user"])
        except (ValueError, KeyError, TypeError) as e:
            self._reset()
            raise AuthClientError(fallback, response.status_code) from e
        self._set_user(user)
        return user

    async def login(self, email: str, password: str) -> User:
        return await self._authenticate("login", {"email": email, "password": password}, "Login failed")

    async def signup(self, email: str, password: str, full_name: Optional[str] = None) -> User:
        payload = {"email": email, "password": password}
        if full_name is not None:
            payload["full_name"] = full_name
        return await self._authenticate("signup", payload, "Signup failed")

    async def logout(self) -> bool:
        """Log out locally no matter what; returns whether the server acknowledged it."""
        self._cancel_refresh()
        try:
            response = await self._client.post(f"{API_PREFIX}/logout")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Logout error: {e}")
            return False
        finally:
            self._client.cookies.clear()
            self._reset()

    async def aclose(self) -> None:
        self._cancel_refresh()
        await self._client.aclose()

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
