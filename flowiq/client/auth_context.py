"""Client-side auth state for UI code talking to the FlowIQ API.

An AuthContext is created once per client session and passed to whatever
needs it. It caches the signed-in user, syncs from the server only through
refresh() (GET /auth/me), and updates its cache on login, logout and
profile changes. The session cookie lives in the underlying httpx client.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from flowiq.core.rbac import allowed_route_prefixes, has_permission, landing_path
from flowiq.schemas.auth import SanitizedUser

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class AuthClientError(Exception):
    """Raised when an auth call returns a non-2xx status; message comes from the JSON body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
    return fallback


class AuthContext:
    """
    Signed-in user cache plus login/register/logout/update operations.

    navigate is called with the path the UI should move to (landing page after
    login, /login after logout); by default it only records the path in
    `location`.
    """

    def __init__(
        self,
        client: httpx.Client,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._navigate = navigate
        self.user: SanitizedUser | None = None
        self.loading = True
        self.error: str | None = None
        self.location: str | None = None

    def _go(self, path: str) -> None:
        self.location = path
        if self._navigate is not None:
            self._navigate(path)

    def _request(self, method: str, url: str, fallback: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise AuthClientError(f"{fallback}: {e!s}") from e
        if response.is_error:
            raise AuthClientError(_error_message(response, fallback), response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise AuthClientError(fallback, response.status_code) from e
        if not isinstance(body, dict):
            raise AuthClientError(fallback, response.status_code)
        return body

    def _request_user(self, method: str, url: str, fallback: str, **kwargs: Any) -> SanitizedUser:
        """Like _request, but the body must carry a valid `user` object."""
        data = self._request(method, url, fallback, **kwargs)
        try:
            return SanitizedUser.model_validate(data["user"])
        except (KeyError, PydanticValidationError) as e:
            raise AuthClientError(fallback) from e

    def refresh(self) -> SanitizedUser | None:
        """Load the current user from GET /auth/me. Any failure means signed out."""
        try:
            self.user = self._request_user("GET", "/auth/me", "Not authenticated")
        except AuthClientError as e:
            logger.debug("Auth check failed: %s", e.message)
            self.user = None
        finally:
            self.loading = False
        return self.user

    def login(self, email: str, password: str) -> SanitizedUser:
        """Sign in and navigate to the role's landing page."""
        self.error = None
        try:
            user = self._request_user(
                "POST",
                "/auth/login",
                "Login failed",
                json={"email": email, "password": password},
            )
        except AuthClientError as e:
            self.error = e.message
            raise
        self.user = user
        self._go(landing_path(self.user.role))
        return self.user

    def register(self, email: str, password: str, name: str | None = None) -> SanitizedUser:
        """Create an account, then sign in with the same credentials."""
        self.error = None
        payload: dict[str, Any] = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        try:
            self._request("POST", "/auth/register", "Registration failed", json=payload)
        except AuthClientError as e:
            self.error = e.message
            raise
        return self.login(email, password)

    def logout(self) -> None:
        self.error = None
        try:
            self._request("POST", "/auth/logout", "Logout failed")
        except AuthClientError as e:
            self.error = e.message
            raise
        self.user = None
        self._go(LOGIN_PATH)

    def update_user(self, **fields: Any) -> SanitizedUser:
        """PATCH the signed-in user's profile (name, email)."""
        self.error = None
        try:
            user = self._request_user("PATCH", "/auth/me", "Update failed", json=fields)
        except AuthClientError as e:
            self.error = e.message
            raise
        self.user = user
        return self.user

    def has_permission(self, permission_id: str) -> bool:
        if self.user is None:
            return False
        return has_permission(self.user.role, permission_id)

    def allowed_routes(self) -> list[str]:
        """Route prefixes the signed-in user may open, for building navigation."""
        if self.user is None:
            return []
        return allowed_route_prefixes(self.user.role)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
