"""Stateless session tokens (signed JWT) and the HTTP-only cookie that carries them.

There is no server-side session table. Logging out deletes the cookie on
the client only; a copy of the token stays valid until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from fastapi import Request, Response

from flowiq.core.config import Settings, get_settings
from flowiq.core.rbac import Role, parse_role

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "email", "role", "exp", "iat")


@dataclass(frozen=True)
class SessionPayload:
    """Decoded, verified session claims."""

    user_id: int
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime


def issue_token(
    user_id: int,
    email: str,
    role: Role | str,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> str:
    """Create a signed token valid for SESSION_EXPIRE_DAYS from now."""
    settings = settings or get_settings()
    issued = now or datetime.now(UTC)
    expires = issued + timedelta(days=settings.SESSION_EXPIRE_DAYS)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": Role(role).value,
        "iat": issued,
        "exp": expires,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(
    token: str | None,
    *,
    settings: Settings | None = None,
) -> SessionPayload | None:
    """
    Return the payload of a valid, unexpired token, or None.

    Forged, malformed and expired tokens all yield None; callers must not
    tell them apart.
    """
    if not token:
        return None
    settings = settings or get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except jwt.PyJWTError:
        logger.debug("Session token rejected")
        return None

    role = parse_role(claims.get("role"))
    email = claims.get("email")
    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        return None
    if role is None or not isinstance(email, str) or not email:
        return None
    return SessionPayload(
        user_id=user_id,
        email=email,
        role=role,
        issued_at=datetime.fromtimestamp(claims["iat"], UTC),
        expires_at=datetime.fromtimestamp(claims["exp"], UTC),
    )


def _cookie_secure(request: Request | None, settings: Settings) -> bool:
    if settings.SESSION_COOKIE_SECURE is not None:
        return settings.SESSION_COOKIE_SECURE
    if settings.APP_ENV == "prod":
        return True
    return request is not None and request.url.scheme == "https"


def set_session_cookie(
    response: Response,
    token: str,
    request: Request | None = None,
    *,
    settings: Settings | None = None,
) -> None:
    """Write the session cookie: HTTP-only, SameSite=Lax, path /, token lifetime."""
    settings = settings or get_settings()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_cookie_secure(request, settings),
    )


def get_session_token(request: Request, *, settings: Settings | None = None) -> str | None:
    settings = settings or get_settings()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_session(request: Request, *, settings: Settings | None = None) -> SessionPayload | None:
    """Verified session for the request's cookie, or None."""
    return verify_token(get_session_token(request, settings=settings), settings=settings)


def create_session(
    response: Response,
    user_id: int,
    email: str,
    role: Role | str,
    request: Request | None = None,
    *,
    settings: Settings | None = None,
) -> str:
    """Issue a token and set it as the session cookie."""
    token = issue_token(user_id, email, role, settings=settings)
    set_session_cookie(response, token, request, settings=settings)
    logger.info("Session created", extra={"user_id": user_id})
    return token


def refresh_session(
    request: Request,
    response: Response,
    *,
    role: Role | str | None = None,
    settings: Settings | None = None,
) -> str | None:
    """
    Re-issue the current session with a full new lifetime.

    Returns None (and leaves the response untouched) when the request has no
    valid session. `role` replaces the role claim, e.g. after an admin change.
    """
    payload = get_session(request, settings=settings)
    if payload is None:
        return None
    token = issue_token(
        payload.user_id,
        payload.email,
        role if role is not None else payload.role,
        settings=settings,
    )
    set_session_cookie(response, token, request, settings=settings)
    logger.info("Session refreshed", extra={"user_id": payload.user_id})
    return token


def destroy_session(response: Response, *, settings: Settings | None = None) -> None:
    """Delete the session cookie. Safe to call when there is none."""
    settings = settings or get_settings()
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/", httponly=True, samesite="lax")
