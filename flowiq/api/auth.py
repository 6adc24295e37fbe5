"""Cookie-session auth endpoints and auth dependencies (get_current_user, require_permission)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from flowiq.core.database import get_db
from flowiq.core.errors import SessionInvalidError
from flowiq.core.session import (
    SessionPayload,
    create_session,
    destroy_session,
    get_session,
    refresh_session,
)
from flowiq.schemas.auth import (
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SanitizedUser,
    SuccessResponse,
    UserResponse,
)
from flowiq.services import auth_service

router = APIRouter()

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def get_current_session(request: Request) -> SessionPayload:
    """Dependency: require a valid session cookie. Raises 401 if missing or invalid."""
    payload = get_session(request)
    if payload is None:
        raise SessionInvalidError()
    return payload


def get_current_user(
    payload: Annotated[SessionPayload, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> SanitizedUser:
    """Dependency: the signed-in user as currently stored (role read from the database)."""
    user = auth_service.get_user_by_id(db, payload.user_id)
    if user is None:
        raise SessionInvalidError()
    return user


def require_permission(permission_id: str) -> Callable[..., SanitizedUser]:
    """Dependency factory: require a signed-in user whose role holds permission_id (403 otherwise)."""

    def dependency(
        current_user: Annotated[SanitizedUser, Depends(get_current_user)],
    ) -> SanitizedUser:
        auth_service.ensure_permission(current_user.role, permission_id)
        return current_user

    return dependency


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """
    Create an account with the viewer role. Does not sign the user in;
    clients follow up with POST /auth/login.
    """
    user = auth_service.register(db, body.email, body.password, body.name)
    return UserResponse(user=user)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password and set the session cookie.
    Unknown email and wrong password both return 401 with the same body.
    """
    result = auth_service.login(db, body.email, body.password)
    create_session(response, result.user.id, result.user.email, result.user.role, request)
    response.headers.update(NO_STORE_HEADERS)
    return LoginResponse(user=result.user)


@router.get("/me", response_model=UserResponse)
def me(
    current_user: Annotated[SanitizedUser, Depends(get_current_user)],
    response: Response,
) -> UserResponse:
    """Who am I: the signed-in user, or 401."""
    response.headers.update(NO_STORE_HEADERS)
    return UserResponse(user=current_user)


@router.patch("/me", response_model=UserResponse)
def update_me(
    body: ProfileUpdateRequest,
    request: Request,
    response: Response,
    current_user: Annotated[SanitizedUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Update the caller's name and/or email; the cookie is re-issued so its email claim stays current."""
    user = auth_service.update_profile(
        db, current_user.id, name=body.name, email=body.email
    )
    if user.email != current_user.email:
        create_session(response, user.id, user.email, user.role, request)
    return UserResponse(user=user)


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response) -> SuccessResponse:
    """
    Delete the session cookie. Idempotent.

    The token is not revoked server-side; a copy remains valid until it expires.
    """
    destroy_session(response)
    return SuccessResponse()


@router.post("/refresh", response_model=UserResponse)
def refresh(
    request: Request,
    response: Response,
    current_user: Annotated[SanitizedUser, Depends(get_current_user)],
) -> UserResponse:
    """Extend a valid session by a full lifetime, picking up the user's current role."""
    refresh_session(request, response, role=current_user.role)
    return UserResponse(user=current_user)
