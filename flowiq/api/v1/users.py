"""Admin user management: list, create, update (including role), delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from flowiq.api.auth import require_permission
from flowiq.core.database import get_db
from flowiq.schemas.auth import (
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    SanitizedUser,
    SuccessResponse,
    UserResponse,
    UsersListResponse,
)
from flowiq.services import auth_service

router = APIRouter()

CanViewUsers = Annotated[SanitizedUser, Depends(require_permission("users.view"))]
CanManageUsers = Annotated[SanitizedUser, Depends(require_permission("users.manage"))]


@router.get("", response_model=UsersListResponse)
def list_users(
    _user: CanViewUsers,
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users, oldest first."""
    return UsersListResponse(users=auth_service.list_users(db))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: AdminCreateUserRequest,
    _admin: CanManageUsers,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Create a user with an explicit role."""
    user = auth_service.register(db, body.email, body.password, body.name, role=body.role)
    return UserResponse(user=user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    _user: CanViewUsers,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = auth_service.get_user_or_404(db, user_id)
    return UserResponse(user=auth_service.sanitize(user))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: AdminUpdateUserRequest,
    _admin: CanManageUsers,
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """
    Update name, email and/or role. A role change applies to API permission
    checks immediately and to page routing once the user's session is refreshed.
    """
    user = auth_service.update_user_as_admin(
        db, user_id, name=body.name, email=body.email, role=body.role
    )
    return UserResponse(user=user)


@router.delete("/{user_id}", response_model=SuccessResponse)
def delete_user(
    user_id: int,
    admin: CanManageUsers,
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    auth_service.delete_user_as_admin(db, user_id, acting_user_id=admin.id)
    return SuccessResponse()
