"""Pydantic request/response schemas."""

from flowiq.schemas.auth import (
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    SanitizedUser,
    SuccessResponse,
    UserResponse,
    UsersListResponse,
)
from flowiq.schemas.health import HealthResponse

__all__ = [
    "AdminCreateUserRequest",
    "AdminUpdateUserRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "SanitizedUser",
    "SuccessResponse",
    "UserResponse",
    "UsersListResponse",
]
