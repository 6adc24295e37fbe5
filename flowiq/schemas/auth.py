"""Request/response schemas for auth and user management endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from flowiq.core.rbac import Role


class RegisterRequest(BaseModel):
    """Self-service registration. Presence and shape are checked by the auth service."""

    email: str | None = Field(default=None, description="Email address")
    password: str | None = Field(default=None, description="Password (8-128 chars)")
    name: str | None = Field(default=None, description="Display name")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str | None = Field(default=None, description="Email address")
    password: str | None = Field(default=None, description="Password")


class ProfileUpdateRequest(BaseModel):
    """Fields a signed-in user may change on their own account."""

    name: str | None = None
    email: str | None = None


class SanitizedUser(BaseModel):
    """User as sent to clients. Has no password field by construction."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserResponse(BaseModel):
    user: SanitizedUser


class LoginResponse(BaseModel):
    """Body of a successful login; the token itself travels only in the cookie."""

    user: SanitizedUser
    success: bool = True


class SuccessResponse(BaseModel):
    success: bool = True


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[SanitizedUser]


class AdminCreateUserRequest(BaseModel):
    """Admin-created account with an explicit role."""

    email: str | None = None
    password: str | None = None
    name: str | None = None
    role: Role = Role.VIEWER


class AdminUpdateUserRequest(BaseModel):
    """Partial update of another user's profile or role."""

    name: str | None = None
    email: str | None = None
    role: Role | None = None
