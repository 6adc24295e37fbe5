"""Registration, login and user lookup on top of the credential store and password hasher."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from flowiq.core.errors import (
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from flowiq.core.rbac import Role, has_permission
from flowiq.core.security import (
    DUMMY_PASSWORD_HASH,
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    verify_password,
)
from flowiq.core.session import issue_token
from flowiq.models import User
from flowiq.schemas.auth import SanitizedUser
from flowiq.services import credential_store

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Email and password are required"


@dataclass(frozen=True)
class LoginResult:
    user: SanitizedUser
    token: str


def sanitize(user: User) -> SanitizedUser:
    """Client-safe view of a user row (drops password_hash)."""
    return SanitizedUser.model_validate(user)


def _validate_email(email: str | None) -> str:
    value = credential_store.normalize_email(email)
    if not value:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    local, _, domain = value.partition("@")
    if not local or not domain or len(value) > EMAIL_MAX_LEN or " " in value:
        raise ValidationError("Invalid email address")
    return value


def _validate_new_password(password: str | None) -> str:
    if not password:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters"
        )
    return password


def _clean_name(name: str | None) -> str | None:
    if name is None:
        return None
    name = name.strip()
    if len(name) > NAME_MAX_LEN:
        raise ValidationError("Name is too long")
    return name or None


def register(
    db: Session,
    email: str | None,
    password: str | None,
    name: str | None = None,
    role: Role = Role.VIEWER,
) -> SanitizedUser:
    """
    Create an account and return it sanitized. Does not start a session.

    Raises ValidationError for missing/malformed input and DuplicateEmailError
    when the email is taken.
    """
    if not email or not password:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    normalized = _validate_email(email)
    _validate_new_password(password)
    user = credential_store.create_user(
        db,
        email=normalized,
        password_hash=hash_password(password),
        name=_clean_name(name),
        role=role,
    )
    logger.info(
        "User registered",
        extra={"action": "register", "user_id": user.id, "email": user.email},
    )
    return sanitize(user)


def login(db: Session, email: str | None, password: str | None) -> LoginResult:
    """
    Check credentials and mint a session token.

    An unknown email and a wrong password raise the same InvalidCredentialsError;
    both paths run one bcrypt comparison.
    """
    email = credential_store.normalize_email(email)
    if not email or not password:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    user = credential_store.find_by_email(db, email)
    if user is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        logger.info("Login failed", extra={"action": "login"})
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed", extra={"action": "login"})
        raise InvalidCredentialsError()
    token = issue_token(user.id, user.email, user.role)
    logger.info("Login succeeded", extra={"action": "login", "user_id": user.id})
    return LoginResult(user=sanitize(user), token=token)


def get_user_by_id(db: Session, user_id: int) -> SanitizedUser | None:
    """Sanitized user or None. Only storage failures raise."""
    user = credential_store.find_by_id(db, user_id)
    return sanitize(user) if user is not None else None


def update_profile(
    db: Session,
    user_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
) -> SanitizedUser:
    """Change the caller's own name and/or email. Role is not self-service."""
    user = credential_store.find_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    new_email = _validate_email(email) if email is not None else None
    user = credential_store.update_user(db, user, name=_clean_name(name), email=new_email)
    return sanitize(user)


def list_users(db: Session) -> list[SanitizedUser]:
    return [sanitize(u) for u in credential_store.list_users(db)]


def get_user_or_404(db: Session, user_id: int) -> User:
    user = credential_store.find_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user_as_admin(
    db: Session,
    user_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
    role: Role | None = None,
) -> SanitizedUser:
    user = get_user_or_404(db, user_id)
    new_email = _validate_email(email) if email is not None else None
    previous_role = user.role
    user = credential_store.update_user(
        db, user, name=_clean_name(name), email=new_email, role=role
    )
    if role is not None and role.value != previous_role:
        logger.info(
            "User role changed",
            extra={"action": "change_role", "user_id": user.id, "role": role.value},
        )
    return sanitize(user)


def delete_user_as_admin(db: Session, user_id: int, acting_user_id: int) -> None:
    """Hard-delete a user. Admins cannot delete their own account."""
    if user_id == acting_user_id:
        raise ValidationError("You cannot delete your own account")
    user = get_user_or_404(db, user_id)
    credential_store.delete_user(db, user)
    logger.info("User deleted", extra={"action": "delete_user", "user_id": user_id})


def ensure_permission(role: Role | str | None, permission_id: str) -> None:
    """Raise PermissionDeniedError unless the role holds permission_id."""
    if not has_permission(role, permission_id):
        raise PermissionDeniedError()
