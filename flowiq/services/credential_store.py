"""Persistence for user records. All access goes through the ORM (bound parameters only)."""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from flowiq.core.errors import DuplicateEmailError, StorageError
from flowiq.core.rbac import Role
from flowiq.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


# PostgreSQL names the violated index; SQLite names the column.
EMAIL_UNIQUE_MARKERS = ("ix_users_email", "UNIQUE constraint failed: users.email")


def _is_duplicate_email(error: IntegrityError) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in EMAIL_UNIQUE_MARKERS)


def _commit(db: Session, action: str, **context: object) -> None:
    """
    Commit, translating failures into domain errors.

    A violation of the unique email index is a duplicate; every other
    integrity or engine error is a storage failure.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if _is_duplicate_email(e):
            raise DuplicateEmailError() from e
        logger.exception("User store %s failed", action, extra={"action": action, **context})
        raise StorageError() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("User store %s failed", action, extra={"action": action, **context})
        raise StorageError() from e


def create_user(
    db: Session,
    email: str,
    password_hash: str,
    name: str | None = None,
    role: Role = Role.VIEWER,
) -> User:
    """
    Insert a user. Uniqueness is left to the database so concurrent inserts
    of one email cannot both succeed; the loser gets DuplicateEmailError.
    """
    user = User(
        email=normalize_email(email),
        password_hash=password_hash,
        name=name,
        role=Role(role).value,
    )
    db.add(user)
    _commit(db, "create_user", email=user.email)
    db.refresh(user)
    return user


def find_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    try:
        return db.execute(select(User).where(User.email == normalized)).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("User lookup by email failed", extra={"action": "find_by_email"})
        raise StorageError() from e


def find_by_id(db: Session, user_id: int) -> User | None:
    try:
        return db.get(User, user_id)
    except SQLAlchemyError as e:
        logger.exception(
            "User lookup by id failed", extra={"action": "find_by_id", "user_id": user_id}
        )
        raise StorageError() from e


def list_users(db: Session) -> list[User]:
    try:
        return list(db.execute(select(User).order_by(User.id)).scalars())
    except SQLAlchemyError as e:
        logger.exception("Listing users failed", extra={"action": "list_users"})
        raise StorageError() from e


def update_user(
    db: Session,
    user: User,
    *,
    name: str | None = None,
    email: str | None = None,
    role: Role | None = None,
) -> User:
    """Apply the given (non-None) fields and bump updated_at."""
    if name is not None:
        user.name = name
    if email is not None:
        user.email = normalize_email(email)
    if role is not None:
        user.role = Role(role).value
    user.updated_at = datetime.now(UTC)
    _commit(db, "update_user", user_id=user.id)
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    user_id = user.id
    db.delete(user)
    _commit(db, "delete_user", user_id=user_id)
