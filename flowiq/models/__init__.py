"""SQLAlchemy ORM models."""

from flowiq.models.base import Base
from flowiq.models.user import User

__all__ = ["Base", "User"]
