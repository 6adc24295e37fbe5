"""Core app configuration, database, sessions and access control."""

from flowiq.core.config import get_settings, settings
from flowiq.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
