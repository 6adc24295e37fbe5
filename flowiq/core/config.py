"""Application configuration loaded from environment variables."""

import logging
import secrets
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
    "sqlite://",
)

APP_VERSION = "0.1.0"

# Versioned JSON API mount point; auth endpoints live at /auth outside it.
API_V1_PREFIX = "/api/v1"


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Postgres in production; SQLite is fine for local development and tests
    DATABASE_URL: str = "sqlite:///./flow_iq.db"
    # Create tables on startup instead of running alembic (dev only)
    DB_CREATE_ALL: bool = False

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Session tokens (signed JWT in an HTTP-only cookie)
    JWT_SECRET: SecretStr | None = None
    JWT_ALGORITHM: str = "HS256"
    SESSION_EXPIRE_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "auth_token"
    # None: Secure in prod or when the request came in over https
    SESSION_COOKIE_SECURE: bool | None = None

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL or SQLite URL "
                "(e.g. postgresql+psycopg2:// or sqlite:///./flow_iq.db)"
            )
        return v.strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value().strip():
            return None
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        if not v.strip().startswith("HS"):
            raise ValueError("JWT_ALGORITHM must be an HMAC algorithm (HS256, HS384, HS512)")
        return v.strip()

    @field_validator("SESSION_EXPIRE_DAYS")
    @classmethod
    def validate_session_expire_days(cls, v: int) -> int:
        if v < 1 or v > 30:
            raise ValueError("SESSION_EXPIRE_DAYS must be between 1 and 30")
        return v

    @field_validator("SESSION_COOKIE_NAME")
    @classmethod
    def validate_session_cookie_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SESSION_COOKIE_NAME must be set and non-empty")
        return v.strip()

    @model_validator(mode="after")
    def require_secret_in_prod(self) -> "Settings":
        """Refuse to start in prod without a signing secret; use a random one in dev."""
        if self.JWT_SECRET is not None:
            return self
        if self.APP_ENV == "prod":
            raise ValueError("JWT_SECRET must be set when APP_ENV=prod")
        logger.warning(
            "JWT_SECRET is not set; using a random per-process secret. "
            "Sessions will not survive a restart."
        )
        self.JWT_SECRET = SecretStr(secrets.token_urlsafe(48))
        return self

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_EXPIRE_DAYS * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
