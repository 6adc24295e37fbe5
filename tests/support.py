"""Shared helpers for tests: isolated SQLite databases and an app client wired to them."""

from collections.abc import Generator
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from flowiq.core.database import build_engine, get_db
from flowiq.core.rbac import Role
from flowiq.main import app
from flowiq.models import Base
from flowiq.services import auth_service

PASSWORD = "correct-horse-battery"


def fast_bcrypt():
    """Patch bcrypt cost down to the minimum so tests hash quickly."""
    return patch("flowiq.core.security.BCRYPT_ROUNDS", 4)


def memory_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with all tables, shared across threads."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def file_session_factory(path: str) -> sessionmaker:
    """SQLite database file with all tables; one connection per session."""
    engine = build_engine(f"sqlite:///{path}")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def client_for(factory: sessionmaker) -> TestClient:
    """TestClient for the real app with get_db pointing at `factory`. Call app.dependency_overrides.clear() after."""

    def override_get_db() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def seed_user(
    factory: sessionmaker,
    email: str,
    role: Role = Role.VIEWER,
    password: str = PASSWORD,
    name: str | None = None,
):
    """Register a user directly through the auth service and return the sanitized user."""
    db = factory()
    try:
        return auth_service.register(db, email, password, name, role=role)
    finally:
        db.close()
