"""Pytest fixtures for backend tests."""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.config import settings
from backend.core.protection import build_protector
from backend.core.security import create_access_token, hash_password
from backend.database import Base, get_db
from backend.main import app
from backend.models.user import User, UserRole


@pytest.fixture(scope="function")
def test_db_engine():
    """Create a database engine for testing.

    Uses a private in-memory SQLite database unless TEST_DATABASE_URL
    points at a real server.
    """
    test_db_url = os.getenv("TEST_DATABASE_URL")
    if test_db_url:
        engine = create_engine(test_db_url, pool_pre_ping=True)
    else:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup: drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create a database session for testing with automatic rollback."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine,
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        # Rollback any uncommitted changes to clean up test data
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def test_client(test_db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override and fresh rate limits."""

    def override_get_db() -> Generator[Session, None, None]:
        """Override get_db dependency to use test database session."""
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    original_protector = app.state.protector
    app.state.protector = build_protector(settings)

    client = TestClient(app)

    try:
        yield client
    finally:
        app.dependency_overrides.clear()
        app.state.protector = original_protector


@pytest.fixture(scope="function")
def create_user(test_db_session: Session) -> Callable:
    """Factory function to create users directly in the database.

    Args:
        test_db_session: Database session fixture

    Returns:
        Function that creates a user with given parameters and returns (user, token)

    Example:
        ```python
        def test_example(create_user):
            user, token = create_user(
                email="test@example.com",
                password="testpassword123",
                name="Test User"
            )
            assert user.email == "test@example.com"
            # Send the token as the session cookie
        ```
    """

    def _create_user(
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.USER,
    ) -> tuple[User, str]:
        """Create a user in the database and return user with session token.

        Args:
            email: User email address
            password: Plain text password (will be hashed)
            name: User name
            role: User role (default: user)

        Returns:
            Tuple of (Created User object, signed session token)
        """
        now = datetime.now(timezone.utc)
        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password),
            role=role,
            created_at=now,
            updated_at=now,
        )
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)

        token = create_access_token({"id": user.id, "email": user.email, "role": user.role})

        return user, token

    return _create_user


@pytest.fixture
def session_cookie() -> Callable[[str], dict[str, str]]:
    """Build request headers carrying a token as the session cookie."""

    def _session_cookie(token: str) -> dict[str, str]:
        return {"Cookie": f"token={token}"}

    return _session_cookie
