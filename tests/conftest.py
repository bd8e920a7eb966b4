"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src import models  # noqa: F401
from src.api.dependencies import get_password_hasher
from src.database import Base, get_db
from src.main import app
from src.services.auth import PasswordHasher
from src.services.user_store import UserStore

TEST_PASSWORD = "testpass123"  # noqa: S105


class RegisteredUser(dict):
    """Dict of the registration response user, plus the issued tokens."""

    def __init__(self, *args, password: str, access_token: str, refresh_token: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.password = password
        self.access_token = access_token
        self.refresh_token = refresh_token

    @property
    def id(self) -> int:
        return self["id"]

    @property
    def email(self) -> str:
        return self["email"]


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL", "").startswith("postgresql"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/auth_service", "/auth_service_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def hasher():
    """Cheap bcrypt settings so tests stay fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture(scope="function")
def client(db, hasher):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, name: str = "Test User", password: str = TEST_PASSWORD):
    """Register a user through the API and return their RegisteredUser."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201
    return RegisteredUser(
        response.json()["user"],
        password=password,
        access_token=response.cookies["access_token"],
        refresh_token=response.cookies["refresh_token"],
    )


@pytest.fixture
def registered_user(client):
    """Register a user; the client keeps their session cookies."""
    return register(client, "test@example.com")


@pytest.fixture
def other_user(db, hasher, registered_user):
    """A second user, created straight in the store so the client keeps its session."""
    return UserStore(db).create(
        email="other@example.com",
        password_hash=hasher.hash(TEST_PASSWORD),
        name="Other User",
        age=41,
    )
