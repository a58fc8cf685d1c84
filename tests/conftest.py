"""Pytest configuration and fixtures.

Database handling:
- TEST_DATABASE_URL, when set, points the DB fixtures at a real server
  (e.g. postgresql+asyncpg://...)
- Otherwise every test gets a fresh SQLite file through aiosqlite
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment variables before importing app modules
_tmp_dir = tempfile.mkdtemp(prefix="sessionward-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/app.db"
os.environ["JWT_SECRET"] = "test-secret-" + "x" * 32
os.environ["REVOCATION_CLEANUP_INTERVAL_SECONDS"] = "0"

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
TEST_USER_EMAIL = "test@example.com"
TEST_USER_USERNAME = "testuser"
TEST_USER_PASSWORD = "Passw0rd!"


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a database engine with all tables for one test."""
    from sessionward.core.database import Base
    from sessionward.models import TokenBlacklist, User  # noqa: F401

    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path}/test.db"
    engine = create_async_engine(url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# --- Token Fixtures ---


@pytest.fixture
def session_config():
    """Token configuration used by service and API tests."""
    from sessionward.core.config import SessionConfig

    return SessionConfig(
        secret=TEST_SECRET,
        algorithm="HS256",
        expires_in="1d",
        cookie_domain="example.com",
    )


@pytest.fixture
def token_user():
    """A user-like object with the attributes the issuer reads."""
    return SimpleNamespace(
        id=1,
        username=TEST_USER_USERNAME,
        email=TEST_USER_EMAIL,
        verified=False,
    )


# --- User Fixtures ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test users."""
    from sessionward.models.user import User
    from sessionward.services.auth import hash_password

    async def _create_user(
        email: str = TEST_USER_EMAIL,
        username: str | None = TEST_USER_USERNAME,
        password: str = TEST_USER_PASSWORD,
        name: str | None = "Test User",
        disabled: bool = False,
        verified: bool = False,
    ) -> User:
        user = User(
            email=email,
            username=username,
            name=name,
            password_hash=hash_password(password),
            disabled=disabled,
            verified=verified,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def test_user(user_factory):
    """Create the default test user."""
    return await user_factory()


# --- HTTP Client ---


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory, session_config) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the test database and token configuration."""
    from sessionward.api.access import get_session_config
    from sessionward.core.database import get_db
    from sessionward.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_config] = lambda: session_config

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def session_token_from(response) -> str:
    """Token value from the response's Set-Cookie header."""
    cookie = response.headers["set-cookie"]
    name_value = cookie.split(";", 1)[0]
    return name_value.split("=", 1)[1]


def cookie_header(token: str) -> dict[str, str]:
    return {"Cookie": f"Authentication={token}"}
