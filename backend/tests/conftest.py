"""Pytest fixtures for backend tests."""

import os
import uuid
from collections.abc import AsyncGenerator

# Settings reject the default JWT secret outside DEBUG mode
os.environ.setdefault("DEBUG", "true")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clientdesk.core.security import create_access_token, get_password_hash
from clientdesk.db.base import Base
from clientdesk.db.session import get_db
from clientdesk.main import app
from clientdesk.models.user import User
from clientdesk.services.login_throttle import LoginThrottle

# In-memory SQLite keeps the suite independent of a running PostgreSQL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Passw0rd!"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine with fresh tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_user(test_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        id=uuid.uuid4(),
        name="Test User",
        email="test@example.com",
        password_hash=get_password_hash(TEST_PASSWORD),
    )
    test_session.add(user)
    await test_session.commit()
    await test_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_token(test_user: User) -> str:
    """Create a test JWT token."""
    return create_access_token(data={"sub": str(test_user.id)})


@pytest.fixture(autouse=True)
def login_throttle() -> LoginThrottle:
    """Give every test its own empty login throttle."""
    throttle = LoginThrottle(max_attempts=5, window_seconds=30 * 60)
    app.state.login_throttle = throttle
    return throttle


@pytest_asyncio.fixture(scope="function")
async def client(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an unauthenticated test client."""
    async def override():
        yield test_session

    app.dependency_overrides[get_db] = override

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def authenticated_client(
    test_session: AsyncSession, test_token: str
) -> AsyncGenerator[AsyncClient, None]:
    """Create an authenticated test client."""

    async def override():
        yield test_session

    app.dependency_overrides[get_db] = override

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {test_token}"},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
