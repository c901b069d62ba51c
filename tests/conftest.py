"""
Shared test fixtures for the community portal test suite.

Every test gets a fresh in-memory aiosqlite database; the app's ``get_db``
dependency is overridden to use it.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["MAIL_HOST"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from community.api.v1.deps import get_db
from community.core.security import create_access_token, get_password_hash
from community.db.base import Base
from community.main import app
from community.models.enums import RoleName
from community.models.user import User
from community.repositories.users import UserRepository, ensure_roles

DEFAULT_PASSWORD = "secret1"


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema (with the role set seeded) on a private in-memory engine."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await ensure_roles(session)

    yield factory
    await test_engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app and the test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating committed accounts, optionally with roles."""

    async def _make_user(
        username: str,
        *roles: RoleName,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        confirmed: bool = True,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=get_password_hash(password),
            is_confirmed=confirmed,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        if roles:
            await UserRepository(db_session).set_roles(user.id, set(roles))
        return user

    return _make_user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
