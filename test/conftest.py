"""
Pytest configuration and fixtures for the CMS tests

Tests run against an in-memory SQLite database shared through a
StaticPool; tables are created and dropped around every test.
"""

import os
from collections.abc import AsyncGenerator
from unittest.mock import patch

# Point the app at the test database before anything reads the settings
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["DEBUG"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.future import select  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.database as database_module  # noqa: E402
from app.auth import create_access_token, hash_password  # noqa: E402
from app.database import Base  # noqa: E402
from app.models.user import Group, Throttle, User  # noqa: E402

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)

# Replace the app's engine and session maker with test versions
database_module.engine = test_engine
database_module.AsyncSessionLocal = TestSessionLocal

from main import app  # noqa: E402

USERS_GROUP_ID = 1
ADMIN_GROUP_ID = 2


@pytest.fixture(scope="function")
async def setup_test_database():
    """Fresh schema plus the two default groups for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        session.add_all(
            [
                Group(id=USERS_GROUP_ID, name="Users", permissions={}),
                Group(id=ADMIN_GROUP_ID, name="Admin", permissions={"superuser": 1}),
            ]
        )
        await session.commit()

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def test_db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
async def client(setup_test_database) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(
    db: AsyncSession,
    email: str,
    password: str,
    group_id: int | None = USERS_GROUP_ID,
    activated: bool = True,
) -> User:
    user = User(
        email=email,
        first_name="Test",
        last_name="User",
        hashed_password=hash_password(password),
        activated=activated,
        persist_code=f"persist-{email}",
        throttle=Throttle(),
    )
    if group_id is not None:
        group = (await db.execute(select(Group).where(Group.id == group_id))).scalars().first()
        user.groups.append(group)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def test_user(test_db: AsyncSession) -> User:
    return await make_user(test_db, "user@example.com", "userpassword")


@pytest.fixture
async def test_admin(test_db: AsyncSession) -> User:
    return await make_user(test_db, "admin@example.com", "adminpassword", group_id=ADMIN_GROUP_ID)


def token_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "pc": user.persist_code})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return token_headers(test_user)


@pytest.fixture
def admin_auth_headers(test_admin: User) -> dict:
    return token_headers(test_admin)


@pytest.fixture
def mock_smtp():
    """Patch SMTP so no mail leaves the test run; yields the connection mock."""
    with patch("app.services.email_service.smtplib.SMTP") as smtp_class:
        yield smtp_class.return_value.__enter__.return_value


@pytest.fixture
def user_factory(test_db: AsyncSession):
    """Create extra users inside a test: ``await user_factory(email, password, activated=False)``."""

    async def factory(email: str, password: str, **kwargs) -> User:
        return await make_user(test_db, email, password, **kwargs)

    return factory
