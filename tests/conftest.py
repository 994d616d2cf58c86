"""Test configuration and fixtures.

Each test gets its own in-memory SQLite database:
1. A fresh engine and schema are created per test (StaticPool keeps the single
   in-memory connection alive for the whole test)
2. The FastAPI session dependency is overridden to share the test's session
3. Services may commit freely; the database disappears with the engine
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from dotenv import load_dotenv

# Load test environment variables before any application module reads settings
test_env_path = Path(__file__).parent.parent / ".env.test"
load_dotenv(test_env_path, override=True)

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.database.base import Base  # noqa: E402
from src.database.dependencies import get_db_session  # noqa: E402
from src.features.auth.service import AuthService  # noqa: E402
from src.features.user.models import User, UserStatus  # noqa: E402
from src.features.user.roles import Role  # noqa: E402
from src.main import app  # noqa: E402

# Database Fixtures - Function Scope (fresh database per test)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session per test."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as async_session:
        yield async_session


# FastAPI Client & Dependency Overrides


@pytest_asyncio.fixture
async def override_get_db_session(session: AsyncSession):
    """Override the database session dependency with the test session.

    Endpoints then see exactly the rows the test created.
    """

    async def _get_test_session():
        yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(override_get_db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client.

    This client is unauthenticated. Use ``login_as`` to get bearer headers.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# Test User Factories


@pytest_asyncio.fixture
async def make_user(session: AsyncSession):
    """Factory fixture to create test users with custom fields.

    Usage:
        user = await make_user()                                # a PILOT
        admin = await make_user(roles=[Role.SUPER_ADMIN])       # super admin
        locked = await make_user(status=UserStatus.LOCKED)      # locked user
    """
    counter = 0  # Counter for unique email generation

    async def _factory(
        email=None,
        first_name="Test",
        last_name="Pilot",
        password="TestPass123!",
        roles=None,
        status=UserStatus.ACTIVE,
        **kwargs,
    ) -> User:
        nonlocal counter
        counter += 1

        if email is None:
            email = f"pilot{counter}@example.com"

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=User.hash_password(password),
            roles=[role.value for role in (roles or [Role.PILOT])],
            status=status.value,
            **kwargs,
        )

        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user

    yield _factory


@pytest_asyncio.fixture
async def login_as(session: AsyncSession):
    """Issue real tokens for a user and return them with a bearer header.

    Usage:
        tokens, headers = await login_as(user)
    """

    async def _login(user: User):
        tokens = await AuthService.issue_tokens(session, user)
        await session.commit()
        return tokens, {"Authorization": f"Bearer {tokens.access_token}"}

    yield _login
