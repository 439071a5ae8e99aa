import os

# Rate limiting is exercised explicitly in unit/test_api_auth.py
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import jwt  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from pydantic import SecretStr  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings  # noqa: E402
from app.models.base import Base  # noqa: E402

# Test user ID (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

# Second user for cross-tenant tests
USER_B_ID = uuid.UUID("00000000-0000-0000-0000-000000000099")

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow


def create_test_jwt(
    user_id: uuid.UUID = TEST_USER_ID,
    *,
    secret: str = TEST_AUTH_SECRET,
    expires_delta: timedelta | None = None,
    iat: datetime | None = None,
) -> str:
    """Create a signed JWT for test authentication.

    Args:
        user_id: User UUID to encode in the sub claim.
        secret: Signing secret (must match settings.auth_secret in tests).
        expires_delta: Time until expiration. Defaults to 1 hour.
        iat: Issued-at time. Defaults to now.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "aud": settings.auth_audience,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": iat or now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Create a throwaway SQLite database for one test.

    Same SQLAlchemy models and repositories as production; only the driver
    differs (aiosqlite instead of asyncpg).
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """Create the authenticated test user (verified, free tier).

    Args:
        db_session: Database session from db_session fixture.

    Yields:
        User model instance.
    """
    from app.models import User

    user = User(
        id=TEST_USER_ID,
        email="test@example.com",
        email_verified=datetime.now(UTC),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    yield user


@pytest_asyncio.fixture
async def user_b(db_session: AsyncSession):
    """Create User B for cross-tenant isolation tests.

    Args:
        db_session: Database session from db_session fixture.

    Yields:
        User model instance for User B.
    """
    from app.models import User

    user = User(id=USER_B_ID, email="userb@example.com")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    yield user


# =============================================================================
# API Test Fixtures
# =============================================================================


def _override_db(db_engine):
    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest_asyncio.fixture
async def client(
    db_engine,
    test_user,  # noqa: ARG001 - ensures user exists
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for authenticated API tests.

    Enables auth_enabled=True and injects a valid JWT for TEST_USER_ID.

    Sets up:
    - Test database connection via dependency override
    - JWT auth with test secret
    - httpx.AsyncClient with ASGI transport + auth cookie

    Yields:
        Configured AsyncClient for making authenticated API requests.
    """
    from app.core.database import get_db
    from app.main import app

    app.dependency_overrides[get_db] = _override_db(db_engine)

    original_auth_enabled = settings.auth_enabled
    original_auth_secret = settings.auth_secret
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={settings.auth_cookie_name: create_test_jwt(TEST_USER_ID)},
    ) as ac:
        yield ac

    settings.auth_enabled = original_auth_enabled
    settings.auth_secret = original_auth_secret
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unauthenticated_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client without authentication.

    Auth is enabled but no JWT cookie is provided. Used for 401 tests and
    for the public registration/verification endpoints.

    Yields:
        AsyncClient with no auth cookie.
    """
    from app.core.database import get_db
    from app.main import app

    app.dependency_overrides[get_db] = _override_db(db_engine)

    original_auth_enabled = settings.auth_enabled
    original_auth_secret = settings.auth_secret
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    settings.auth_enabled = original_auth_enabled
    settings.auth_secret = original_auth_secret
    app.dependency_overrides.clear()
