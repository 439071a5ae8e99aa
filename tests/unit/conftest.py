"""Shared fixtures for repository and service tests.

Names chosen to avoid shadowing top-level conftest fixtures
(test_user, user_b, etc.). Pricing and quota fixtures are deterministic
and independent of environment overrides.
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ModelPrice
from app.models.project import Project
from app.models.user import User
from app.services.pricing import PricingTable
from app.services.subscription import QuotaPolicy


@pytest.fixture
async def user_a(db_session: AsyncSession) -> User:
    """Create User A for repository tests."""
    user = User(email="usera@test.com")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create a second user for cross-tenant repository tests."""
    user = User(email="other@test.com")
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def project_a(db_session: AsyncSession, user_a: User) -> Project:
    """Create a project owned by User A."""
    project = Project(user_id=user_a.id, title="The Lighthouse Keeper")
    db_session.add(project)
    await db_session.flush()
    await db_session.refresh(project)
    return project


@pytest.fixture
def pricing() -> PricingTable:
    """Deterministic pricing table."""
    return PricingTable(
        model_prices={
            "gpt-4": ModelPrice(input=Decimal("0.03"), output=Decimal("0.06")),
            "gpt-3.5-turbo": ModelPrice(
                input=Decimal("0.0005"), output=Decimal("0.0015")
            ),
        },
        image_prices={
            "dall-e-3": {
                "1024x1024": Decimal("0.04"),
                "1792x1024_hd": Decimal("0.12"),
            },
        },
    )


@pytest.fixture
def policy() -> QuotaPolicy:
    """Deterministic quota policy."""
    return QuotaPolicy(
        token_limits={"free": 5_000, "hobby": 25_000, "pro": 100_000},
        image_limits={"free": 5, "hobby": 25, "pro": 100},
        unlimited_tiers=frozenset({"admin"}),
    )
