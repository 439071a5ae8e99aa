"""Tests for subscription tier resolution, billing periods and QuotaPolicy."""

from datetime import UTC, datetime, timedelta

import pytest

from app.core.config import Settings
from app.models.user import User
from app.services.subscription import (
    QuotaPolicy,
    QuotaStatus,
    SubscriptionTier,
    billing_period,
    build_subscription_status,
    days_remaining,
    effective_tier,
    ensure_utc,
    is_subscription_active,
)

_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
_PERIOD_START = datetime(2026, 3, 1, tzinfo=UTC)


def _user(**kwargs) -> User:
    defaults = {"email": "writer@example.com", "is_admin": False}
    defaults.update(kwargs)
    return User(**defaults)


# =============================================================================
# is_subscription_active
# =============================================================================


class TestIsSubscriptionActive:
    """Tests for is_subscription_active()."""

    @pytest.mark.parametrize("status", [None, "", "free"])
    def test_free_or_missing_is_inactive(self, status: str | None) -> None:
        assert is_subscription_active(status, None, _NOW) is False

    def test_admin_always_active(self) -> None:
        past = _NOW - timedelta(days=30)
        assert is_subscription_active("admin", past, _NOW) is True

    def test_future_end_date_is_active(self) -> None:
        assert is_subscription_active("pro", _NOW + timedelta(days=1), _NOW) is True

    def test_past_end_date_is_inactive(self) -> None:
        assert is_subscription_active("pro", _NOW - timedelta(seconds=1), _NOW) is False

    def test_naive_end_date_treated_as_utc(self) -> None:
        naive = (_NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert is_subscription_active("hobby", naive, _NOW) is True

    @pytest.mark.parametrize("status", ["hobby", "pro"])
    def test_paid_without_end_date_is_lifetime(self, status: str) -> None:
        assert is_subscription_active(status, None, _NOW) is True

    def test_unknown_status_without_end_date_is_inactive(self) -> None:
        assert is_subscription_active("enterprise", None, _NOW) is False


# =============================================================================
# effective_tier
# =============================================================================


class TestEffectiveTier:
    """Tests for effective_tier()."""

    def test_admin_flag_wins(self) -> None:
        user = _user(is_admin=True, subscription_status="free")
        assert effective_tier(user, _NOW) is SubscriptionTier.ADMIN

    def test_active_pro(self) -> None:
        user = _user(
            subscription_status="pro",
            subscription_end_date=_NOW + timedelta(days=10),
        )
        assert effective_tier(user, _NOW) is SubscriptionTier.PRO

    def test_lapsed_hobby_falls_back_to_free(self) -> None:
        user = _user(
            subscription_status="hobby",
            subscription_end_date=_NOW - timedelta(days=1),
        )
        assert effective_tier(user, _NOW) is SubscriptionTier.FREE

    def test_unrecognised_status_is_free(self) -> None:
        user = _user(
            subscription_status="enterprise",
            subscription_end_date=_NOW + timedelta(days=1),
        )
        assert effective_tier(user, _NOW) is SubscriptionTier.FREE


# =============================================================================
# billing_period / days_remaining
# =============================================================================


class TestBillingPeriod:
    """Tests for billing_period()."""

    def test_mid_month(self) -> None:
        start, end = billing_period(_NOW)
        assert start == datetime(2026, 3, 1, tzinfo=UTC)
        assert end == datetime(2026, 4, 1, tzinfo=UTC)

    def test_december_rolls_into_next_year(self) -> None:
        start, end = billing_period(datetime(2026, 12, 31, 23, 59, tzinfo=UTC))
        assert start == datetime(2026, 12, 1, tzinfo=UTC)
        assert end == datetime(2027, 1, 1, tzinfo=UTC)

    def test_first_instant_belongs_to_new_month(self) -> None:
        start, _ = billing_period(datetime(2026, 4, 1, tzinfo=UTC))
        assert start == datetime(2026, 4, 1, tzinfo=UTC)


class TestDaysRemaining:
    """Tests for days_remaining()."""

    def test_none_without_end_date(self) -> None:
        assert days_remaining(None, _NOW) is None

    def test_partial_day_rounds_up(self) -> None:
        assert days_remaining(_NOW + timedelta(days=2, hours=1), _NOW) == 3

    def test_past_end_date_is_zero(self) -> None:
        assert days_remaining(_NOW - timedelta(days=5), _NOW) == 0


# =============================================================================
# QuotaPolicy / QuotaStatus
# =============================================================================


class TestQuotaPolicy:
    """Tests for QuotaPolicy limit lookup."""

    @pytest.fixture
    def quota_policy(self) -> QuotaPolicy:
        return QuotaPolicy(
            token_limits={"free": 100, "pro": 1_000},
            image_limits={"free": 1, "pro": 10},
            unlimited_tiers=frozenset({"admin"}),
        )

    def test_known_tier_limit(self, quota_policy: QuotaPolicy) -> None:
        assert quota_policy.token_limit(SubscriptionTier.PRO) == 1_000
        assert quota_policy.image_limit("pro") == 10

    def test_unknown_tier_uses_free_limit(self, quota_policy: QuotaPolicy) -> None:
        """hobby is missing from this policy, so it inherits free limits."""
        assert quota_policy.token_limit(SubscriptionTier.HOBBY) == 100

    def test_unlimited_tier_has_no_limit(self, quota_policy: QuotaPolicy) -> None:
        assert quota_policy.is_unlimited(SubscriptionTier.ADMIN)
        assert quota_policy.token_limit(SubscriptionTier.ADMIN) is None
        assert quota_policy.image_limit(SubscriptionTier.ADMIN) is None

    def test_from_settings(self) -> None:
        config = Settings(
            tier_token_limits={"free": 10, "pro": 20},
            unlimited_tiers=["admin", "pro"],
        )
        built = QuotaPolicy.from_settings(config)
        assert built.token_limit("free") == 10
        assert built.token_limit("pro") is None


class TestQuotaStatus:
    """Tests for QuotaStatus.evaluate()."""

    def test_allowed_is_strictly_less_than(self) -> None:
        at_limit = QuotaStatus.evaluate(
            used=100, limit=100, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        below = QuotaStatus.evaluate(
            used=99, limit=100, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        assert at_limit.allowed is False
        assert below.allowed is True

    def test_remaining_never_negative(self) -> None:
        status = QuotaStatus.evaluate(
            used=150, limit=100, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        assert status.remaining == 0
        assert status.percentage == 100

    def test_unlimited_always_allowed(self) -> None:
        status = QuotaStatus.evaluate(
            used=10**12,
            limit=None,
            tier=SubscriptionTier.ADMIN,
            period_start=_PERIOD_START,
        )
        assert status.allowed is True
        assert status.limit is None
        assert status.remaining is None
        assert status.percentage is None

    def test_percentage_rounds(self) -> None:
        status = QuotaStatus.evaluate(
            used=1, limit=3, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        assert status.percentage == 33

    def test_zero_limit_is_full(self) -> None:
        status = QuotaStatus.evaluate(
            used=0, limit=0, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        assert status.allowed is False
        assert status.percentage == 100


# =============================================================================
# build_subscription_status
# =============================================================================


class TestBuildSubscriptionStatus:
    """Tests for build_subscription_status()."""

    def test_active_pro_overview(self) -> None:
        user = _user(
            subscription_status="pro",
            subscription_plan="pro_monthly",
            subscription_start_date=datetime(2026, 3, 1),
            subscription_end_date=datetime(2026, 4, 1),
        )
        quota = QuotaStatus.evaluate(
            used=10, limit=100, tier=SubscriptionTier.PRO, period_start=_PERIOD_START
        )
        status = build_subscription_status(user, tokens=quota, images=quota, now=_NOW)

        assert status.tier is SubscriptionTier.PRO
        assert status.plan == "pro_monthly"
        assert status.is_active is True
        assert status.start_date == datetime(2026, 3, 1, tzinfo=UTC)
        assert status.days_remaining == 17

    def test_free_user_defaults(self) -> None:
        user = _user(subscription_status="free")
        quota = QuotaStatus.evaluate(
            used=0, limit=5, tier=SubscriptionTier.FREE, period_start=_PERIOD_START
        )
        status = build_subscription_status(user, tokens=quota, images=quota, now=_NOW)

        assert status.tier is SubscriptionTier.FREE
        assert status.plan == "free"
        assert status.is_active is False
        assert status.end_date is None
        assert status.days_remaining is None


def test_ensure_utc_keeps_aware_values() -> None:
    aware = datetime(2026, 1, 1, tzinfo=UTC)
    assert ensure_utc(aware) is aware
    assert ensure_utc(datetime(2026, 1, 1)) == aware
