"""Subscription tiers, quota policy and billing periods.

Tier resolution and quota limits are pure functions over the user row and
an injected QuotaPolicy. Usage counts come from the ledger (see
usage_ledger.py); nothing here touches the database.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from app.core.config import Settings, settings
from app.models.user import User

_SECONDS_PER_DAY = 86_400


class SubscriptionTier(str, Enum):
    """Subscription tiers that gate monthly quota."""

    FREE = "free"
    HOBBY = "hobby"
    PRO = "pro"
    ADMIN = "admin"


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from the store."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_subscription_active(
    status: str | None,
    end_date: datetime | None,
    now: datetime,
) -> bool:
    """Whether a stored subscription currently grants its tier.

    Args:
        status: Stored subscription_status.
        end_date: End of the paid period, or None for lifetime/legacy plans.
        now: Reference time (timezone-aware).

    Returns:
        False for free or missing status; True for admin; otherwise True
        while end_date is in the future. Hobby/pro without an end date are
        treated as lifetime plans.
    """
    if not status or status == SubscriptionTier.FREE.value:
        return False
    if status == SubscriptionTier.ADMIN.value:
        return True
    if end_date is not None:
        return ensure_utc(end_date) > now
    return status in (SubscriptionTier.HOBBY.value, SubscriptionTier.PRO.value)


def effective_tier(user: User, now: datetime) -> SubscriptionTier:
    """Resolve the tier a user is billed at right now.

    Admin flag wins. Lapsed or unrecognised statuses fall back to free.
    """
    if user.is_admin:
        return SubscriptionTier.ADMIN
    if not is_subscription_active(
        user.subscription_status, user.subscription_end_date, now
    ):
        return SubscriptionTier.FREE
    try:
        return SubscriptionTier(user.subscription_status)
    except ValueError:
        return SubscriptionTier.FREE


def billing_period(now: datetime) -> tuple[datetime, datetime]:
    """Return the current calendar month in UTC as [start, end)."""
    current = now.astimezone(UTC)
    start = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def days_remaining(end_date: datetime | None, now: datetime) -> int | None:
    """Whole days left in the paid period, rounded up and never negative."""
    if end_date is None:
        return None
    seconds = (ensure_utc(end_date) - now).total_seconds()
    return max(0, math.ceil(seconds / _SECONDS_PER_DAY))


@dataclass(frozen=True)
class QuotaPolicy:
    """Monthly limits per tier.

    Attributes:
        token_limits: Tier name -> tokens per billing month.
        image_limits: Tier name -> images per billing month.
        unlimited_tiers: Tiers that bypass the comparison entirely.
    """

    token_limits: Mapping[str, int]
    image_limits: Mapping[str, int]
    unlimited_tiers: frozenset[str] = field(
        default_factory=lambda: frozenset({SubscriptionTier.ADMIN.value})
    )

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "QuotaPolicy":
        """Build the policy from application settings."""
        return cls(
            token_limits=dict(config.tier_token_limits),
            image_limits=dict(config.tier_image_limits),
            unlimited_tiers=frozenset(config.unlimited_tiers),
        )

    def is_unlimited(self, tier: SubscriptionTier | str) -> bool:
        return _tier_name(tier) in self.unlimited_tiers

    def token_limit(self, tier: SubscriptionTier | str) -> int | None:
        """Monthly token limit, or None for unlimited tiers."""
        return self._limit(self.token_limits, tier)

    def image_limit(self, tier: SubscriptionTier | str) -> int | None:
        """Monthly image limit, or None for unlimited tiers."""
        return self._limit(self.image_limits, tier)

    def _limit(
        self, limits: Mapping[str, int], tier: SubscriptionTier | str
    ) -> int | None:
        name = _tier_name(tier)
        if name in self.unlimited_tiers:
            return None
        # Unknown tiers get free limits
        return limits.get(name, limits[SubscriptionTier.FREE.value])


def _tier_name(tier: SubscriptionTier | str) -> str:
    return tier.value if isinstance(tier, SubscriptionTier) else tier


@dataclass(frozen=True)
class QuotaStatus:
    """Result of a quota check.

    Attributes:
        used: Units consumed in the current billing period.
        limit: Period limit, or None when the tier is unlimited.
        remaining: Units left (never negative), or None when unlimited.
        allowed: used < limit, or always True for unlimited tiers.
        tier: Tier the limit was resolved for.
        period_start: Start of the billing period.
    """

    used: int
    limit: int | None
    remaining: int | None
    allowed: bool
    tier: SubscriptionTier
    period_start: datetime

    @property
    def percentage(self) -> int | None:
        """Share of the limit used, capped at 100. None when unlimited."""
        if self.limit is None:
            return None
        if self.limit == 0:
            return 100
        return min(100, round(self.used / self.limit * 100))

    @classmethod
    def evaluate(
        cls,
        *,
        used: int,
        limit: int | None,
        tier: SubscriptionTier,
        period_start: datetime,
    ) -> "QuotaStatus":
        """Compare usage against a limit; a None limit always allows."""
        if limit is None:
            return cls(
                used=used,
                limit=None,
                remaining=None,
                allowed=True,
                tier=tier,
                period_start=period_start,
            )
        return cls(
            used=used,
            limit=limit,
            remaining=max(0, limit - used),
            allowed=used < limit,
            tier=tier,
            period_start=period_start,
        )


@dataclass(frozen=True)
class SubscriptionStatus:
    """Subscription overview for the account page."""

    tier: SubscriptionTier
    plan: str
    is_active: bool
    start_date: datetime | None
    end_date: datetime | None
    days_remaining: int | None
    tokens: QuotaStatus
    images: QuotaStatus


def build_subscription_status(
    user: User,
    *,
    tokens: QuotaStatus,
    images: QuotaStatus,
    now: datetime,
) -> SubscriptionStatus:
    """Assemble the subscription overview from a user row and quota checks."""
    return SubscriptionStatus(
        tier=effective_tier(user, now),
        plan=user.subscription_plan or SubscriptionTier.FREE.value,
        is_active=is_subscription_active(
            user.subscription_status, user.subscription_end_date, now
        ),
        start_date=(
            ensure_utc(user.subscription_start_date)
            if user.subscription_start_date
            else None
        ),
        end_date=(
            ensure_utc(user.subscription_end_date)
            if user.subscription_end_date
            else None
        ),
        days_remaining=days_remaining(user.subscription_end_date, now),
        tokens=tokens,
        images=images,
    )
