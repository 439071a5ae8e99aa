"""Usage ledger — records AI usage and answers summary and quota queries.

One UsageRecord is inserted per billable call with tokens and cost fixed at
creation. The ledger performs no authorization: callers confirm the acting
user owns user_id/project_id before invoking it. Store failures propagate
unchanged and are never retried here.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.models.usage import MAX_COUNT, UsageKind, UsageRecord
from app.repositories.usage_repository import UsageRepository
from app.repositories.user_repository import UserRepository
from app.services.pricing import PricingTable
from app.services.subscription import (
    QuotaPolicy,
    QuotaStatus,
    billing_period,
    effective_tier,
)

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_WINDOW = 5


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_count(name: str, value: int) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"{name} must be a non-negative integer",
            details=[{"field": name, "value": repr(value)}],
        )
    if value > MAX_COUNT:
        raise ValidationError(
            f"{name} must be at most {MAX_COUNT}",
            details=[{"field": name, "value": repr(value)}],
        )


@dataclass(frozen=True)
class UsageSummary:
    """Aggregated usage plus the most recent records.

    Totals cover every matching record; `records` is only the recent window.
    """

    total_tokens: int
    total_cost: Decimal
    total_images: int
    total_records: int
    records: list[UsageRecord]


class UsageLedger:
    """Append-only accounting of token and image usage.

    Args:
        db: Async database session. The caller owns the transaction.
        pricing: Price table used to compute cost at record time.
        policy: Quota limits per subscription tier.
        now: Clock, injectable for tests.
    """

    def __init__(
        self,
        db: AsyncSession,
        pricing: PricingTable,
        policy: QuotaPolicy,
        *,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = db
        self._pricing = pricing
        self._policy = policy
        self._now = now

    # =========================================================================
    # Recording
    # =========================================================================

    async def record_usage(
        self,
        *,
        user_id: uuid.UUID,
        kind: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        project_id: uuid.UUID | None = None,
    ) -> UsageRecord:
        """Record one text-generation call.

        tokens = input_tokens + output_tokens
        cost = input_tokens/1000 * price.input + output_tokens/1000 * price.output

        Args:
            user_id: User the usage is billed to.
            kind: Request type (script, storyboard, ...).
            model: Key into the pricing table.
            input_tokens: Input/prompt tokens consumed.
            output_tokens: Output/completion tokens consumed.
            project_id: Project the call was made for, or None.

        Returns:
            The inserted UsageRecord.

        Raises:
            ValidationError: If a token count is negative, not an integer, or
                larger than the count columns hold.
            UnregisteredModelError: If the model has no configured price.
        """
        _require_count("input_tokens", input_tokens)
        _require_count("output_tokens", output_tokens)
        _require_count("tokens", input_tokens + output_tokens)
        if not kind:
            raise ValidationError("kind is required")

        cost = self._pricing.cost_for(model, input_tokens, output_tokens)
        record = await UsageRepository.create(
            self._db,
            user_id=user_id,
            project_id=project_id,
            kind=kind,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            tokens=input_tokens + output_tokens,
            cost=cost,
            created_at=self._now(),
        )
        logger.info(
            "Recorded %s usage for user %s: %d tokens, $%s (%s)",
            kind,
            user_id,
            record.tokens,
            cost,
            model,
        )
        return record

    async def record_image_generation(
        self,
        *,
        user_id: uuid.UUID,
        model: str,
        size: str,
        image_count: int = 1,
        project_id: uuid.UUID | None = None,
    ) -> UsageRecord:
        """Record one image-generation call.

        Args:
            user_id: User the usage is billed to.
            model: Image model (e.g. "dall-e-3").
            size: Size key in the image price table.
            image_count: Images generated (at least 1).
            project_id: Project the images belong to, or None.

        Returns:
            The inserted UsageRecord (tokens = 0, kind = "image").

        Raises:
            ValidationError: If image_count is not a positive integer.
            UnregisteredModelError: If the model or size has no configured price.
        """
        _require_count("image_count", image_count)
        if image_count == 0:
            raise ValidationError("image_count must be at least 1")

        cost = self._pricing.image_cost(model, size, image_count)
        record = await UsageRepository.create(
            self._db,
            user_id=user_id,
            project_id=project_id,
            kind=UsageKind.IMAGE,
            model=model,
            input_tokens=0,
            output_tokens=0,
            tokens=0,
            images=image_count,
            cost=cost,
            created_at=self._now(),
        )
        logger.info(
            "Recorded %d image(s) for user %s: $%s (%s %s)",
            image_count,
            user_id,
            cost,
            model,
            size,
        )
        return record

    # =========================================================================
    # Summaries
    # =========================================================================

    async def get_user_summary(
        self,
        user_id: uuid.UUID,
        *,
        window: int = DEFAULT_SUMMARY_WINDOW,
    ) -> UsageSummary:
        """Summarize all usage for a user with the `window` most recent records."""
        return await self._summary(user_id=user_id, window=window)

    async def get_project_summary(
        self,
        project_id: uuid.UUID,
        *,
        window: int = DEFAULT_SUMMARY_WINDOW,
    ) -> UsageSummary:
        """Summarize all usage for a project with the `window` most recent records."""
        return await self._summary(project_id=project_id, window=window)

    async def _summary(
        self,
        *,
        user_id: uuid.UUID | None = None,
        project_id: uuid.UUID | None = None,
        window: int,
    ) -> UsageSummary:
        if window < 0:
            raise ValidationError("window must be non-negative")

        totals = await UsageRepository.get_totals(
            self._db, user_id=user_id, project_id=project_id
        )
        records: list[UsageRecord] = []
        if window > 0:
            records, _ = await UsageRepository.list_records(
                self._db,
                user_id=user_id,
                project_id=project_id,
                limit=window,
            )
        return UsageSummary(
            total_tokens=totals["total_tokens"],
            total_cost=totals["total_cost"],
            total_images=totals["total_images"],
            total_records=totals["total_records"],
            records=records,
        )

    async def list_history(
        self,
        user_id: uuid.UUID,
        *,
        offset: int = 0,
        limit: int = 50,
        kind: str | None = None,
    ) -> tuple[list[UsageRecord], int]:
        """Page through a user's records newest first.

        Returns:
            Tuple of (records list, total count).
        """
        return await UsageRepository.list_records(
            self._db, user_id=user_id, offset=offset, limit=limit, kind=kind
        )

    # =========================================================================
    # Quota
    # =========================================================================

    async def check_quota(self, user_id: uuid.UUID) -> QuotaStatus:
        """Compare this month's token usage against the user's tier limit.

        Unlimited tiers are always allowed and carry no numeric limit.

        Raises:
            NotFoundError: If the user does not exist.
        """
        return await self._check(user_id, images=False)

    async def check_image_quota(self, user_id: uuid.UUID) -> QuotaStatus:
        """Compare this month's image count against the user's tier limit.

        Raises:
            NotFoundError: If the user does not exist.
        """
        return await self._check(user_id, images=True)

    async def _check(self, user_id: uuid.UUID, *, images: bool) -> QuotaStatus:
        user = await UserRepository.get_by_id(self._db, user_id)
        if user is None:
            raise NotFoundError("User")

        now = self._now()
        tier = effective_tier(user, now)
        period_start, period_end = billing_period(now)

        if images:
            limit = self._policy.image_limit(tier)
        else:
            limit = self._policy.token_limit(tier)

        totals = await UsageRepository.get_totals(
            self._db,
            user_id=user_id,
            period_start=period_start,
            period_end=period_end,
        )
        used = totals["total_images"] if images else totals["total_tokens"]

        status = QuotaStatus.evaluate(
            used=used, limit=limit, tier=tier, period_start=period_start
        )
        if not status.allowed:
            logger.warning(
                "%s quota exhausted for user %s (%s tier): %d/%s",
                "Image" if images else "Token",
                user_id,
                tier.value,
                used,
                limit,
            )
        return status
