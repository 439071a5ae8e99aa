"""Subscription status router.

GET /subscription/status — effective tier, paid period and monthly quota.
"""

from datetime import UTC, datetime

from fastapi import APIRouter

from app.api.deps import CurrentUserId, DbSession, Ledger
from app.api.v1.usage import quota_to_response
from app.core.errors import NotFoundError
from app.core.responses import DataResponse
from app.repositories.user_repository import UserRepository
from app.schemas.usage import SubscriptionStatusResponse
from app.services.subscription import build_subscription_status

router = APIRouter()


@router.get("/status")
async def get_subscription_status(
    user_id: CurrentUserId,
    db: DbSession,
    ledger: Ledger,
) -> DataResponse[SubscriptionStatusResponse]:
    """Return the caller's subscription overview.

    Lapsed paid plans report tier "free" with is_active false.
    """
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User")

    tokens = await ledger.check_quota(user_id)
    images = await ledger.check_image_quota(user_id)
    status = build_subscription_status(
        user, tokens=tokens, images=images, now=datetime.now(UTC)
    )

    return DataResponse(
        data=SubscriptionStatusResponse(
            tier=status.tier.value,
            plan=status.plan,
            is_active=status.is_active,
            start_date=status.start_date,
            end_date=status.end_date,
            days_remaining=status.days_remaining,
            period_start=tokens.period_start,
            tokens=quota_to_response(status.tokens),
            images=quota_to_response(status.images),
        )
    )
