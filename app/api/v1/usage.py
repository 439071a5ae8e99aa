"""Usage API router.

Endpoints for recording AI usage, summaries, paginated history and quota.
All endpoints require authentication. Monetary values are strings with 6 decimals.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import CurrentUserId, DbSession, Ledger
from app.core.errors import NotFoundError
from app.core.pagination import PaginationParams, pagination_params
from app.core.responses import DataResponse, ListResponse, PaginationMeta
from app.models.usage import UsageRecord
from app.repositories.project_repository import ProjectRepository
from app.schemas.usage import (
    QuotaOverviewResponse,
    QuotaResponse,
    RecordImageRequest,
    RecordUsageRequest,
    UsageRecordResponse,
    UsageSummaryResponse,
)
from app.services.subscription import QuotaStatus, ensure_utc
from app.services.usage_ledger import DEFAULT_SUMMARY_WINDOW, UsageSummary

router = APIRouter()

# =============================================================================
# Shared types
# =============================================================================

_DECIMAL_FMT = "{:.6f}"
Pagination = Annotated[PaginationParams, Depends(pagination_params)]

SummaryWindow = Annotated[
    int,
    Query(ge=1, le=100, description="Number of recent records to include"),
]
KindFilter = Annotated[
    str | None,
    Query(max_length=50, description="Filter by request type"),
]


def record_to_response(record: UsageRecord) -> UsageRecordResponse:
    """Serialize a ledger row."""
    return UsageRecordResponse(
        id=str(record.id),
        project_id=str(record.project_id) if record.project_id else None,
        kind=record.kind,
        model=record.model,
        input_tokens=record.input_tokens,
        output_tokens=record.output_tokens,
        tokens=record.tokens,
        images=record.images,
        cost_usd=_DECIMAL_FMT.format(record.cost),
        created_at=ensure_utc(record.created_at),
    )


def summary_to_response(summary: UsageSummary) -> UsageSummaryResponse:
    """Serialize a usage summary."""
    return UsageSummaryResponse(
        total_tokens=summary.total_tokens,
        total_cost_usd=_DECIMAL_FMT.format(summary.total_cost),
        total_images=summary.total_images,
        total_records=summary.total_records,
        recent=[record_to_response(r) for r in summary.records],
    )


def quota_to_response(status: QuotaStatus) -> QuotaResponse:
    """Serialize one quota dimension."""
    return QuotaResponse(
        used=status.used,
        limit=status.limit,
        remaining=status.remaining,
        allowed=status.allowed,
        percentage=status.percentage,
    )


async def _require_owned_project(
    db: DbSession, project_id: uuid.UUID | None, user_id: uuid.UUID
) -> None:
    if project_id is None:
        return
    project = await ProjectRepository.get_owned(db, project_id, user_id)
    if project is None:
        raise NotFoundError("Project", str(project_id))


# =============================================================================
# POST /records
# =============================================================================


@router.post("/records", status_code=201)
async def record_usage(
    body: RecordUsageRequest,
    user_id: CurrentUserId,
    db: DbSession,
    ledger: Ledger,
) -> DataResponse[UsageRecordResponse]:
    """Record one text-generation call for the current user.

    A project_id must belong to the caller (404 otherwise). Unknown
    models are rejected with 400 UNREGISTERED_MODEL.
    """
    await _require_owned_project(db, body.project_id, user_id)

    record = await ledger.record_usage(
        user_id=user_id,
        project_id=body.project_id,
        kind=body.kind,
        model=body.model,
        input_tokens=body.input_tokens,
        output_tokens=body.output_tokens,
    )
    await db.commit()
    return DataResponse(data=record_to_response(record))


# =============================================================================
# POST /images
# =============================================================================


@router.post("/images", status_code=201)
async def record_images(
    body: RecordImageRequest,
    user_id: CurrentUserId,
    db: DbSession,
    ledger: Ledger,
) -> DataResponse[UsageRecordResponse]:
    """Record one image-generation call for the current user."""
    await _require_owned_project(db, body.project_id, user_id)

    record = await ledger.record_image_generation(
        user_id=user_id,
        project_id=body.project_id,
        model=body.model,
        size=body.size,
        image_count=body.image_count,
    )
    await db.commit()
    return DataResponse(data=record_to_response(record))


# =============================================================================
# GET /summary
# =============================================================================


@router.get("/summary")
async def get_summary(
    user_id: CurrentUserId,
    ledger: Ledger,
    window: SummaryWindow = DEFAULT_SUMMARY_WINDOW,
) -> DataResponse[UsageSummaryResponse]:
    """Return all-time totals plus the most recent records.

    Totals always cover every record, not just the window.
    """
    summary = await ledger.get_user_summary(user_id, window=window)
    return DataResponse(data=summary_to_response(summary))


# =============================================================================
# GET /history
# =============================================================================


@router.get("/history")
async def get_history(
    user_id: CurrentUserId,
    ledger: Ledger,
    pagination: Pagination,
    kind: KindFilter = None,
) -> ListResponse[UsageRecordResponse]:
    """Return paginated usage records, newest first."""
    records, total = await ledger.list_history(
        user_id,
        offset=pagination.offset,
        limit=pagination.limit,
        kind=kind,
    )
    return ListResponse(
        data=[record_to_response(r) for r in records],
        meta=PaginationMeta(
            total=total,
            page=pagination.page,
            per_page=pagination.per_page,
        ),
    )


# =============================================================================
# GET /quota
# =============================================================================


@router.get("/quota")
async def get_quota(
    user_id: CurrentUserId,
    ledger: Ledger,
) -> DataResponse[QuotaOverviewResponse]:
    """Return this billing month's token and image quota."""
    tokens = await ledger.check_quota(user_id)
    images = await ledger.check_image_quota(user_id)
    return DataResponse(
        data=QuotaOverviewResponse(
            tier=tokens.tier.value,
            period_start=tokens.period_start,
            tokens=quota_to_response(tokens),
            images=quota_to_response(images),
        )
    )
