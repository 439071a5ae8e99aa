"""Usage, quota and subscription request/response schemas.

All monetary values are strings with 6 decimal places.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.usage import MAX_COUNT

# =============================================================================
# Request schemas
# =============================================================================


class RecordUsageRequest(BaseModel):
    """Request body for POST /api/v1/usage/records.

    Attributes:
        project_id: Project the call was made for (omit for user-level usage).
        kind: Request type (script, storyboard, treatment, ...).
        model: Model identifier; must be present in the pricing table.
        input_tokens: Input/prompt tokens consumed.
        output_tokens: Output/completion tokens consumed.
    """

    model_config = ConfigDict(extra="forbid")

    project_id: uuid.UUID | None = None
    kind: str = Field(min_length=1, max_length=50)
    model: str = Field(min_length=1, max_length=100)
    input_tokens: int = Field(ge=0, le=MAX_COUNT)
    output_tokens: int = Field(ge=0, le=MAX_COUNT)


class RecordImageRequest(BaseModel):
    """Request body for POST /api/v1/usage/images."""

    model_config = ConfigDict(extra="forbid")

    project_id: uuid.UUID | None = None
    model: str = Field(min_length=1, max_length=100)
    size: str = Field(min_length=1, max_length=50)
    image_count: int = Field(default=1, ge=1, le=10)


# =============================================================================
# Response schemas
# =============================================================================


class UsageRecordResponse(BaseModel):
    """Single ledger entry.

    Attributes:
        id: Usage record UUID.
        project_id: Project UUID, or None for user-level usage.
        kind: Request type.
        model: Model identifier.
        input_tokens: Input tokens consumed.
        output_tokens: Output tokens consumed.
        tokens: input_tokens + output_tokens.
        images: Images generated.
        cost_usd: Cost with 6 decimal places.
        created_at: When the call was recorded.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    project_id: str | None
    kind: str
    model: str
    input_tokens: int
    output_tokens: int
    tokens: int
    images: int
    cost_usd: str
    created_at: datetime


class UsageSummaryResponse(BaseModel):
    """Response for GET /usage/summary and GET /projects/{id}/usage.

    Totals cover every record; `recent` holds only the requested window.
    """

    model_config = ConfigDict(extra="forbid")

    total_tokens: int
    total_cost_usd: str
    total_images: int
    total_records: int
    recent: list[UsageRecordResponse]


class QuotaResponse(BaseModel):
    """One quota dimension (tokens or images).

    `limit` and `remaining` are null for unlimited tiers.
    """

    model_config = ConfigDict(extra="forbid")

    used: int
    limit: int | None
    remaining: int | None
    allowed: bool
    percentage: int | None


class QuotaOverviewResponse(BaseModel):
    """Response for GET /api/v1/usage/quota."""

    model_config = ConfigDict(extra="forbid")

    tier: str
    period_start: datetime
    tokens: QuotaResponse
    images: QuotaResponse


class SubscriptionStatusResponse(BaseModel):
    """Response for GET /api/v1/subscription/status.

    Attributes:
        tier: Effective tier (free, hobby, pro, admin).
        plan: Purchased plan id, or "free".
        is_active: Whether the stored subscription is currently active.
        start_date: Start of the paid period.
        end_date: End of the paid period.
        days_remaining: Whole days left, or None without an end date.
        period_start: Start of the current billing month.
        tokens: Token quota for the billing month.
        images: Image quota for the billing month.
    """

    model_config = ConfigDict(extra="forbid")

    tier: str
    plan: str
    is_active: bool
    start_date: datetime | None
    end_date: datetime | None
    days_remaining: int | None
    period_start: datetime
    tokens: QuotaResponse
    images: QuotaResponse
