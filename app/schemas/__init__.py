"""Pydantic request/response schemas for API endpoints."""

from app.schemas.usage import (
    QuotaOverviewResponse,
    QuotaResponse,
    RecordImageRequest,
    RecordUsageRequest,
    SubscriptionStatusResponse,
    UsageRecordResponse,
    UsageSummaryResponse,
)

__all__ = [
    # Requests
    "RecordImageRequest",
    "RecordUsageRequest",
    # Responses
    "QuotaOverviewResponse",
    "QuotaResponse",
    "SubscriptionStatusResponse",
    "UsageRecordResponse",
    "UsageSummaryResponse",
]
