"""Shared dependencies for API endpoints.

Authentication plus the usage ledger and verification service, each built
per request from the request's database session and injected settings.
Local-first mode uses DEFAULT_USER_ID; hosted mode validates JWT from cookie.
"""

import uuid
from datetime import timedelta
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models import User
from app.services.pricing import PricingTable
from app.services.subscription import QuotaPolicy, ensure_utc
from app.services.usage_ledger import UsageLedger
from app.services.verification import VerificationService

# Generic 401 detail — intentionally vague to prevent information leakage.
# Security: Never include specifics about WHY auth failed (expired, bad sig, etc.).
_UNAUTHORIZED_DETAIL = {
    "code": "UNAUTHORIZED",
    "message": "Authentication required",
}


async def get_current_user_id(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> uuid.UUID:
    """Get current user ID from auth context.

    Validates the JWT from the httpOnly cookie when auth is enabled and
    falls back to DEFAULT_USER_ID when it is not.

    Validation steps (hosted mode):
    1. Read JWT from cookie
    2. Decode + verify signature (HS256)
    3. Verify exp, aud, iss claims
    4. Extract sub as UUID
    5. Check token_invalidated_before (revocation)

    Args:
        request: HTTP request (injected by FastAPI).
        db: Database session for revocation check (injected).

    Returns:
        UUID of the current authenticated user.

    Raises:
        HTTPException: 401 for any auth failure.
    """
    if not settings.auth_enabled:
        if settings.default_user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=_UNAUTHORIZED_DETAIL,
            )
        return settings.default_user_id

    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        )

    try:
        payload = jwt.decode(
            token,
            settings.auth_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
        )
        user_id = uuid.UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        ) from exc

    # Security: iat is required for revocation check. A JWT without iat
    # would bypass token_invalidated_before entirely.
    iat = payload.get("iat")
    if iat is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        )

    result = await db.execute(
        select(User.token_invalidated_before).where(User.id == user_id)
    )
    invalidated_before = result.scalar_one_or_none()
    if (
        invalidated_before is not None
        and iat < ensure_utc(invalidated_before).timestamp()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        )

    return user_id


def get_pricing_table() -> PricingTable:
    """Pricing table built from current settings."""
    return PricingTable.from_settings(settings)


def get_quota_policy() -> QuotaPolicy:
    """Quota policy built from current settings."""
    return QuotaPolicy.from_settings(settings)


# Reusable type aliases for dependency injection
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_usage_ledger(
    db: DbSession,
    pricing: Annotated[PricingTable, Depends(get_pricing_table)],
    policy: Annotated[QuotaPolicy, Depends(get_quota_policy)],
) -> UsageLedger:
    """Per-request usage ledger.

    Tests override get_pricing_table / get_quota_policy to substitute
    deterministic prices and limits.
    """
    return UsageLedger(db, pricing, policy)


def get_verification_service(db: DbSession) -> VerificationService:
    """Per-request verification token service."""
    return VerificationService(
        db,
        ttl=timedelta(minutes=settings.verification_token_ttl_minutes),
    )


Ledger = Annotated[UsageLedger, Depends(get_usage_ledger)]
Verification = Annotated[VerificationService, Depends(get_verification_service)]
