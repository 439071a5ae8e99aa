"""Registration and email verification endpoints.

Endpoints:
- POST /auth/register — create account, send verification email
- POST /auth/resend-verification — issue a fresh verification link
- GET /auth/verify — redeem a verification link, redirect to frontend

Security considerations:
- register: bcrypt cost 12, email uniqueness, verification email
- resend-verification: identical response whether or not the email exists
- verify: single-use tokens, Referrer-Policy no-referrer on the redirect
"""

import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Query, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.exc import IntegrityError

from app.api.deps import DbSession, Verification
from app.core.auth import hash_password, validate_password_strength
from app.core.config import settings
from app.core.email import send_verification_email
from app.core.errors import ConflictError, TokenVerificationError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


# ===================================================================
# Request models
# ===================================================================


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    name: str | None = Field(None, min_length=2, max_length=50)


class ResendVerificationRequest(BaseModel):
    """Request body for POST /auth/resend-verification."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


# ===================================================================
# POST /auth/register
# ===================================================================


@router.post("/register", status_code=201)
@limiter.limit(lambda: settings.rate_limit_register)
async def register(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: RegisterRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    db: DbSession,
    verification: Verification,
) -> DataResponse[dict]:
    """Register a new user with email + password.

    Unauthenticated. A verified address returns 409. An unverified
    address gets a fresh verification link and 200 instead of 201.

    Rate limit: settings.rate_limit_register per IP.
    """
    email = body.email.strip().lower()
    validate_password_strength(body.password)

    existing = await UserRepository.get_by_email(db, email)
    if existing is not None:
        if existing.email_verified is not None:
            raise ConflictError(
                code="EMAIL_ALREADY_EXISTS",
                message="Email already registered",
            )

        issued = await verification.issue(email)
        background_tasks.add_task(
            send_verification_email,
            to_email=email,
            token=issued.token,
            name=existing.name,
        )
        response.status_code = 200
        return DataResponse(
            data={
                "id": str(existing.id),
                "email": existing.email,
                "requires_verification": True,
            }
        )

    try:
        user = await UserRepository.create(
            db,
            email=email,
            name=body.name,
            password_hash=hash_password(body.password),
        )
        await db.commit()
        logger.info("Registered user %s", user.id)
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(
            code="EMAIL_ALREADY_EXISTS",
            message="Email already registered",
        ) from exc

    issued = await verification.issue(email)
    background_tasks.add_task(
        send_verification_email,
        to_email=email,
        token=issued.token,
        name=body.name,
    )

    return DataResponse(
        data={"id": str(user.id), "email": user.email, "requires_verification": True}
    )


# ===================================================================
# POST /auth/resend-verification
# ===================================================================


@router.post("/resend-verification")
@limiter.limit(lambda: settings.rate_limit_resend)
async def resend_verification(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: DbSession,
    verification: Verification,
) -> DataResponse[dict]:
    """Send a new verification link to an unverified account.

    Always returns success regardless of whether the email exists or is
    already verified (prevents email enumeration).

    Rate limit: settings.rate_limit_resend per IP.
    """
    email = body.email.strip().lower()
    user = await UserRepository.get_by_email(db, email)

    if user is not None and user.email_verified is None:
        issued = await verification.issue(email)
        background_tasks.add_task(
            send_verification_email,
            to_email=email,
            token=issued.token,
            name=user.name,
        )

    return DataResponse(
        data={
            "message": "If the account exists and is unverified, a new link has been sent"
        }
    )


# ===================================================================
# GET /auth/verify
# ===================================================================


def _verify_redirect(**params: str) -> RedirectResponse:
    response = RedirectResponse(
        url=f"{settings.frontend_url}/auth/verify?{urlencode(params)}",
        status_code=307,
    )
    # Prevent token leakage via Referer header
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


@router.get("/verify")
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_email(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    verification: Verification,
    token: Annotated[str | None, Query(max_length=256)] = None,
    email: Annotated[str | None, Query(max_length=255)] = None,
) -> RedirectResponse:
    """Redeem an email verification link.

    Redirects to the frontend result page with status=success, or
    status=error and reason missing_params, invalid_token or expired.

    Rate limit: settings.rate_limit_verify per IP.
    """
    try:
        await verification.verify(email, token)
    except TokenVerificationError as exc:
        return _verify_redirect(status="error", reason=exc.reason)

    return _verify_redirect(status="success")
