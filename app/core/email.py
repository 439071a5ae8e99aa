"""Email sending via Resend API.

Plain-text verification emails sent with a single HTTP POST. Runs as a
background task after the response, so failures are logged, not raised.
"""

import logging
from urllib.parse import quote, urlencode

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"
_RESEND_TIMEOUT = 10.0


def build_verification_url(*, email: str, token: str) -> str:
    """Build the backend link that redeems a verification token.

    Args:
        email: Identifier the token was issued for.
        token: Plain (unhashed) verification token.

    Returns:
        Absolute URL of GET /api/v1/auth/verify with query parameters.
    """
    params = urlencode({"token": token, "email": email}, quote_via=quote)
    return f"{settings.backend_url}/api/v1/auth/verify?{params}"


async def send_verification_email(
    *, to_email: str, token: str, name: str | None = None
) -> None:
    """Send an email-verification link via Resend.

    Args:
        to_email: Recipient email address.
        token: Plain (unhashed) verification token.
        name: Display name used in the greeting, if known.
    """
    verify_url = build_verification_url(email=to_email, token=token)
    ttl_minutes = settings.verification_token_ttl_minutes
    greeting = f"Hi {name}," if name else "Hi,"

    try:
        async with httpx.AsyncClient() as client:
            resp = await client.post(
                _RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": "Verify your Story Studio email",
                    "text": (
                        f"{greeting}\n\n"
                        f"Confirm your email address by opening this link:\n\n{verify_url}\n\n"
                        f"This link expires in {ttl_minutes} minutes. "
                        "If you didn't create an account, you can safely ignore this email."
                    ),
                },
                timeout=_RESEND_TIMEOUT,
            )
            resp.raise_for_status()
    except Exception:
        logger.warning("Failed to send verification email", exc_info=True)
