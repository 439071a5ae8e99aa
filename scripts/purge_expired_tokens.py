"""Delete expired email verification tokens.

Standalone maintenance script, safe to run from cron. Tokens are also
removed when an expired link is clicked; this catches links never clicked.

Usage:
    python -m scripts.purge_expired_tokens
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_factory, engine
from app.services.verification import VerificationService

logger = logging.getLogger(__name__)


async def run_purge(session: AsyncSession) -> int:
    """Purge expired tokens using the given session.

    Args:
        session: Async database session.

    Returns:
        Number of tokens deleted.
    """
    service = VerificationService(
        session,
        ttl=timedelta(minutes=settings.verification_token_ttl_minutes),
    )
    return await service.purge_expired()


async def main() -> None:
    """CLI entry point: purge against the configured database."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    async with async_session_factory() as session:
        removed = await run_purge(session)

    await engine.dispose()

    logger.info("Removed %d expired verification tokens", removed)


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
