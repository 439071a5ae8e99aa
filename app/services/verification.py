"""Email verification token lifecycle.

Tokens are single-use and time-limited. Only the SHA-256 hash is stored;
the plain token leaves the server once, inside the verification email.

verify() outcomes:
1. identifier or token missing -> MissingParametersError, store untouched
2. no matching row -> InvalidTokenError, no mutation
3. row expired -> row deleted, TokenExpiredError
4. row valid -> row deleted and user marked verified in one transaction;
   if a concurrent verify consumed the row first -> InvalidTokenError
"""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    InvalidTokenError,
    MissingParametersError,
    TokenExpiredError,
)
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.repositories.verification_token_repository import VerificationTokenRepository
from app.services.subscription import ensure_utc

logger = logging.getLogger(__name__)

# 32 bytes = 256 bits of entropy
_TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(UTC)


def hash_token(plain_token: str) -> str:
    """SHA-256 hex digest used as the stored token value."""
    return hashlib.sha256(plain_token.encode()).hexdigest()


def normalize_identifier(identifier: str) -> str:
    return identifier.strip().lower()


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued token. `token` is the plain value for the email."""

    identifier: str
    token: str
    expires: datetime


class VerificationService:
    """Issues and consumes email verification tokens.

    Args:
        db: Async database session. Commits happen here because issue()
            and verify() each define their own transaction boundaries.
        ttl: Token lifetime.
        now: Clock, injectable for tests.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        ttl: timedelta,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = db
        self._ttl = ttl
        self._now = now

    async def issue(self, identifier: str) -> IssuedToken:
        """Replace any existing token for the identifier with a new one.

        Prior tokens are deleted and the new row inserted in one
        transaction, serialized per identifier, so concurrent calls leave
        exactly one live token: the last writer's.

        Args:
            identifier: Email address.

        Returns:
            IssuedToken with the plain token and its expiry.

        Raises:
            MissingParametersError: If identifier is empty.
        """
        if not identifier or not identifier.strip():
            raise MissingParametersError()

        email = normalize_identifier(identifier)
        plain_token = secrets.token_urlsafe(_TOKEN_BYTES)
        expires = self._now() + self._ttl

        try:
            await self._lock_identifier(email)
            removed = await VerificationTokenRepository.delete_all_for_identifier(
                self._db, identifier=email
            )
            await VerificationTokenRepository.create(
                self._db,
                identifier=email,
                token_hash=hash_token(plain_token),
                expires=expires,
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        logger.info(
            "Issued verification token for %s (replaced %d)", email, removed
        )
        return IssuedToken(identifier=email, token=plain_token, expires=expires)

    async def _lock_identifier(self, identifier: str) -> None:
        """Hold a per-identifier lock until the current transaction ends.

        PostgreSQL gets a transaction-scoped advisory lock (released on
        commit/rollback). SQLite already allows a single writer at a time.
        """
        if self._db.get_bind().dialect.name != "postgresql":
            return
        await self._db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:identifier))"),
            {"identifier": identifier},
        )

    async def verify(self, identifier: str | None, token: str | None) -> User:
        """Consume a token and mark its identifier verified.

        Args:
            identifier: Email address from the link.
            token: Plain token from the link.

        Returns:
            The verified User.

        Raises:
            MissingParametersError: If identifier or token is empty.
            InvalidTokenError: If no stored token matches, the token was
                consumed by a concurrent verify, or its identifier has no
                account.
            TokenExpiredError: If the token is past its expiry. The row is
                deleted before this is raised.
        """
        if not identifier or not identifier.strip() or not token:
            raise MissingParametersError()

        email = normalize_identifier(identifier)
        token_hash = hash_token(token)

        vt = await VerificationTokenRepository.get(
            self._db, identifier=email, token_hash=token_hash
        )
        if vt is None:
            logger.info("Verification failed for %s: invalid token", email)
            raise InvalidTokenError()

        now = self._now()
        if ensure_utc(vt.expires) < now:
            await VerificationTokenRepository.delete(
                self._db, identifier=email, token_hash=token_hash
            )
            await self._db.commit()
            logger.info("Verification failed for %s: token expired", email)
            raise TokenExpiredError()

        try:
            consumed = await VerificationTokenRepository.delete(
                self._db, identifier=email, token_hash=token_hash
            )
            if consumed == 0:
                # Redeemed or replaced since the lookup above
                raise InvalidTokenError()
            user = await UserRepository.mark_email_verified(
                self._db, email, verified_at=now
            )
            if user is None:
                raise InvalidTokenError()
            await self._db.commit()
        except InvalidTokenError:
            await self._db.rollback()
            logger.warning(
                "Verification token for %s already used or has no account", email
            )
            raise
        except Exception:
            await self._db.rollback()
            raise

        logger.info("Verified email %s", email)
        return user

    async def purge_expired(self) -> int:
        """Delete every expired token.

        Returns:
            Number of tokens removed.
        """
        removed = await VerificationTokenRepository.delete_expired(
            self._db, now=self._now()
        )
        await self._db.commit()
        if removed:
            logger.info("Purged %d expired verification tokens", removed)
        return removed
