"""Repository for VerificationToken CRUD operations.

Single-use email verification tokens stored as hashed values with
composite key (identifier, token) and time-limited expiry.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.verification_token import VerificationToken


class VerificationTokenRepository:
    """Stateless repository for VerificationToken table operations.

    All methods are static — no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        identifier: str,
        token_hash: str,
        expires: datetime,
    ) -> VerificationToken:
        """Store a new verification token.

        Args:
            db: Async database session.
            identifier: Email address.
            token_hash: SHA-256 hash of the plain token.
            expires: Token expiry timestamp.

        Returns:
            Created VerificationToken.
        """
        vt = VerificationToken(
            identifier=identifier,
            token=token_hash,
            expires=expires,
        )
        db.add(vt)
        await db.flush()
        return vt

    @staticmethod
    async def get(
        db: AsyncSession,
        *,
        identifier: str,
        token_hash: str,
    ) -> VerificationToken | None:
        """Look up a token by composite key.

        Args:
            db: Async database session.
            identifier: Email address.
            token_hash: SHA-256 hash of the plain token.

        Returns:
            VerificationToken if found, None otherwise.
        """
        stmt = select(VerificationToken).where(
            VerificationToken.identifier == identifier,
            VerificationToken.token == token_hash,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_identifier(
        db: AsyncSession,
        *,
        identifier: str,
    ) -> list[VerificationToken]:
        """List every stored token for an identifier.

        Args:
            db: Async database session.
            identifier: Email address.

        Returns:
            List of VerificationToken rows (normally zero or one).
        """
        stmt = select(VerificationToken).where(
            VerificationToken.identifier == identifier,
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete(
        db: AsyncSession,
        *,
        identifier: str,
        token_hash: str,
    ) -> int:
        """Delete a token (single-use cleanup).

        Args:
            db: Async database session.
            identifier: Email address.
            token_hash: SHA-256 hash of the plain token.

        Returns:
            Number of deleted rows (0 if another transaction consumed it).
        """
        stmt = delete(VerificationToken).where(
            VerificationToken.identifier == identifier,
            VerificationToken.token == token_hash,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count

    @staticmethod
    async def delete_all_for_identifier(
        db: AsyncSession,
        *,
        identifier: str,
    ) -> int:
        """Delete all tokens for an identifier (before re-issuing).

        Args:
            db: Async database session.
            identifier: Email address.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(VerificationToken).where(
            VerificationToken.identifier == identifier,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count

    @staticmethod
    async def delete_expired(db: AsyncSession, *, now: datetime | None = None) -> int:
        """Delete all expired tokens (periodic cleanup).

        Args:
            db: Async database session.
            now: Reference time. Defaults to the current UTC time.

        Returns:
            Number of deleted rows.
        """
        cutoff = now if now is not None else datetime.now(UTC)
        stmt = delete(VerificationToken).where(
            VerificationToken.expires < cutoff,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
