"""Verification token model - email verification links.

Single-use, time-limited. No id column — looked up by the
(identifier, token) composite key. At most one live row per identifier.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class VerificationToken(Base):
    """Email verification token.

    Attributes:
        identifier: Email address the token proves control of.
        token: SHA-256 hex digest of the plain token.
        expires: Token expiry timestamp.
    """

    __tablename__ = "verification_tokens"

    identifier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        primary_key=True,
    )
    token: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        primary_key=True,
    )
    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
