"""User model - identity, verification and subscription state.

Subscription fields are written by the billing flow (outside this service)
and only read here to resolve the caller's quota tier.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.project import Project

_CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class User(Base, TimestampMixin):
    """User account.

    Attributes:
        id: UUID primary key.
        email: Unique email address (stored lowercase).
        name: Display name.
        email_verified: Timestamp when email was verified. NULL = unverified.
        password_hash: bcrypt hash.
        token_invalidated_before: JWTs issued before this are rejected.
        is_admin: Admins get unlimited quota.
        subscription_status: free, hobby, pro or admin.
        subscription_plan: Purchased plan id (e.g. ``pro_monthly``).
        subscription_start_date: Start of the current paid period.
        subscription_end_date: End of the current paid period. NULL for
            lifetime/legacy plans.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    email_verified: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    token_invalidated_before: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
        default=False,
    )
    subscription_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default="free",
        default="free",
    )
    subscription_plan: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    subscription_start_date: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    projects: Mapped[list["Project"]] = relationship(
        "Project",
        back_populates="user",
        cascade=_CASCADE_ALL_DELETE_ORPHAN,
    )
