"""Token usage ORM model — append-only, no TimestampMixin.

UsageRecord is the ledger of every billable AI call. Rows are inserted once
with tokens and cost computed at creation time and are never updated.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

# Count columns are 32-bit INTEGER on PostgreSQL
MAX_COUNT = 2**31 - 1


class UsageKind:
    """Known request types. The column accepts any short string."""

    SCRIPT = "script"
    STORYBOARD = "storyboard"
    TREATMENT = "treatment"
    IDEA = "idea"
    CHARACTER_GENERATION = "character_generation"
    IMAGE = "image"


class UsageRecord(Base):
    """One billable AI call.

    Attributes:
        id: UUID primary key.
        user_id: Owner of the usage (required).
        project_id: Project the call was made for. NULL for user-level
            usage such as standalone image generation.
        kind: Request type (script, storyboard, image, ...).
        model: Model identifier the cost was priced against.
        input_tokens: Input/prompt tokens consumed.
        output_tokens: Output/completion tokens consumed.
        tokens: input_tokens + output_tokens.
        images: Images generated (0 for text calls).
        cost: Monetary cost in USD, fixed at creation.
        created_at: When the call was recorded.
    """

    __tablename__ = "token_usage"
    __table_args__ = (
        CheckConstraint("input_tokens >= 0", name="ck_usage_input_tokens_nonneg"),
        CheckConstraint("output_tokens >= 0", name="ck_usage_output_tokens_nonneg"),
        CheckConstraint("tokens >= 0", name="ck_usage_tokens_nonneg"),
        CheckConstraint("images >= 0", name="ck_usage_images_nonneg"),
        CheckConstraint("cost >= 0", name="ck_usage_cost_nonneg"),
        Index("ix_token_usage_user_created", "user_id", "created_at"),
        Index("ix_token_usage_project_created", "project_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
    )
    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    input_tokens: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    output_tokens: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    tokens: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    images: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )
    cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 6),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
