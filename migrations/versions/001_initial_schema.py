"""Create users, projects, token_usage and verification_tokens.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

token_usage and projects cascade on user delete. Usage rows are
append-only; there is no updated_at column on token_usage.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Shared column types
_PG_UUID = sa.dialects.postgresql.UUID(as_uuid=True)
_UUID_DEFAULT = sa.text("gen_random_uuid()")
_NUMERIC_12_6 = sa.Numeric(precision=12, scale=6)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create the four tables and their indexes."""
    # 1. users
    op.create_table(
        "users",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email_verified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "token_invalidated_before", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column(
            "is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column(
            "subscription_status",
            sa.String(20),
            nullable=False,
            server_default="free",
        ),
        sa.Column("subscription_plan", sa.String(50), nullable=True),
        sa.Column(
            "subscription_start_date", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("subscription_end_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # 2. projects
    op.create_table(
        "projects",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "user_id",
            _PG_UUID,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])

    # 3. token_usage (append-only ledger)
    op.create_table(
        "token_usage",
        sa.Column("id", _PG_UUID, server_default=_UUID_DEFAULT, primary_key=True),
        sa.Column(
            "user_id",
            _PG_UUID,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "project_id",
            _PG_UUID,
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("input_tokens", sa.Integer, nullable=False),
        sa.Column("output_tokens", sa.Integer, nullable=False),
        sa.Column("tokens", sa.Integer, nullable=False),
        sa.Column("images", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cost", _NUMERIC_12_6, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("input_tokens >= 0", name="ck_usage_input_tokens_nonneg"),
        sa.CheckConstraint("output_tokens >= 0", name="ck_usage_output_tokens_nonneg"),
        sa.CheckConstraint("tokens >= 0", name="ck_usage_tokens_nonneg"),
        sa.CheckConstraint("images >= 0", name="ck_usage_images_nonneg"),
        sa.CheckConstraint("cost >= 0", name="ck_usage_cost_nonneg"),
    )
    op.create_index(
        "ix_token_usage_user_created",
        "token_usage",
        ["user_id", "created_at"],
    )
    op.create_index(
        "ix_token_usage_project_created",
        "token_usage",
        ["project_id", "created_at"],
    )

    # 4. verification_tokens (composite PK, stores SHA-256 of the token)
    op.create_table(
        "verification_tokens",
        sa.Column("identifier", sa.String(255), nullable=False),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("identifier", "token"),
    )
    op.create_index(
        "ix_verification_tokens_expires", "verification_tokens", ["expires"]
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index(
        "ix_verification_tokens_expires", table_name="verification_tokens"
    )
    op.drop_table("verification_tokens")
    op.drop_index("ix_token_usage_project_created", table_name="token_usage")
    op.drop_index("ix_token_usage_user_created", table_name="token_usage")
    op.drop_table("token_usage")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
