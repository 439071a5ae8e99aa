"""Repository for token usage ledger operations.

Provides database access for the token_usage table: insert, paginated
listing by user or project, and aggregate totals. Totals are always computed
in SQL over the full matching set, independent of any page or window.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TypedDict

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.usage import UsageRecord


class UsageTotals(TypedDict):
    """Typed return value for UsageRepository.get_totals()."""

    total_records: int
    total_tokens: int
    total_images: int
    total_cost: Decimal


def _owner_conditions(
    user_id: uuid.UUID | None,
    project_id: uuid.UUID | None,
    period_start: datetime | None = None,
    period_end: datetime | None = None,
) -> list[ColumnElement[bool]]:
    if user_id is None and project_id is None:
        msg = "Either user_id or project_id is required"
        raise ValueError(msg)

    conditions: list[ColumnElement[bool]] = []
    if user_id is not None:
        conditions.append(UsageRecord.user_id == user_id)
    if project_id is not None:
        conditions.append(UsageRecord.project_id == project_id)
    if period_start is not None:
        conditions.append(UsageRecord.created_at >= period_start)
    if period_end is not None:
        conditions.append(UsageRecord.created_at < period_end)
    return conditions


class UsageRepository:
    """Stateless repository for UsageRecord table operations.

    All methods are static — no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        project_id: uuid.UUID | None,
        kind: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        tokens: int,
        cost: Decimal,
        images: int = 0,
        created_at: datetime | None = None,
    ) -> UsageRecord:
        """Insert a usage record.

        Args:
            db: Async database session.
            user_id: User the usage is billed to.
            project_id: Project the call was made for, or None.
            kind: Request type (script, storyboard, image, ...).
            model: Model identifier.
            input_tokens: Input/prompt tokens consumed.
            output_tokens: Output/completion tokens consumed.
            tokens: Total tokens (input + output).
            cost: Cost in USD.
            images: Images generated.
            created_at: Record timestamp. Defaults to the database clock.

        Returns:
            Created UsageRecord with database-generated fields.
        """
        record = UsageRecord(
            user_id=user_id,
            project_id=project_id,
            kind=kind,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            tokens=tokens,
            images=images,
            cost=cost,
        )
        if created_at is not None:
            record.created_at = created_at
        db.add(record)
        await db.flush()
        await db.refresh(record)
        return record

    @staticmethod
    async def list_records(
        db: AsyncSession,
        *,
        user_id: uuid.UUID | None = None,
        project_id: uuid.UUID | None = None,
        offset: int = 0,
        limit: int = 50,
        kind: str | None = None,
    ) -> tuple[list[UsageRecord], int]:
        """List usage records newest first, with the total matching count.

        Args:
            db: Async database session.
            user_id: Restrict to this user's records.
            project_id: Restrict to this project's records.
            offset: Number of records to skip.
            limit: Maximum records to return.
            kind: Optional filter by request type.

        Returns:
            Tuple of (records list, total count).

        Raises:
            ValueError: If neither user_id nor project_id is given.
        """
        conditions = _owner_conditions(user_id, project_id)
        if kind is not None:
            conditions.append(UsageRecord.kind == kind)

        count_stmt = select(func.count()).select_from(UsageRecord).where(*conditions)
        total_result = await db.execute(count_stmt)
        total = total_result.scalar_one()

        data_stmt = (
            select(UsageRecord)
            .where(*conditions)
            .order_by(UsageRecord.created_at.desc(), UsageRecord.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(data_stmt)
        records = list(result.scalars().all())

        return records, total

    @staticmethod
    async def get_totals(
        db: AsyncSession,
        *,
        user_id: uuid.UUID | None = None,
        project_id: uuid.UUID | None = None,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> UsageTotals:
        """Aggregate record count, tokens, images and cost.

        Period range is [period_start, period_end) — start inclusive, end
        exclusive. Omitted bounds are open.

        Args:
            db: Async database session.
            user_id: Restrict to this user's records.
            project_id: Restrict to this project's records.
            period_start: Start of period (inclusive).
            period_end: End of period (exclusive).

        Returns:
            Dict with total_records, total_tokens, total_images, total_cost.

        Raises:
            ValueError: If neither user_id nor project_id is given.
        """
        conditions = _owner_conditions(user_id, project_id, period_start, period_end)

        stmt = select(
            func.count().label("total_records"),
            func.coalesce(func.sum(UsageRecord.tokens), 0).label("total_tokens"),
            func.coalesce(func.sum(UsageRecord.images), 0).label("total_images"),
            func.coalesce(func.sum(UsageRecord.cost), 0).label("total_cost"),
        ).where(*conditions)

        result = await db.execute(stmt)
        row = result.one()

        return {
            "total_records": row.total_records,
            "total_tokens": int(row.total_tokens),
            "total_images": int(row.total_images),
            "total_cost": Decimal(row.total_cost),
        }
