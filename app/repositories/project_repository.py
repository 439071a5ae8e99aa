"""Repository for Project lookups.

Only ownership-scoped reads are needed by usage reporting; project CRUD
lives with the story editor.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project


class ProjectRepository:
    """Stateless repository for Project table operations."""

    @staticmethod
    async def get_owned(
        db: AsyncSession,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Project | None:
        """Fetch a project only if it belongs to the given user.

        Args:
            db: Async database session.
            project_id: Project UUID.
            user_id: Expected owner.

        Returns:
            Project if found and owned by user_id, None otherwise. A project
            owned by someone else is indistinguishable from a missing one.
        """
        stmt = select(Project).where(
            Project.id == project_id,
            Project.user_id == user_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        title: str,
    ) -> Project:
        """Create a project.

        Args:
            db: Async database session.
            user_id: Owner.
            title: Project title.

        Returns:
            Created Project.
        """
        project = Project(user_id=user_id, title=title)
        db.add(project)
        await db.flush()
        await db.refresh(project)
        return project
