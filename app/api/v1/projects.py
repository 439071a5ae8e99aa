"""Project usage router.

GET /projects/{project_id}/usage — usage totals for one owned project.
"""

import uuid

from fastapi import APIRouter

from app.api.deps import CurrentUserId, DbSession, Ledger
from app.api.v1.usage import SummaryWindow, summary_to_response
from app.core.errors import NotFoundError
from app.core.responses import DataResponse
from app.repositories.project_repository import ProjectRepository
from app.schemas.usage import UsageSummaryResponse
from app.services.usage_ledger import DEFAULT_SUMMARY_WINDOW

router = APIRouter()


@router.get("/{project_id}/usage")
async def get_project_usage(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: DbSession,
    ledger: Ledger,
    window: SummaryWindow = DEFAULT_SUMMARY_WINDOW,
) -> DataResponse[UsageSummaryResponse]:
    """Return usage totals and recent records for a project.

    Returns 404 when the project does not exist or belongs to another user.
    """
    project = await ProjectRepository.get_owned(db, project_id, user_id)
    if project is None:
        raise NotFoundError("Project", str(project_id))

    summary = await ledger.get_project_summary(project_id, window=window)
    return DataResponse(data=summary_to_response(summary))
