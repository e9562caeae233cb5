import uuid

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.api.deps import get_current_user, get_db
from vibe.controllers import job_controller
from vibe.schemas.auth import AuthUser
from vibe.schemas.job import JobRunRead

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{run_id}", response_model=JobRunRead)
async def get_job_run(
    run_id: uuid.UUID,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Status and output of a background run."""
    return await job_controller.get_job_run(user, run_id, db)
