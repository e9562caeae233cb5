import uuid

from fastapi import HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.controllers import project_controller
from vibe.models.job import JobRun
from vibe.schemas.auth import AuthUser


async def get_job_run(user: AuthUser, run_id: uuid.UUID, db: AsyncSession) -> JobRun:
    """A run is visible to the owner of the project named in its payload."""
    job = await db.get(JobRun, run_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    try:
        project_id = uuid.UUID(str((job.payload or {}).get("projectId")))
    except ValueError:
        raise HTTPException(status_code=404, detail="Job not found")

    await project_controller.get_project(user, project_id, db)
    return job
