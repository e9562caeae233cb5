import logging
import secrets
import uuid

from fastapi import HTTPException
from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.controllers import usage_controller
from vibe.jobs.client import CODE_AGENT_EVENT, job_client
from vibe.models.message import Message, MessageRole, MessageType
from vibe.models.project import Project
from vibe.schemas.auth import AuthUser

logger = logging.getLogger(__name__)

_ADJECTIVES = (
    "amber", "bold", "brave", "bright", "calm", "clever", "cosmic", "crisp",
    "eager", "fancy", "gentle", "golden", "happy", "jolly", "lively", "lucky",
    "mellow", "misty", "nimble", "quiet", "rapid", "shiny", "silent", "swift",
    "tidy", "vivid", "wild", "witty",
)
_NOUNS = (
    "badger", "beacon", "breeze", "canyon", "comet", "falcon", "forest", "galaxy",
    "garden", "harbor", "island", "lagoon", "maple", "meadow", "nebula", "orchid",
    "otter", "panda", "pebble", "planet", "river", "rocket", "sparrow", "summit",
    "thunder", "tiger", "valley", "willow",
)


def generate_slug() -> str:
    """Random two-word kebab-case name, e.g. ``swift-otter``."""
    return f"{secrets.choice(_ADJECTIVES)}-{secrets.choice(_NOUNS)}"


async def create_project(user: AuthUser, value: str, db: AsyncSession) -> Project:
    """Create a project from its first prompt and start generating."""
    await usage_controller.consume_credits(user, db)

    project = Project(user_id=user.id, name=generate_slug())
    db.add(project)
    db.add(
        Message(
            project_id=project.id,
            content=value,
            role=MessageRole.USER,
            type=MessageType.RESULT,
        )
    )
    # Committed before the event is sent so the job can see the rows
    await db.commit()
    await db.refresh(project)

    await job_client.send(CODE_AGENT_EVENT, {"value": value, "projectId": str(project.id)})
    logger.info("Project %s created for user %s", project.id, user.id)
    return project


async def list_projects(user: AuthUser, db: AsyncSession) -> list[Project]:
    result = await db.execute(
        select(Project).where(Project.user_id == user.id).order_by(Project.updated_at.desc())
    )
    return result.scalars().all()


async def get_project(user: AuthUser, project_id: uuid.UUID, db: AsyncSession) -> Project:
    project = await db.get(Project, project_id)
    if not project or project.user_id != user.id:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def delete_project(user: AuthUser, project_id: uuid.UUID, db: AsyncSession) -> None:
    project = await get_project(user, project_id, db)
    await db.delete(project)
    await db.commit()
