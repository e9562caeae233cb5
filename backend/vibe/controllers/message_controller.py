import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.controllers import project_controller, usage_controller
from vibe.jobs.client import CODE_AGENT_EVENT, job_client
from vibe.models.base import utc_now
from vibe.models.message import Message, MessageRole, MessageType
from vibe.schemas.auth import AuthUser

logger = logging.getLogger(__name__)


async def get_messages(user: AuthUser, project_id: uuid.UUID, db: AsyncSession) -> list[Message]:
    """Messages of a project with their fragments, oldest update first."""
    await project_controller.get_project(user, project_id, db)
    result = await db.execute(
        select(Message)
        .where(Message.project_id == project_id)
        .options(selectinload(Message.fragment))
        .order_by(Message.updated_at.asc())
    )
    return result.scalars().all()


async def create_message(user: AuthUser, project_id: uuid.UUID, value: str, db: AsyncSession) -> Message:
    """Record a follow-up prompt and hand it to the code agent.

    Ownership and credits are checked before anything is written; the job is
    sent only after the message is committed and is not awaited.
    """
    project = await project_controller.get_project(user, project_id, db)
    await usage_controller.consume_credits(user, db)

    message = Message(
        project_id=project.id,
        content=value,
        role=MessageRole.USER,
        type=MessageType.RESULT,
    )
    db.add(message)
    project.updated_at = utc_now()
    db.add(project)
    await db.commit()
    await db.refresh(message)

    await job_client.send(CODE_AGENT_EVENT, {"value": value, "projectId": str(project.id)})
    logger.info("Message %s queued for project %s", message.id, project.id)
    return message
