"""Messages router — thin HTTP layer, delegates all logic to message_controller."""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.api.deps import get_current_user, get_db
from vibe.controllers import message_controller
from vibe.schemas.auth import AuthUser
from vibe.schemas.message import MessageCreate, MessageRead

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def create_message(
    payload: MessageCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Send a prompt to an existing project. Generation runs in the background."""
    return await message_controller.create_message(user, payload.project_id, payload.value, db)
