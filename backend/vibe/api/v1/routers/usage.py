from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.api.deps import get_current_user, get_db
from vibe.controllers import usage_controller
from vibe.schemas.auth import AuthUser
from vibe.schemas.usage import UsageStatus

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("", response_model=UsageStatus | None)
async def get_usage(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Credits left in the current window, or null before the first generation."""
    return await usage_controller.get_usage_status(user, db)
