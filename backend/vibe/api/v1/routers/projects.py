"""Projects router — thin HTTP layer, delegates all logic to project/message controllers."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.api.deps import get_current_user, get_db
from vibe.controllers import message_controller, project_controller
from vibe.schemas.auth import AuthUser
from vibe.schemas.message import MessageWithFragmentRead
from vibe.schemas.project import ProjectCreate, ProjectRead

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a project from its first prompt and start the code agent."""
    return await project_controller.create_project(user, payload.value, db)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's projects, most recently active first."""
    return await project_controller.list_projects(user, db)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await project_controller.get_project(user, project_id, db)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a project with all of its messages and fragments."""
    await project_controller.delete_project(user, project_id, db)


@router.get("/{project_id}/messages", response_model=list[MessageWithFragmentRead])
async def get_project_messages(
    project_id: uuid.UUID,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Messages of a project with their fragments, in display order."""
    return await message_controller.get_messages(user, project_id, db)
