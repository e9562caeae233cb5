"""
Shared FastAPI dependencies — single source of truth for DI.

All routers should import get_db and get_current_user from HERE,
not directly from core.security or db.database.
"""

from fastapi import Request
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.core.config import ModeEnum, settings
from vibe.core.security import get_current_user as _require_auth, read_token
from vibe.db.database import get_db as _get_db
from vibe.schemas.auth import AuthUser

__all__ = ["get_db", "get_current_user"]

# Dev user ID, stable across restarts
DEV_USER_ID = "user_dev_local"


async def get_db() -> AsyncSession:
    """Yield an async database session."""
    async for session in _get_db():
        yield session


async def get_current_user(request: Request) -> AuthUser:
    """
    Require authentication. In dev mode with no token, falls back to a fixed
    dev user so protected endpoints can be exercised without signing in.
    """
    if not read_token(request) and settings.MODE == ModeEnum.development:
        return AuthUser(id=DEV_USER_ID, plan="pro")

    return await _require_auth(request)
