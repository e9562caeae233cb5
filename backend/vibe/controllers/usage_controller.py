"""Credit ledger: a fixed number of generations per rolling window, per user."""

import logging
from datetime import datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from vibe.core.config import settings
from vibe.models.base import as_utc, utc_now
from vibe.models.usage import Usage
from vibe.schemas.auth import AuthUser
from vibe.schemas.usage import UsageStatus

logger = logging.getLogger(__name__)


def plan_points(user: AuthUser) -> int:
    return settings.PRO_POINTS if user.is_pro else settings.FREE_POINTS


def _is_expired(usage: Usage, now: datetime) -> bool:
    return usage.expire is None or as_utc(usage.expire) <= now


def _ms_before_next(usage: Usage, now: datetime) -> int:
    if usage.expire is None:
        return 0
    return max(0, int((as_utc(usage.expire) - now).total_seconds() * 1000))


async def _get_usage(user: AuthUser, db: AsyncSession) -> Usage | None:
    result = await db.execute(select(Usage).where(Usage.key == user.id).with_for_update())
    return result.scalar_one_or_none()


async def consume_credits(user: AuthUser, db: AsyncSession, cost: int | None = None) -> UsageStatus:
    """Spend *cost* points for *user*, opening a fresh window when the last one has lapsed.

    Raises 429 when the window is exhausted.  Nothing is committed here; the
    caller's transaction decides.
    """
    cost = settings.GENERATION_COST if cost is None else cost
    limit = plan_points(user)
    now = utc_now()

    try:
        usage = await _get_usage(user, db)
        if usage is None:
            usage = Usage(key=user.id, points=0)
        if _is_expired(usage, now):
            usage.points = 0
            usage.expire = now + timedelta(seconds=settings.CREDITS_DURATION_SECONDS)

        if usage.points + cost > limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="You have run out of credits",
                headers={"Retry-After": str(_ms_before_next(usage, now) // 1000)},
            )

        usage.points += cost
        db.add(usage)
        await db.flush()
    except SQLAlchemyError:
        logger.exception("Credit ledger failure for user %s", user.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Something went wrong")

    return UsageStatus(
        remaining_points=limit - usage.points,
        consumed_points=usage.points,
        ms_before_next=_ms_before_next(usage, now),
    )


async def get_usage_status(user: AuthUser, db: AsyncSession) -> UsageStatus | None:
    """Current window for *user*, or ``None`` when there is no live window."""
    result = await db.execute(select(Usage).where(Usage.key == user.id))
    usage = result.scalar_one_or_none()
    now = utc_now()
    if usage is None or _is_expired(usage, now):
        return None

    limit = plan_points(user)
    return UsageStatus(
        remaining_points=max(0, limit - usage.points),
        consumed_points=usage.points,
        ms_before_next=_ms_before_next(usage, now),
    )
