from datetime import timedelta

import pytest
from fastapi import HTTPException

from vibe.controllers import usage_controller
from vibe.core.config import settings
from vibe.models.base import utc_now
from vibe.models.usage import Usage
from vibe.schemas.auth import AuthUser

pytestmark = pytest.mark.anyio


async def test_no_ledger_row_means_no_status(session):
    assert await usage_controller.get_usage_status(AuthUser(id="user_new"), session) is None


async def test_consuming_opens_a_window(session):
    user = AuthUser(id="user_a")

    status = await usage_controller.consume_credits(user, session)
    await session.commit()

    assert status.consumed_points == 1
    assert status.remaining_points == settings.FREE_POINTS - 1
    assert 0 < status.ms_before_next <= settings.CREDITS_DURATION_SECONDS * 1000

    current = await usage_controller.get_usage_status(user, session)
    assert current.consumed_points == 1


async def test_free_plan_runs_out(session):
    user = AuthUser(id="user_b")
    for _ in range(settings.FREE_POINTS):
        await usage_controller.consume_credits(user, session)

    with pytest.raises(HTTPException) as exc:
        await usage_controller.consume_credits(user, session)
    assert exc.value.status_code == 429


async def test_pro_plan_has_a_larger_allowance(session):
    user = AuthUser(id="user_c", plan="pro")
    for _ in range(settings.FREE_POINTS + 1):
        await usage_controller.consume_credits(user, session)

    status = await usage_controller.get_usage_status(user, session)
    assert status.remaining_points == settings.PRO_POINTS - settings.FREE_POINTS - 1


async def test_expired_window_is_reset(session):
    user = AuthUser(id="user_d")
    session.add(Usage(key=user.id, points=settings.FREE_POINTS, expire=utc_now() - timedelta(seconds=1)))
    await session.commit()

    assert await usage_controller.get_usage_status(user, session) is None
    status = await usage_controller.consume_credits(user, session)
    assert status.consumed_points == 1


async def test_usage_endpoint(client, auth_headers):
    response = await client.get("/api/v1/usage", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() is None
