import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from conftest import create_project, fake
from vibe.core.config import settings
from vibe.db import database
from vibe.models.base import utc_now
from vibe.models.message import Fragment, Message, MessageRole, MessageType
from vibe.models.usage import Usage

pytestmark = pytest.mark.anyio


async def _message_count(project_id) -> int:
    async with database.AsyncSessionLocal() as db:
        result = await db.execute(select(func.count()).select_from(Message).where(Message.project_id == project_id))
        return result.scalar_one()


# ═══════════════════════════════════════════════════════
# POST /messages
# ═══════════════════════════════════════════════════════

async def test_create_message_persists_and_sends_event(client, auth_headers, user_id, sent_events):
    project = await create_project(user_id)
    prompt = fake.sentence()

    response = await client.post(
        "/api/v1/messages", json={"value": prompt, "projectId": str(project.id)}, headers=auth_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["content"] == prompt
    assert data["role"] == "USER"
    assert data["type"] == "RESULT"
    assert sent_events == [("code-agent/run", {"value": prompt, "projectId": str(project.id)})]
    assert await _message_count(project.id) == 2


@pytest.mark.parametrize("value", ["", "x" * 10001])
async def test_invalid_value_is_rejected_before_any_side_effect(client, auth_headers, user_id, sent_events, value):
    project = await create_project(user_id)

    response = await client.post(
        "/api/v1/messages", json={"value": value, "projectId": str(project.id)}, headers=auth_headers
    )

    assert response.status_code == 422
    assert sent_events == []
    assert await _message_count(project.id) == 1


async def test_missing_token_is_unauthorized(client, user_id, sent_events):
    project = await create_project(user_id)

    response = await client.post("/api/v1/messages", json={"value": "hi", "projectId": str(project.id)})

    assert response.status_code == 401
    assert sent_events == []


async def test_unknown_project_is_not_found(client, auth_headers, sent_events):
    response = await client.post(
        "/api/v1/messages", json={"value": "hi", "projectId": str(uuid.uuid4())}, headers=auth_headers
    )

    assert response.status_code == 404
    assert sent_events == []


async def test_other_users_project_is_not_found(client, auth_headers, sent_events):
    project = await create_project("user_someone_else")

    response = await client.post(
        "/api/v1/messages", json={"value": "hi", "projectId": str(project.id)}, headers=auth_headers
    )

    assert response.status_code == 404
    assert await _message_count(project.id) == 1


async def test_exhausted_credits_are_rejected(client, auth_headers, user_id, sent_events):
    project = await create_project(user_id)
    async with database.AsyncSessionLocal() as db:
        db.add(Usage(key=user_id, points=settings.FREE_POINTS, expire=utc_now() + timedelta(days=1)))
        await db.commit()

    response = await client.post(
        "/api/v1/messages", json={"value": "hi", "projectId": str(project.id)}, headers=auth_headers
    )

    assert response.status_code == 429
    assert response.json()["detail"] == "You have run out of credits"
    assert sent_events == []
    assert await _message_count(project.id) == 1


# ═══════════════════════════════════════════════════════
# GET /projects/{id}/messages
# ═══════════════════════════════════════════════════════

async def test_list_messages_includes_fragments_in_display_order(client, auth_headers, user_id):
    project = await create_project(user_id, "Build a counter button")
    async with database.AsyncSessionLocal() as db:
        message = Message(
            project_id=project.id,
            content="Here you go.",
            role=MessageRole.ASSISTANT,
            type=MessageType.RESULT,
        )
        db.add(message)
        db.add(
            Fragment(
                message_id=message.id,
                sandbox_url="https://3000-sbx.e2b.app",
                title="Counter Button",
                files={"app/page.tsx": "export default function Page() {}"},
            )
        )
        await db.commit()

    response = await client.get(f"/api/v1/projects/{project.id}/messages", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert [m["role"] for m in data] == ["USER", "ASSISTANT"]
    assert data[0]["fragment"] is None
    assert data[1]["fragment"]["title"] == "Counter Button"
    assert data[1]["fragment"]["files"] == {"app/page.tsx": "export default function Page() {}"}
