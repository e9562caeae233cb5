"""
Background job handlers.

``code-agent`` turns one user prompt into a working app: it provisions a
sandbox, replays recent conversation into the coding agent, lets the agent
build inside the sandbox, then stores the outcome as an assistant message
(with a fragment on success).

Importing this module registers the handlers on ``job_client``.
"""

import uuid
from typing import Any

from sqlalchemy import select

from vibe.core import sandbox as sandbox_service
from vibe.core.agents import CodeAgentDeps, CodeAgentState, generate_fragment_title, generate_response
from vibe.core.config import settings
from vibe.core.network import is_error_run, run_network
from vibe.db import database
from vibe.jobs.client import CODE_AGENT_EVENT, job_client
from vibe.jobs.runner import JobContext, NonRetriableError
from vibe.models.base import utc_now
from vibe.models.message import Fragment, Message, MessageRole, MessageType
from vibe.models.project import Project

ERROR_MESSAGE = "Something went wrong. Please try again."


# ---------------------------------------------------------------------------
# Step bodies
# ---------------------------------------------------------------------------

async def provision_sandbox() -> str:
    sandbox = await sandbox_service.create_sandbox()
    return sandbox.sandbox_id


async def load_previous_messages(project_id: uuid.UUID) -> list[dict[str, str]]:
    """Messages of the project, newest first, as ``{role, content}``."""
    query = (
        select(Message)
        .where(Message.project_id == project_id)
        .order_by(Message.created_at.desc())
    )
    if settings.AGENT_HISTORY_LIMIT:
        query = query.limit(settings.AGENT_HISTORY_LIMIT)

    async with database.AsyncSessionLocal() as db:
        result = await db.execute(query)
        messages = result.scalars().all()

    return [
        {
            "role": "assistant" if message.role == MessageRole.ASSISTANT else "user",
            "content": message.content,
        }
        for message in messages
    ]


async def run_agent(sandbox_id: str, value: str, previous: list[dict[str, str]]) -> dict[str, Any]:
    """Drive the coding agent in the sandbox and return what it produced."""
    sandbox = await sandbox_service.get_sandbox(sandbox_id)
    deps = CodeAgentDeps(sandbox=sandbox, state=CodeAgentState())
    network = await run_network(value, previous, deps)
    return {
        "summary": network.state.summary,
        "files": network.state.files,
        "iterations": network.iterations,
    }


async def sandbox_url(sandbox_id: str) -> str:
    sandbox = await sandbox_service.get_sandbox(sandbox_id)
    return sandbox_service.preview_url(sandbox)


async def save_result(
    project_id: uuid.UUID,
    *,
    is_error: bool,
    response: str,
    url: str,
    title: str,
    files: dict[str, str],
) -> dict[str, Any]:
    """Persist the assistant message, plus its fragment when the run succeeded."""
    async with database.AsyncSessionLocal() as db:
        project = await db.get(Project, project_id)
        if project is None:
            raise NonRetriableError(f"Project {project_id} no longer exists")

        if is_error:
            message = Message(
                project_id=project_id,
                content=ERROR_MESSAGE,
                role=MessageRole.ASSISTANT,
                type=MessageType.ERROR,
            )
            db.add(message)
        else:
            message = Message(
                project_id=project_id,
                content=response,
                role=MessageRole.ASSISTANT,
                type=MessageType.RESULT,
            )
            db.add(message)
            db.add(Fragment(message_id=message.id, sandbox_url=url, title=title, files=files))

        project.updated_at = utc_now()
        db.add(project)
        await db.commit()

        return {"message_id": str(message.id), "type": message.type.value}


# ---------------------------------------------------------------------------
# code-agent
# ---------------------------------------------------------------------------

@job_client.create_function(
    fn_id="code-agent",
    event=CODE_AGENT_EVENT,
    concurrency_key=lambda data: data.get("projectId"),
)
async def code_agent(ctx: JobContext) -> dict[str, Any]:
    value = ctx.event.data.get("value") or ""
    try:
        project_id = uuid.UUID(str(ctx.event.data.get("projectId")))
    except ValueError as e:
        raise NonRetriableError(f"Invalid projectId: {ctx.event.data.get('projectId')!r}") from e

    # 1. Sandbox
    sandbox_id = await ctx.step.run("get-sandbox-id", provision_sandbox)

    # 2. Conversation so far
    previous = await ctx.step.run("get-previous-messages", load_previous_messages, project_id)

    # 3. Agent loop
    agent = await ctx.step.run("code-agent-network", run_agent, sandbox_id, value, previous)
    summary = agent["summary"]
    files = agent["files"]
    is_error = is_error_run(summary, files)
    ctx.logger.info(
        "Run %s: agent finished after %d iteration(s), %d file(s), error=%s",
        ctx.run_id, agent["iterations"], len(files), is_error,
    )

    # 4. Title and reply
    title = await ctx.step.run("generate-fragment-title", generate_fragment_title, summary)
    response = await ctx.step.run("generate-response", generate_response, summary)

    # 5. Preview
    url = await ctx.step.run("get-sandbox-url", sandbox_url, sandbox_id)

    # 6. Persist
    await ctx.step.run(
        "save-result",
        save_result,
        project_id,
        is_error=is_error,
        response=response,
        url=url,
        title=title,
        files=files,
    )

    return {"url": url, "title": title, "files": files, "summary": summary}
