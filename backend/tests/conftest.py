# tests/conftest.py
"""
Shared pytest fixtures for the Vibe backend.

Provides:
- A throwaway SQLite database (tables created per test)
- An ASGI test client and bearer-token headers
- FakeSandbox, an in-memory stand-in for the E2B sandbox handle
- Scripted models for the coding, title and response agents
"""
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from types import SimpleNamespace

# Settings are read at import time, so the environment goes first
_DB_DIR = tempfile.mkdtemp(prefix="vibe-tests-")
os.environ["MODE"] = "testing"
os.environ["ASYNC_DATABASE_URI"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-bytes!"
os.environ["OPENAI_API_KEY"] = "sk-test"
os.environ["JOB_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["JOB_RESUME_ON_STARTUP"] = "false"

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, ToolCallPart, ToolReturnPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlmodel import SQLModel

from vibe.core import sandbox as sandbox_service
from vibe.core.agents import coding_agent, fragment_title_agent, response_agent
from vibe.core.security import create_access_token
from vibe.db import database
from vibe.main import app
from vibe.models.message import Message, MessageRole, MessageType
from vibe.models.project import Project

# No test may reach a real LLM provider
models.ALLOW_MODEL_REQUESTS = False

fake = Faker()


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ═══════════════════════════════════════════════════════
# DATABASE
# ═══════════════════════════════════════════════════════

@pytest.fixture
async def db_tables():
    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield
    async with database.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


@pytest.fixture
async def session(db_tables):
    async with database.AsyncSessionLocal() as db:
        yield db


async def create_project(user_id: str, prompt: str | None = None) -> Project:
    """Insert a project with its first USER message."""
    async with database.AsyncSessionLocal() as db:
        project = Project(user_id=user_id, name=f"{fake.word()}-{fake.word()}")
        db.add(project)
        db.add(
            Message(
                project_id=project.id,
                content=prompt or fake.sentence(),
                role=MessageRole.USER,
                type=MessageType.RESULT,
            )
        )
        await db.commit()
        await db.refresh(project)
        return project


# ═══════════════════════════════════════════════════════
# HTTP
# ═══════════════════════════════════════════════════════

@pytest.fixture
def user_id() -> str:
    return f"user_{fake.uuid4()}"


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def client(db_tables):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def sent_events(monkeypatch):
    """Record events instead of starting background runs."""
    from vibe.jobs.client import job_client

    events: list[tuple[str, dict]] = []

    async def fake_send(name, data):
        events.append((name, data))
        return []

    monkeypatch.setattr(job_client, "send", fake_send)
    return events


# ═══════════════════════════════════════════════════════
# SANDBOX
# ═══════════════════════════════════════════════════════

class CommandFailed(Exception):
    """Mirrors the SDK raising on a non-zero exit code."""


class FakeCommands:
    def __init__(self, sandbox: "FakeSandbox"):
        self._sandbox = sandbox

    async def run(self, cmd, on_stdout=None, on_stderr=None, **kwargs):
        self._sandbox.commands_run.append(cmd)
        if cmd in self._sandbox.failing_commands:
            stdout, stderr = self._sandbox.failing_commands[cmd]
            if on_stdout:
                on_stdout(stdout)
            if on_stderr:
                on_stderr(stderr)
            raise CommandFailed(f"Command exited with code 1: {cmd}")
        output = f"ran {cmd}\n"
        if on_stdout:
            on_stdout(output)
        return SimpleNamespace(stdout=output, stderr="", exit_code=0)


class FakeFiles:
    def __init__(self, sandbox: "FakeSandbox"):
        self._sandbox = sandbox

    async def write(self, path, data, **kwargs):
        if path in self._sandbox.unwritable:
            raise PermissionError(f"Permission denied: {path}")
        self._sandbox.written[path] = data

    async def read(self, path, **kwargs):
        if path not in self._sandbox.written:
            raise FileNotFoundError(f"No such file: {path}")
        return self._sandbox.written[path]


class FakeSandbox:
    """Same surface as the SDK handle: ``commands``, ``files``, ``get_host``."""

    def __init__(self, sandbox_id: str = "sbx-test"):
        self.sandbox_id = sandbox_id
        self.written: dict[str, str] = {}
        self.commands_run: list[str] = []
        self.failing_commands: dict[str, tuple[str, str]] = {}
        self.unwritable: set[str] = set()
        self.created = 0
        self.commands = FakeCommands(self)
        self.files = FakeFiles(self)

    def get_host(self, port: int) -> str:
        return f"{port}-{self.sandbox_id}.e2b.app"


@pytest.fixture
def fake_sandbox(monkeypatch):
    sandbox = FakeSandbox()

    async def fake_create(template=None):
        sandbox.created += 1
        return sandbox

    async def fake_get(sandbox_id):
        assert sandbox_id == sandbox.sandbox_id
        return sandbox

    monkeypatch.setattr(sandbox_service, "create_sandbox", fake_create)
    monkeypatch.setattr(sandbox_service, "get_sandbox", fake_get)
    return sandbox


# ═══════════════════════════════════════════════════════
# SCRIPTED MODELS
# ═══════════════════════════════════════════════════════

COUNTER_PAGE = """\
"use client";

import { useState } from "react";
import { Button } from "@/components/ui/button";

export default function Page() {
  const [count, setCount] = useState(0);
  return <Button onClick={() => setCount(count + 1)}>Clicked {count} times</Button>;
}
"""


def building_model(
    files: dict[str, str] | None = None,
    summary: str = "Built a counter button.",
    calls: list | None = None,
) -> FunctionModel:
    """Writes *files* with one tool call, then answers with a task summary."""
    files = files if files is not None else {"app/page.tsx": COUNTER_PAGE}

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        if calls is not None:
            calls.append(len(messages))
        last = messages[-1]
        if any(isinstance(part, ToolReturnPart) for part in last.parts):
            return ModelResponse(parts=[TextPart(content=f"<task_summary>\n{summary}\n</task_summary>")])
        return ModelResponse(
            parts=[
                ToolCallPart(
                    tool_name="createOrUpdateFiles",
                    args={"files": [{"path": p, "content": c} for p, c in files.items()]},
                )
            ]
        )

    return FunctionModel(respond)


def stalling_model(calls: list | None = None) -> FunctionModel:
    """Never produces a task summary."""

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        if calls is not None:
            calls.append(len(messages))
        return ModelResponse(parts=[TextPart(content="Still working on it.")])

    return FunctionModel(respond)


def text_model(text: str) -> FunctionModel:
    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[TextPart(content=text)])

    return FunctionModel(respond)


@contextmanager
def scripted_agents(
    coding: FunctionModel,
    title: str = "Counter Button",
    response: str = "I built a counter button for you.",
):
    """Swap every agent's model for a scripted one.

    Overrides live in context variables, so enter this inside the test body.
    """
    with coding_agent.override(model=coding), \
            fragment_title_agent.override(model=text_model(title)), \
            response_agent.override(model=text_model(response)):
        yield
