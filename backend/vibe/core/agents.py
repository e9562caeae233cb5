"""
AI agents for Vibe.

Agents
------
- **coding_agent**          – Builds the requested app inside the sandbox via tools
- **fragment_title_agent**  – Names the generated fragment from the task summary
- **response_agent**        – Writes the user-facing reply from the task summary

The coding agent's tools read and write the run's ``CodeAgentState`` through
``RunContext.deps``; nothing is captured from an outer scope.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from pydantic_ai import Agent, RunContext

from vibe.core.config import settings
from vibe.core.prompts import CODE_AGENT_PROMPT, FRAGMENT_TITLE_PROMPT, RESPONSE_PROMPT
from vibe.core.tools import FileEntry, merge_files, read_files, run_terminal, write_files

CODE_AGENT_NAME = "code-agent"
DEFAULT_FRAGMENT_TITLE = "Fragment"
DEFAULT_RESPONSE = "Here you go."

# The openai provider reads its key from the environment, not from .env
if settings.OPENAI_API_KEY:
    os.environ.setdefault("OPENAI_API_KEY", settings.OPENAI_API_KEY)


@dataclass
class CodeAgentState:
    """Mutable state of one agent run, owned by the job executing it."""

    summary: str = ""
    files: dict[str, str] = field(default_factory=dict)


@dataclass
class CodeAgentDeps:
    sandbox: Any
    state: CodeAgentState = field(default_factory=CodeAgentState)


# ---------------------------------------------------------------------------
# 1.  Coding agent  (tool-driven, iterated by the network loop)
# ---------------------------------------------------------------------------

coding_agent = Agent(
    settings.CODE_AGENT_MODEL,
    name=CODE_AGENT_NAME,
    deps_type=CodeAgentDeps,
    output_type=str,
    instructions=CODE_AGENT_PROMPT,
    defer_model_check=True,
)


@coding_agent.tool(name="terminal")
async def terminal(ctx: RunContext[CodeAgentDeps], command: str) -> str:
    """Use the terminal to run commands in the sandbox.

    Args:
        command: Shell command to run, e.g. ``npm install zod --yes``.
    """
    result = await run_terminal(ctx.deps.sandbox, command)
    return result.render()


@coding_agent.tool(name="createOrUpdateFiles")
async def create_or_update_files(ctx: RunContext[CodeAgentDeps], files: list[FileEntry]) -> str:
    """Create or update files in the sandbox.

    Args:
        files: Files to write, each with a relative ``path`` and its full ``content``.
    """
    result = await write_files(ctx.deps.sandbox, files)
    if not result.ok:
        return result.render()
    ctx.deps.state.files = merge_files(ctx.deps.state.files, result.value)
    return f"Updated {len(result.value)} file(s): {', '.join(result.value)}"


@coding_agent.tool(name="readFiles")
async def read_sandbox_files(ctx: RunContext[CodeAgentDeps], files: list[str]) -> str:
    """Read files from the sandbox.

    Args:
        files: Paths of the files to read.
    """
    result = await read_files(ctx.deps.sandbox, files)
    return result.render()


# ---------------------------------------------------------------------------
# 2.  Post-processing agents  (single shot over the final summary)
# ---------------------------------------------------------------------------

fragment_title_agent = Agent(
    settings.SUMMARY_AGENT_MODEL,
    name="fragment-title-generator",
    output_type=str,
    instructions=FRAGMENT_TITLE_PROMPT,
    defer_model_check=True,
)

response_agent = Agent(
    settings.SUMMARY_AGENT_MODEL,
    name="response-generator",
    output_type=str,
    instructions=RESPONSE_PROMPT,
    defer_model_check=True,
)


def _clean(output: str) -> str:
    return output.strip().strip('"').strip()


async def generate_fragment_title(summary: str) -> str:
    """Short title for the fragment; the default when there is nothing to name."""
    if not summary:
        return DEFAULT_FRAGMENT_TITLE
    result = await fragment_title_agent.run(summary)
    output = _clean(result.output)
    title = output.splitlines()[0].strip() if output else ""
    return title[:255] or DEFAULT_FRAGMENT_TITLE


async def generate_response(summary: str) -> str:
    if not summary:
        return DEFAULT_RESPONSE
    result = await response_agent.run(summary)
    return _clean(result.output) or DEFAULT_RESPONSE
