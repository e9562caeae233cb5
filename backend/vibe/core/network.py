"""
Agent network: the bounded loop that drives the coding agent.

Each iteration asks the router what to do next.  The router only looks at
the run's state: once a task summary has been captured the run is finished,
otherwise the coding agent gets another turn.  Each turn is a full
``Agent.run`` (the model may call tools many times within it), capped by a
request limit so a single turn cannot spin forever.
"""

import logging
import re
from dataclasses import dataclass

from pydantic_ai import Agent
from pydantic_ai.exceptions import UsageLimitExceeded
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.usage import UsageLimits

from vibe.core.agents import CodeAgentDeps, CodeAgentState, coding_agent
from vibe.core.config import settings
from vibe.core.prompts import CONTINUE_PROMPT, TASK_SUMMARY_CLOSE, TASK_SUMMARY_OPEN

logger = logging.getLogger(__name__)

_SUMMARY_RE = re.compile(
    re.escape(TASK_SUMMARY_OPEN) + r"(.*?)(?:" + re.escape(TASK_SUMMARY_CLOSE) + r"|\Z)",
    re.DOTALL,
)


# ── Routing ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Continue:
    agent: Agent


@dataclass(frozen=True)
class Stop:
    reason: str = "summary captured"


RouteDecision = Continue | Stop


def route(state: CodeAgentState) -> RouteDecision:
    if state.summary:
        return Stop()
    return Continue(coding_agent)


# ── Summary capture ───────────────────────────────────────────


def extract_task_summary(text: str) -> str | None:
    """Text between the summary tags, or ``None`` when there is none.

    An opening tag without its closing tag captures the rest of the text.
    """
    if not text or TASK_SUMMARY_OPEN not in text:
        return None
    match = _SUMMARY_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip() or None


def capture_summary(state: CodeAgentState, text: str) -> bool:
    """Store the summary found in *text* on *state*; True when one was found."""
    summary = extract_task_summary(text)
    if summary is None:
        return False
    state.summary = summary
    return True


def is_error_run(summary: str, files: dict[str, str]) -> bool:
    return not summary or not files


# ── History ───────────────────────────────────────────────────


def to_model_history(previous: list[dict[str, str]]) -> list[ModelMessage]:
    """Convert newest-first ``{role, content}`` rows into chronological model messages."""
    history: list[ModelMessage] = []
    for item in reversed(previous):
        content = item.get("content") or ""
        if item.get("role") == "assistant":
            history.append(ModelResponse(parts=[TextPart(content=content)]))
        else:
            history.append(ModelRequest(parts=[UserPromptPart(content=content)]))
    return history


def without_prompt(previous: list[dict[str, str]], prompt: str) -> list[dict[str, str]]:
    """Drop the newest row when it is the user message being answered now."""
    if previous and previous[0].get("role") != "assistant" and previous[0].get("content") == prompt:
        return previous[1:]
    return previous


# ── Loop ──────────────────────────────────────────────────────


@dataclass
class NetworkResult:
    state: CodeAgentState
    iterations: int
    completed: bool


async def run_network(
    prompt: str,
    history: list[dict[str, str]],
    deps: CodeAgentDeps,
    max_iterations: int | None = None,
) -> NetworkResult:
    """Drive the coding agent until a summary is captured or the iteration cap is hit."""
    if max_iterations is None:
        max_iterations = settings.AGENT_MAX_ITERATIONS
    limits = UsageLimits(request_limit=settings.AGENT_REQUEST_LIMIT)
    messages = to_model_history(without_prompt(history, prompt))
    state = deps.state
    iterations = 0

    while iterations < max_iterations:
        decision = route(state)
        if isinstance(decision, Stop):
            break

        iterations += 1
        user_prompt = prompt if iterations == 1 else CONTINUE_PROMPT
        try:
            result = await decision.agent.run(
                user_prompt,
                deps=deps,
                message_history=messages,
                usage_limits=limits,
            )
        except UsageLimitExceeded as e:
            logger.warning("Code agent hit its request limit on iteration %d: %s", iterations, e)
            break

        messages = result.all_messages()
        capture_summary(state, result.output)

    completed = bool(state.summary)
    if not completed:
        logger.warning(
            "Code agent stopped after %d iteration(s) without a task summary", iterations
        )
    return NetworkResult(state=state, iterations=iterations, completed=completed)
