import json
from types import SimpleNamespace

import pytest

from conftest import FakeSandbox
from vibe.core.agents import CodeAgentDeps, CodeAgentState, create_or_update_files, read_sandbox_files, terminal
from vibe.core.tools import FileEntry, ToolError, merge_files, run_terminal, write_files

pytestmark = pytest.mark.anyio


def _ctx(sandbox, state=None):
    return SimpleNamespace(deps=CodeAgentDeps(sandbox=sandbox, state=state or CodeAgentState()))


# ═══════════════════════════════════════════════════════
# FILE MERGING
# ═══════════════════════════════════════════════════════

def test_merge_last_write_wins_and_keeps_other_paths():
    current = {"app/page.tsx": "old", "lib/utils.ts": "utils"}
    merged = merge_files(current, {"app/page.tsx": "new"})

    assert merged == {"app/page.tsx": "new", "lib/utils.ts": "utils"}
    assert current["app/page.tsx"] == "old"


def test_merge_is_idempotent():
    written = {"app/page.tsx": "content"}
    once = merge_files({}, written)
    assert merge_files(once, written) == once


# ═══════════════════════════════════════════════════════
# TERMINAL
# ═══════════════════════════════════════════════════════

async def test_terminal_returns_stdout():
    sandbox = FakeSandbox()
    result = await run_terminal(sandbox, "npm install zod --yes")

    assert result.ok
    assert result.value == "ran npm install zod --yes\n"
    assert sandbox.commands_run == ["npm install zod --yes"]


async def test_terminal_failure_carries_partial_output():
    sandbox = FakeSandbox()
    sandbox.failing_commands["npm install nope"] = ("resolving...\n", "404 Not Found\n")

    result = await run_terminal(sandbox, "npm install nope")

    assert not result.ok
    assert result.error.stdout == "resolving...\n"
    assert result.error.stderr == "404 Not Found\n"
    rendered = result.render()
    assert rendered.startswith("Command failed: ")
    assert "stdout: resolving..." in rendered
    assert "stderr: 404 Not Found" in rendered


async def test_terminal_tool_renders_errors_instead_of_raising():
    sandbox = FakeSandbox()
    sandbox.failing_commands["false"] = ("", "boom")

    output = await terminal(_ctx(sandbox), "false")

    assert output.startswith("Command failed:")


def test_error_without_buffers_renders_plain_message():
    assert ToolError(message="disk full").render() == "Error: disk full"


# ═══════════════════════════════════════════════════════
# FILES
# ═══════════════════════════════════════════════════════

async def test_write_files_returns_written_map():
    sandbox = FakeSandbox()
    entries = [FileEntry(path="app/page.tsx", content="a"), FileEntry(path="app/page.tsx", content="b")]

    result = await write_files(sandbox, entries)

    assert result.ok
    assert result.value == {"app/page.tsx": "b"}
    assert sandbox.written == {"app/page.tsx": "b"}


async def test_create_or_update_files_merges_into_state():
    sandbox = FakeSandbox()
    state = CodeAgentState(files={"lib/utils.ts": "utils"})

    output = await create_or_update_files(
        _ctx(sandbox, state), [FileEntry(path="app/page.tsx", content="page")]
    )

    assert "app/page.tsx" in output
    assert state.files == {"lib/utils.ts": "utils", "app/page.tsx": "page"}


async def test_failed_write_leaves_state_untouched():
    sandbox = FakeSandbox()
    sandbox.unwritable.add("app/locked.tsx")
    state = CodeAgentState(files={"lib/utils.ts": "utils"})

    output = await create_or_update_files(
        _ctx(sandbox, state),
        [FileEntry(path="app/page.tsx", content="page"), FileEntry(path="app/locked.tsx", content="x")],
    )

    assert output.startswith("Error: ")
    assert state.files == {"lib/utils.ts": "utils"}


async def test_read_files_returns_json_list():
    sandbox = FakeSandbox()
    sandbox.written["components/ui/button.tsx"] = "export function Button() {}"

    output = await read_sandbox_files(_ctx(sandbox), ["components/ui/button.tsx"])

    assert json.loads(output) == [
        {"path": "components/ui/button.tsx", "content": "export function Button() {}"}
    ]


async def test_read_missing_file_is_an_error_string():
    output = await read_sandbox_files(_ctx(FakeSandbox()), ["missing.tsx"])
    assert output.startswith("Error: ")
