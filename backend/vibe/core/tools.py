"""
Sandbox operations behind the code agent's tools.

Every operation returns a ``ToolResult`` instead of raising: the agent reads
failures as tool output and adapts, so a failing ``npm install`` or a missing
file never aborts the run.  A ``ToolError`` keeps whatever stdout/stderr was
captured before the failure.
"""

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class FileEntry(BaseModel):
    path: str
    content: str


@dataclass
class ToolError:
    message: str
    stdout: str = ""
    stderr: str = ""

    def render(self) -> str:
        if not (self.stdout or self.stderr):
            return f"Error: {self.message}"
        return (
            f"Command failed: {self.message}\n"
            f"stdout: {self.stdout}\n"
            f"stderr: {self.stderr}"
        )


@dataclass
class ToolResult(Generic[T]):
    value: T | None = None
    error: ToolError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def render(self) -> str:
        """Text handed back to the model."""
        if self.error is not None:
            return self.error.render()
        if isinstance(self.value, str):
            return self.value
        return json.dumps(self.value)


async def run_terminal(sandbox: Any, command: str) -> ToolResult[str]:
    """Run *command* in the sandbox, buffering output as it streams."""
    stdout: list[str] = []
    stderr: list[str] = []
    try:
        result = await sandbox.commands.run(
            command,
            on_stdout=stdout.append,
            on_stderr=stderr.append,
        )
    except Exception as e:
        return ToolResult(
            error=ToolError(message=str(e), stdout="".join(stdout), stderr="".join(stderr))
        )
    return ToolResult(value=result.stdout or "".join(stdout))


async def write_files(sandbox: Any, files: list[FileEntry]) -> ToolResult[dict[str, str]]:
    """Write every entry; the value is the ``{path: content}`` map that was written."""
    written: dict[str, str] = {}
    try:
        for file in files:
            await sandbox.files.write(file.path, file.content)
            written[file.path] = file.content
    except Exception as e:
        return ToolResult(error=ToolError(message=str(e)))
    return ToolResult(value=written)


async def read_files(sandbox: Any, paths: list[str]) -> ToolResult[list[dict[str, str]]]:
    contents: list[dict[str, str]] = []
    try:
        for path in paths:
            content = await sandbox.files.read(path)
            contents.append({"path": path, "content": content})
    except Exception as e:
        return ToolResult(error=ToolError(message=str(e)))
    return ToolResult(value=contents)


def merge_files(current: dict[str, str], written: dict[str, str]) -> dict[str, str]:
    """Last write per path wins; paths not in *written* are kept as they are."""
    return {**current, **written}
