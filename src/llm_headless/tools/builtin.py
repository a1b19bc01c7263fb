"""
Built-in tools: read a file, list a directory and, when explicitly allowed,
run a shell command.

Relative paths resolve against the workspace root the tool was created
with; paths outside the workspace are refused.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from llm_headless.errors import ToolError
from llm_headless.tools.base import BaseTool, ToolResult

if TYPE_CHECKING:
    from llm_headless.cancellation import CancellationToken
    from llm_headless.tools.registry import ToolRegistry

__all__ = [
    "ReadFileTool",
    "ListDirectoryTool",
    "RunShellCommandTool",
    "register_builtin_tools",
]

MAX_READ_LINES = 2000
MAX_OUTPUT_CHARS = 30_000

# Capture files are binary; reading them as text only produces noise.
BINARY_CAPTURE_SUFFIXES = (".pcap", ".pcapng", ".cap")


class _WorkspaceTool(BaseTool):
    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root).resolve()

    def resolve(self, raw_path: str) -> Path:
        path = Path(raw_path)
        if not path.is_absolute():
            path = self.root / path
        path = path.resolve()
        if path != self.root and self.root not in path.parents:
            raise ToolError(f"Path is outside the workspace: {raw_path}")
        return path


class ReadFileTool(_WorkspaceTool):
    name = "read_file"
    description = (
        "Read a text file from the workspace. Use offset and limit to page "
        "through large files."
    )
    parameters = {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "File path"},
            "offset": {
                "type": "integer",
                "description": "0-based line to start reading from",
            },
            "limit": {"type": "integer", "description": "Maximum lines to read"},
        },
        "required": ["path"],
    }

    async def execute(
        self, args: dict[str, Any], cancellation: "CancellationToken"
    ) -> ToolResult:
        path = self.resolve(args["path"])
        if not path.is_file():
            raise ToolError(f"File not found: {args['path']}")
        if path.suffix.lower() in BINARY_CAPTURE_SUFFIXES:
            raise ToolError(
                f"{path.name} is a packet capture; inspect it with tshark or "
                "capinfos instead of reading it as text."
            )

        offset = max(int(args.get("offset") or 0), 0)
        limit = int(args.get("limit") or MAX_READ_LINES)

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ToolError(f"Cannot read binary file: {args['path']}") from exc

        lines = text.splitlines()
        selected = lines[offset : offset + limit]
        content = "\n".join(selected)
        if offset + limit < len(lines):
            content += (
                f"\n[truncated: showing lines {offset + 1}-{offset + len(selected)}"
                f" of {len(lines)}]"
            )
        return ToolResult(
            llm_content=content,
            return_display=f"Read {len(selected)} line(s) from {args['path']}",
        )


class ListDirectoryTool(_WorkspaceTool):
    name = "list_directory"
    description = "List the entries of a workspace directory."
    parameters = {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "Directory path"},
        },
        "required": ["path"],
    }

    async def execute(
        self, args: dict[str, Any], cancellation: "CancellationToken"
    ) -> ToolResult:
        path = self.resolve(args["path"])
        if not path.is_dir():
            raise ToolError(f"Not a directory: {args['path']}")

        entries = sorted(path.iterdir(), key=lambda p: (not p.is_dir(), p.name))
        listing = "\n".join(
            f"[DIR] {entry.name}" if entry.is_dir() else entry.name
            for entry in entries
        )
        return ToolResult(
            llm_content=listing or "(empty directory)",
            return_display=f"Listed {len(entries)} item(s) in {args['path']}",
        )


class RunShellCommandTool(_WorkspaceTool):
    name = "run_shell_command"
    description = (
        "Run a shell command in the workspace and return its exit code, "
        "stdout and stderr."
    )
    parameters = {
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "Command line to run"},
            "cwd": {
                "type": "string",
                "description": "Working directory, relative to the workspace",
            },
        },
        "required": ["command"],
    }

    async def execute(
        self, args: dict[str, Any], cancellation: "CancellationToken"
    ) -> ToolResult:
        cwd = self.resolve(args.get("cwd") or ".")
        proc = await asyncio.create_subprocess_shell(
            args["command"],
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await _communicate(proc, cancellation)

        out = _clip(stdout.decode(errors="replace"))
        err = _clip(stderr.decode(errors="replace"))
        llm_content = (
            f"Command: {args['command']}\n"
            f"Exit code: {proc.returncode}\n"
            f"Stdout:\n{out or '(empty)'}\n"
            f"Stderr:\n{err or '(empty)'}"
        )
        if proc.returncode != 0:
            raise ToolError(
                f"Command exited with code {proc.returncode}: {err.strip() or out.strip()}"
            )
        return ToolResult(llm_content=llm_content, return_display=out or None)


async def _communicate(
    proc: asyncio.subprocess.Process, cancellation: "CancellationToken"
) -> tuple[bytes, bytes]:
    """Wait for the process, terminating it if the session is cancelled first."""
    output = asyncio.ensure_future(proc.communicate())
    cancelled = asyncio.ensure_future(cancellation.wait())
    try:
        await asyncio.wait({output, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()

    if not output.done():
        if proc.returncode is None:
            proc.terminate()
        await output
    cancellation.raise_if_cancelled()
    return output.result()


def _clip(text: str) -> str:
    if len(text) <= MAX_OUTPUT_CHARS:
        return text
    return text[:MAX_OUTPUT_CHARS] + "\n[output truncated]"


def register_builtin_tools(
    registry: "ToolRegistry",
    root: Optional[str | os.PathLike[str]] = None,
    *,
    allow_shell: bool = False,
) -> None:
    """Register the built-in tools rooted at *root* (defaults to the cwd)."""
    workspace = root if root is not None else os.getcwd()
    registry.register(ReadFileTool(workspace))
    registry.register(ListDirectoryTool(workspace))
    if allow_shell:
        registry.register(RunShellCommandTool(workspace))
