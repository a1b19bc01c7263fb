"""Tool definitions, the registry and the executor the session driver calls."""

from .base import BaseTool, ToolResult, ToolSchema
from .registry import ToolRegistry
from .executor import execute_tool_call
from .builtin import (
    ListDirectoryTool,
    ReadFileTool,
    RunShellCommandTool,
    register_builtin_tools,
)

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolSchema",
    "ToolRegistry",
    "execute_tool_call",
    "ListDirectoryTool",
    "ReadFileTool",
    "RunShellCommandTool",
    "register_builtin_tools",
]
