"""Registry of the tools available to one session."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from llm_headless.tools.base import BaseTool, ToolSchema

__all__ = ["ToolRegistry"]


class ToolRegistry:
    """Name-indexed collection of tools, kept in registration order.

    Example:
        registry = ToolRegistry()
        registry.register(ReadFileTool())
        registry.get("read_file")
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._tools: dict[str, BaseTool] = {}
        self.logger = logger or logging.getLogger(__name__)

    def register(self, tool: BaseTool) -> None:
        if not tool.name:
            raise ValueError(f"{tool!r} has no name")
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool
        self.logger.debug("Registered tool %s", tool.name)

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def list(self) -> list[BaseTool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[ToolSchema]:
        return [tool.schema for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
