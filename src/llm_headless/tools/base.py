from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from llm_headless.cancellation import CancellationToken

__all__ = ["ToolSchema", "ToolResult", "BaseTool"]


@dataclass(frozen=True, slots=True)
class ToolSchema:
    """Provider-neutral tool declaration; ``parameters`` is a JSON Schema."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ToolResult:
    """What a tool hands back.

    ``llm_content`` goes to the model, ``return_display`` to the user (and
    to the ``result`` field of JSONL ``tool_result`` records).
    """

    llm_content: str
    return_display: Optional[str] = None


class BaseTool(ABC):
    """A named, schema-described async operation the model can request."""

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = {"type": "object", "properties": {}}

    @property
    def schema(self) -> ToolSchema:
        return ToolSchema(self.name, self.description, dict(self.parameters))

    def validate_args(self, args: dict[str, Any]) -> Optional[str]:
        """Return an error message when required arguments are missing."""
        missing = [
            key for key in self.parameters.get("required", []) if key not in args
        ]
        if missing:
            return f"Missing required argument(s) for {self.name}: {', '.join(missing)}"
        return None

    @abstractmethod
    async def execute(
        self, args: dict[str, Any], cancellation: "CancellationToken"
    ) -> ToolResult:
        """Run the tool. Raise ``ToolError`` for expected failures."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
