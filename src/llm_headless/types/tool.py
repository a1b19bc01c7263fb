"""
Provider‑neutral dataclasses for tool calls requested by the model.

Everything provider‑specific lives in adapters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from llm_headless.types.chat import Part

__all__ = ["ToolCallRequest", "ToolCallResponse"]


@dataclass(slots=True)
class ToolCallRequest:
    """A request emitted by the model (or the user) to call a local tool."""

    call_id: Optional[str]
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    is_client_initiated: bool = False
    prompt_id: str = ""


@dataclass(slots=True)
class ToolCallResponse:
    """Outcome of a single tool execution."""

    call_id: str
    response_parts: Union[Part, str, Sequence[Union[Part, str]], None] = None
    result_display: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None
