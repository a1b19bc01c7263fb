"""Events produced by a streamed exchange with the agent client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union

from llm_headless.types.tool import ToolCallRequest

__all__ = ["EventType", "StreamEvent"]


class EventType(StrEnum):
    CONTENT = "content"
    TOOL_CALL_REQUEST = "tool_call_request"


@dataclass(slots=True)
class StreamEvent:
    """A single event from ``AgentClient.send_message_stream``.

    ``value`` is a text fragment for CONTENT events and a
    :class:`ToolCallRequest` for TOOL_CALL_REQUEST events.
    """

    type: EventType
    value: Union[str, ToolCallRequest]

    @classmethod
    def content(cls, text: str) -> "StreamEvent":
        return cls(EventType.CONTENT, text)

    @classmethod
    def tool_call(cls, request: ToolCallRequest) -> "StreamEvent":
        return cls(EventType.TOOL_CALL_REQUEST, request)
