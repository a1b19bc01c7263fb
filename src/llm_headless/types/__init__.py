from .chat import Content, Part, text_part, part_text
from .events import EventType, StreamEvent
from .tool import ToolCallRequest, ToolCallResponse

__all__ = [
    "Content",
    "Part",
    "text_part",
    "part_text",
    "EventType",
    "StreamEvent",
    "ToolCallRequest",
    "ToolCallResponse",
]
