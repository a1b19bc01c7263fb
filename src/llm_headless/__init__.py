"""
llm-headless - run one non-interactive agent session and stream the result
as plain text or JSON lines.
"""

__version__ = "0.1.0"

from .auth import AuthType, Provider, get_api_key
from .cancellation import CancellationToken
from .client import AgentClient
from .config import Config, Settings, load_settings
from .headless import run_non_interactive
from .output import OutputWriter
from .types import Content, EventType, StreamEvent, ToolCallRequest, ToolCallResponse

__all__ = [
    "AuthType",
    "Provider",
    "get_api_key",
    "CancellationToken",
    "AgentClient",
    "Config",
    "Settings",
    "load_settings",
    "run_non_interactive",
    "OutputWriter",
    "Content",
    "EventType",
    "StreamEvent",
    "ToolCallRequest",
    "ToolCallResponse",
]
