"""Shared fakes for driving sessions without a model provider."""

from __future__ import annotations

import io
from typing import Any, Callable, Optional, Sequence

import pytest

from llm_headless.cancellation import CancellationToken
from llm_headless.config import Config, Settings
from llm_headless.output import OutputWriter
from llm_headless.tools import ToolRegistry
from llm_headless.types import StreamEvent, ToolCallRequest


class FakeAgentClient:
    """Replays one scripted list of events per turn and records every call."""

    def __init__(
        self,
        turns: Sequence[Sequence[StreamEvent]],
        on_event: Optional[Callable[[int, StreamEvent], None]] = None,
    ) -> None:
        self.turns = [list(t) for t in turns]
        self.on_event = on_event
        self.calls: list[dict[str, Any]] = []

    async def send_message_stream(self, parts, cancellation, prompt_id):
        turn = len(self.calls)
        self.calls.append(
            {"parts": list(parts), "cancellation": cancellation, "prompt_id": prompt_id}
        )
        events = self.turns[turn] if turn < len(self.turns) else []
        for event in events:
            if self.on_event is not None:
                self.on_event(turn, event)
            yield event


def content(text: str) -> StreamEvent:
    return StreamEvent.content(text)


def tool_call(name: str, args: Optional[dict] = None, call_id: Optional[str] = None):
    return StreamEvent.tool_call(ToolCallRequest(call_id=call_id, name=name, args=args))


@pytest.fixture
def make_config():
    def _make(client=None, *, max_session_turns: int = -1, registry=None, **settings):
        return Config(
            Settings(max_session_turns=max_session_turns, **settings),
            client=client,
            tool_registry=registry if registry is not None else ToolRegistry(),
        )

    return _make


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def make_output(streams):
    def _make(jsonl: bool = False) -> OutputWriter:
        stdout, stderr = streams
        return OutputWriter(jsonl, stdout=stdout, stderr=stderr)

    return _make


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()
