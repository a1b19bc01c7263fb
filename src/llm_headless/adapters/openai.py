"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from openai.types.chat import ChatCompletionChunk

from llm_headless.adapters._common import (
    function_call_part,
    parse_arguments,
    response_output,
    user_text,
)
from llm_headless.params import flatten_params
from llm_headless.tools.base import ToolSchema
from llm_headless.types import Content, StreamEvent, ToolCallRequest, text_part

logger = logging.getLogger(__name__)


class OpenAIRequestAdapter:
    """Adapter for converting between Content history and the OpenAI chat format."""

    def to_provider(
        self,
        system_prompt: str,
        history: Sequence[Content],
        params: dict[str, Any],
        tools: Sequence[ToolSchema] = (),
    ) -> dict[str, Any]:
        """Convert history, normalized params and tool schemas to request kwargs."""
        openai_messages: list[dict[str, Any]] = []
        if system_prompt:
            openai_messages.append({"role": "system", "content": system_prompt})

        for content in history:
            if content.role == "model":
                openai_messages.append(self._assistant_message(content))
                continue

            # Tool messages must directly follow the assistant message that
            # requested them, so they go before any user text.
            for response in content.function_responses():
                openai_messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": response.get("id") or "",
                        "content": response_output(response.get("response")),
                    }
                )
            text = user_text(content)
            if text:
                openai_messages.append({"role": "user", "content": text})
            elif not content.function_responses():
                logger.debug("Skipping user message without text or tool output")

        request: dict[str, Any] = {
            "messages": openai_messages,
            **flatten_params(params),
        }
        if tools:
            request["tools"] = self.tool_declarations(tools)
        return request

    def _assistant_message(self, content: Content) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant"}
        text = content.text
        calls = content.function_calls()
        if calls:
            message["tool_calls"] = [
                {
                    "id": call.get("id") or "",
                    "type": "function",
                    "function": {
                        "name": call["name"],
                        "arguments": json.dumps(call.get("args") or {}),
                    },
                }
                for call in calls
            ]
            # OpenAI expects null content alongside tool_calls
            message["content"] = text or None
        else:
            message["content"] = text
        return message

    def tool_declarations(self, tools: Sequence[ToolSchema]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    def new_accumulator(self) -> "OpenAIStreamAccumulator":
        return OpenAIStreamAccumulator()


class OpenAIStreamAccumulator:
    """Turns ``ChatCompletionChunk`` objects into stream events.

    Text deltas become CONTENT events as they arrive. Tool-call deltas are
    merged by index and only emitted from :meth:`finish`, once their JSON
    arguments are complete.
    """

    def __init__(self) -> None:
        self._text: list[str] = []
        self._tool_calls: list[dict[str, Any]] = []

    def feed(self, chunk: ChatCompletionChunk) -> list[StreamEvent]:
        if not chunk.choices:
            return []
        delta = chunk.choices[0].delta
        if delta is None:
            return []

        events: list[StreamEvent] = []
        if delta.content:
            self._text.append(delta.content)
            events.append(StreamEvent.content(delta.content))

        for tc_chunk in delta.tool_calls or []:
            while len(self._tool_calls) <= tc_chunk.index:
                self._tool_calls.append({"id": "", "name": "", "arguments": ""})
            agg = self._tool_calls[tc_chunk.index]
            if tc_chunk.id:
                agg["id"] = tc_chunk.id
            if tc_chunk.function:
                if tc_chunk.function.name:
                    agg["name"] += tc_chunk.function.name
                if tc_chunk.function.arguments:
                    agg["arguments"] += tc_chunk.function.arguments
        return events

    def finish(self) -> list[StreamEvent]:
        return [
            StreamEvent.tool_call(
                ToolCallRequest(
                    call_id=call["id"] or None,
                    name=call["name"],
                    args=parse_arguments(call["arguments"]),
                )
            )
            for call in self._tool_calls
            if call["name"]
        ]

    def model_content(self) -> Content:
        """The assistant reply as it should be recorded in history."""
        parts = [text_part("".join(self._text))] if self._text else []
        for call in self._tool_calls:
            if call["name"]:
                parts.append(
                    function_call_part(
                        call["id"] or None, call["name"], parse_arguments(call["arguments"])
                    )
                )
        return Content(role="model", parts=parts)
