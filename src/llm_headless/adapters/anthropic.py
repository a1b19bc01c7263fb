"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from llm_headless.adapters._common import (
    function_call_part,
    parse_arguments,
    response_output,
)
from llm_headless.params import flatten_params
from llm_headless.tools.base import ToolSchema
from llm_headless.types import Content, StreamEvent, ToolCallRequest, part_text, text_part

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


def ephemeral(text: str) -> dict[str, Any]:
    """Return a text block marked for Anthropic's 5‑minute *ephemeral* prompt cache."""
    return {
        "type": "text",
        "text": text,
        "cache_control": {"type": "ephemeral"},
    }


class AnthropicRequestAdapter:
    """Adapter for converting between Content history and the Anthropic format."""

    def __init__(self, *, cache_system_prompt: bool = True) -> None:
        self.cache_system_prompt = cache_system_prompt

    def to_provider(
        self,
        system_prompt: str,
        history: Sequence[Content],
        params: dict[str, Any],
        tools: Sequence[ToolSchema] = (),
    ) -> dict[str, Any]:
        """Convert history, normalized params and tool schemas to request kwargs."""
        anthropic_messages: list[dict[str, Any]] = []

        for content in history:
            blocks = self._blocks(content)
            if not blocks:
                logger.debug("Skipping %s message without content", content.role)
                continue
            role = "assistant" if content.role == "model" else "user"
            anthropic_messages.append({"role": role, "content": blocks})

        base_params = flatten_params(params)

        # Anthropic requires max_tokens
        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        request: dict[str, Any] = {"messages": anthropic_messages, **base_params}
        if system_prompt:
            request["system"] = (
                [ephemeral(system_prompt)] if self.cache_system_prompt else system_prompt
            )
        if tools:
            request["tools"] = self.tool_declarations(tools)
        return request

    def _blocks(self, content: Content) -> list[dict[str, Any]]:
        blocks: list[dict[str, Any]] = []
        for part in content.parts:
            text = part_text(part)
            if text:
                blocks.append({"type": "text", "text": text})
            elif "function_call" in part and content.role == "model":
                call = part["function_call"]
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call.get("id") or "",
                        "name": call["name"],
                        "input": call.get("args") or {},
                    }
                )
            elif "function_response" in part and content.role == "user":
                response = part["function_response"]
                blocks.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": response.get("id") or "",
                        "content": response_output(response.get("response")),
                    }
                )
        return blocks

    def tool_declarations(self, tools: Sequence[ToolSchema]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters or {"type": "object", "properties": {}},
            }
            for tool in tools
        ]

    def new_accumulator(self) -> "AnthropicStreamAccumulator":
        return AnthropicStreamAccumulator()


class AnthropicStreamAccumulator:
    """Turns raw Anthropic stream events into stream events.

    Handles ``content_block_start`` (tool_use blocks), ``content_block_delta``
    with ``text_delta`` or ``input_json_delta``, keyed by block index.
    """

    def __init__(self) -> None:
        self._text: list[str] = []
        self._tool_blocks: dict[int, dict[str, Any]] = {}

    def feed(self, event: Any) -> list[StreamEvent]:
        event_type = getattr(event, "type", None)

        if event_type == "content_block_start":
            block = event.content_block
            if getattr(block, "type", None) == "tool_use":
                self._tool_blocks[event.index] = {
                    "id": block.id,
                    "name": block.name,
                    "json": "",
                    "input": dict(block.input) if hasattr(block.input, "items") else {},
                }
            return []

        if event_type == "content_block_delta":
            delta = event.delta
            delta_type = getattr(delta, "type", None)
            if delta_type == "text_delta" and delta.text:
                self._text.append(delta.text)
                return [StreamEvent.content(delta.text)]
            if delta_type == "input_json_delta":
                block = self._tool_blocks.get(event.index)
                if block is not None:
                    block["json"] += delta.partial_json
            return []

        return []

    def _arguments(self, block: dict[str, Any]) -> dict[str, Any]:
        if block["json"]:
            return parse_arguments(block["json"])
        return block["input"]

    def finish(self) -> list[StreamEvent]:
        return [
            StreamEvent.tool_call(
                ToolCallRequest(
                    call_id=block["id"] or None,
                    name=block["name"],
                    args=self._arguments(block),
                )
            )
            for _, block in sorted(self._tool_blocks.items())
        ]

    def model_content(self) -> Content:
        """The assistant reply as it should be recorded in history."""
        parts = [text_part("".join(self._text))] if self._text else []
        for _, block in sorted(self._tool_blocks.items()):
            parts.append(
                function_call_part(block["id"] or None, block["name"], self._arguments(block))
            )
        return Content(role="model", parts=parts)
