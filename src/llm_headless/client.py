"""
Agent client: owns the conversation history and turns one batch of user
parts into a stream of content / tool-call events.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional, Sequence

from llm_headless.params import normalize_params
from llm_headless.types import Content, Part

if TYPE_CHECKING:
    from llm_headless.cancellation import CancellationToken
    from llm_headless.providers.base import BaseAsyncLLM
    from llm_headless.tools.registry import ToolRegistry
    from llm_headless.types import StreamEvent

__all__ = ["AgentClient"]


class AgentClient:
    """
    Streams model replies for a headless session.

    Example:
        client = AgentClient(llm, system_prompt=prompt, tool_registry=registry)
        async for event in client.send_message_stream(parts, token, prompt_id):
            ...
    """

    def __init__(
        self,
        llm: "BaseAsyncLLM",
        *,
        system_prompt: str = "",
        tool_registry: Optional["ToolRegistry"] = None,
        params: dict[str, Any] | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.llm = llm
        self.system_prompt = system_prompt
        self.tool_registry = tool_registry
        self.params = normalize_params(params)
        self.logger = logger or logging.getLogger(__name__)
        self.history: list[Content] = []

    def reset_history(self) -> None:
        self.history.clear()

    async def send_message_stream(
        self,
        parts: Sequence[Part],
        cancellation: "CancellationToken",
        prompt_id: str,
    ) -> AsyncIterator["StreamEvent"]:
        """
        Send *parts* as the next user message and stream the reply.

        Text is yielded as it arrives; tool-call requests are yielded once
        the provider stream is complete. The reply, partial if cancelled, is
        appended to ``history``. Provider failures raise ``StreamError``.
        """
        self.history.append(Content(role="user", parts=list(parts)))

        adapter = self.llm.adapter
        tools = self.tool_registry.schemas() if self.tool_registry else []
        request = adapter.to_provider(self.system_prompt, self.history, self.params, tools)
        accumulator = adapter.new_accumulator()

        self.logger.debug(
            "[%s] prompt %s: sending %d part(s), history=%d",
            self.__class__.__name__,
            prompt_id,
            len(parts),
            len(self.history),
        )

        try:
            async with aclosing(self.llm.stream(request)) as stream:
                async for chunk in stream:
                    for event in accumulator.feed(chunk):
                        yield event
                    if cancellation.is_cancelled:
                        self.logger.debug("Stream for prompt %s cancelled", prompt_id)
                        return
            for event in accumulator.finish():
                yield event
        finally:
            reply = accumulator.model_content()
            if reply.parts:
                self.history.append(reply)
