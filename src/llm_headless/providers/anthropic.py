from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Self

from anthropic import AsyncAnthropic

from llm_headless.adapters import AnthropicRequestAdapter
from llm_headless.providers.base import BaseAsyncLLM, RequestAdapter


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic LLM implementation (async‑only, streaming).

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    provider_name = "anthropic"

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model, logger=logger, name=name)
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model, logger=logger, name=name)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _stream_impl(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        """Open a raw-event message stream.

        ``messages.create(stream=True)`` yields only raw events; the
        ``messages.stream`` helper would add derived ``text`` events on top
        and double every token.
        """
        args = {"model": self.model, "stream": True, **request}
        self._log(
            f"Streaming from anthropic model {self.model} "
            f"({len(request.get('messages', []))} messages)",
            logging.DEBUG,
        )
        return await self._client.messages.create(**args)
