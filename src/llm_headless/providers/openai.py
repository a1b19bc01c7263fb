from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Self

from openai import AsyncOpenAI

from llm_headless.adapters import GeminiRequestAdapter, OpenAIRequestAdapter
from llm_headless.providers.base import BaseAsyncLLM, RequestAdapter

_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI LLM implementation (async‑only, streaming).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    provider_name = "openai"

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
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter: RequestAdapter = OpenAIRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build around an already‑configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model, logger=logger, name=name)
        self._client = client
        self._adapter = cls._default_adapter()
        return self

    @staticmethod
    def _default_adapter() -> RequestAdapter:
        return OpenAIRequestAdapter()

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _stream_impl(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        """Open a streamed chat completion."""
        args = {"model": self.model, "stream": True, **request}

        # Handle special fields that need passthrough
        passthrough_keys = ("verbosity", "reasoning_effort")
        extra_body = {}
        for k in passthrough_keys:
            if k in args:
                extra_body[k] = args.pop(k)
        if extra_body:
            args["extra_body"] = {**args.get("extra_body", {}), **extra_body}

        self._log(
            f"Streaming from {self.provider_name} model {self.model} "
            f"({len(request.get('messages', []))} messages)",
            logging.DEBUG,
        )
        return await self._client.chat.completions.create(**args)


class GeminiLLM(OpenAILLM):
    """
    Gemini LLM implementation via the OpenAI-compatible endpoint.
    """

    provider_name = "gemini"

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: str = _DEFAULT_GEMINI_BASE_URL,
    ) -> None:
        super().__init__(
            model,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            logger=logger,
            name=name,
            base_url=base_url,
        )
        self._adapter = GeminiRequestAdapter()

    @staticmethod
    def _default_adapter() -> RequestAdapter:
        return GeminiRequestAdapter()
