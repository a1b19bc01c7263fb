from __future__ import annotations

import logging
from typing import Type

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from llm_headless.auth import Provider, get_api_key
from llm_headless.providers.anthropic import AnthropicLLM
from llm_headless.providers.base import BaseAsyncLLM, RequestAdapter, StreamAccumulator
from llm_headless.providers.openai import GeminiLLM, OpenAILLM

# map Provider enum to its LLM implementation
_LLM_REGISTRY: dict[Provider, Type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GEMINI: GeminiLLM,
}


def create_llm(
    provider: Provider,
    model: str,
    *,
    api_key: str | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    logger: logging.Logger | None = None,
    **provider_kwargs: object,
) -> BaseAsyncLLM:
    """
    Factory for creating any supported LLM.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        model: Model identifier (e.g. "gemini-2.5-flash").
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        client: Optional pre-configured client instance to use.
            - For Provider.OPENAI and Provider.GEMINI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
        logger: Optional custom logger.
        **provider_kwargs: Any extra args to pass through (timeout, max_retries, base_url).
    """
    try:
        llm_cls = _LLM_REGISTRY[provider]
    except KeyError as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller‑supplied client verbatim
        return llm_cls.from_client(model, client, logger=logger)

    key = api_key or get_api_key(provider)
    return llm_cls(model, api_key=key, logger=logger, **provider_kwargs)


__all__ = [
    "BaseAsyncLLM",
    "RequestAdapter",
    "StreamAccumulator",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "create_llm",
]
