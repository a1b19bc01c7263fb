"""Pure transformation adapters for different LLM providers."""

from .openai import OpenAIRequestAdapter, OpenAIStreamAccumulator
from .anthropic import AnthropicRequestAdapter, AnthropicStreamAccumulator, ephemeral
from .gemini import GeminiRequestAdapter

__all__ = [
    "OpenAIRequestAdapter",
    "OpenAIStreamAccumulator",
    "AnthropicRequestAdapter",
    "AnthropicStreamAccumulator",
    "GeminiRequestAdapter",
    "ephemeral",
]
