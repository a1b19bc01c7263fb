"""Base class for streaming LLM implementations."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional, Protocol, Sequence

from llm_headless.errors import classify_error
from llm_headless.tools.base import ToolSchema
from llm_headless.types import Content, StreamEvent

__all__ = ["BaseAsyncLLM", "RequestAdapter", "StreamAccumulator"]


class StreamAccumulator(Protocol):
    """Per-stream state turning raw provider chunks into stream events."""

    def feed(self, chunk: Any) -> list[StreamEvent]:
        """Consume one raw chunk; return the events it completes."""
        ...

    def finish(self) -> list[StreamEvent]:
        """Return the events only known once the stream has ended."""
        ...

    def model_content(self) -> Content:
        """The full reply, for the conversation history."""
        ...


class RequestAdapter(Protocol):
    """Protocol for adapting Content history to a provider-specific request."""

    def to_provider(
        self,
        system_prompt: str,
        history: Sequence[Content],
        params: dict[str, Any],
        tools: Sequence[ToolSchema] = (),
    ) -> dict[str, Any]:
        """Build the provider request kwargs (without model/stream)."""
        ...

    def new_accumulator(self) -> StreamAccumulator:
        """Fresh accumulator for one streamed response."""
        ...


class BaseAsyncLLM(ABC):
    """
    Base class for all LLM implementations. All implementations are async
    and streaming-only: the session driver consumes tokens as they arrive.
    """

    provider_name: str = ""

    def __init__(
        self,
        model: str,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Initializes the base LLM client.

        Args:
            model: The identifier of the LLM model to be used.
            logger: Optional logger instance. If None, a logger named after
                    this module will be used.
            name: Optional name for this component, used in logging.
                  If None, defaults to the concrete class's name.
        """
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    @abstractmethod
    async def _stream_impl(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        """
        Open a streamed completion and return an async iterator of raw
        provider chunks. Must be implemented by subclasses.

        Args:
            request: Provider kwargs built by ``adapter.to_provider``.
        """
        ...

    async def stream(self, request: dict[str, Any]) -> AsyncIterator[Any]:
        """
        Stream raw chunks for *request*.

        Provider exceptions, whether raised while opening the stream or while
        reading it, are classified and re-raised as ``StreamError``. The
        provider stream is closed when this generator finishes or is closed
        early, so an abandoned response does not hold its connection.
        """
        raw_stream = None
        try:
            raw_stream = await self._stream_impl(request)
            async for chunk in raw_stream:
                yield chunk
        except Exception as exc:
            raise classify_error(exc, self.logger) from exc
        finally:
            if raw_stream is not None:
                await _close_stream(raw_stream)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients to avoid cleanup after the loop closes.
        Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseAsyncLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


async def _close_stream(stream: Any) -> None:
    """Close an SDK ``AsyncStream`` (``close``) or a plain async generator (``aclose``)."""
    close = getattr(stream, "close", None) or getattr(stream, "aclose", None)
    if close is not None:
        await close()
