"""OpenTelemetry tracing for headless sessions.

Telemetry is off unless enabled in settings. When it is off every span
helper yields a non-recording span, so callers never branch on it.

Spans:
    llm_headless.session   one per ``run_non_interactive`` call
    llm_headless.turn      one per model round-trip
    llm_headless.tool      one per tool execution
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

if TYPE_CHECKING:
    from llm_headless.config import Config, TelemetrySettings

__all__ = [
    "initialize_telemetry",
    "is_telemetry_sdk_initialized",
    "shutdown_telemetry",
    "session_span",
    "turn_span",
    "tool_span",
]

logger = logging.getLogger(__name__)

_TRACER_NAME = "llm_headless"
_provider: Optional[TracerProvider] = None
_tracer: Optional[trace.Tracer] = None


def _create_exporter(settings: "TelemetrySettings") -> Optional[SpanExporter]:
    if settings.exporter == "none":
        return None
    if settings.exporter == "console":
        # stdout belongs to the session output
        return ConsoleSpanExporter(out=sys.stderr)
    if settings.exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter,
        )

        # None falls back to the OTEL_EXPORTER_OTLP_* environment variables
        return OTLPSpanExporter(endpoint=settings.endpoint)
    raise ValueError(f"Unknown telemetry exporter: {settings.exporter}")


def initialize_telemetry(config: "Config") -> None:
    """Set up the tracer provider if telemetry is enabled. Idempotent."""
    global _provider, _tracer
    settings = config.settings.telemetry
    if not settings.enabled or _provider is not None:
        return

    resource = Resource.create({SERVICE_NAME: settings.service_name})
    provider = TracerProvider(resource=resource)
    exporter = _create_exporter(settings)
    if exporter is not None:
        processor = (
            BatchSpanProcessor(exporter)
            if settings.exporter == "otlp"
            else SimpleSpanProcessor(exporter)
        )
        provider.add_span_processor(processor)

    _provider = provider
    _tracer = provider.get_tracer(_TRACER_NAME)
    logger.debug("Telemetry initialized (exporter=%s)", settings.exporter)


def is_telemetry_sdk_initialized() -> bool:
    return _provider is not None


def shutdown_telemetry(config: "Config") -> None:
    """Flush pending spans and tear the provider down."""
    global _provider, _tracer
    if _provider is None:
        return
    try:
        _provider.force_flush()
        _provider.shutdown()
        logger.debug("Telemetry shut down")
    finally:
        _provider = None
        _tracer = None


def _get_tracer() -> trace.Tracer:
    return _tracer if _tracer is not None else trace.NoOpTracer()


@contextmanager
def _span(name: str, attributes: dict[str, Any]) -> Iterator[trace.Span]:
    with _get_tracer().start_as_current_span(name, attributes=attributes) as span:
        yield span


@contextmanager
def session_span(prompt_id: str, jsonl_output: bool) -> Iterator[trace.Span]:
    with _span(
        "llm_headless.session",
        {"llm_headless.prompt_id": prompt_id, "llm_headless.jsonl": jsonl_output},
    ) as span:
        yield span


@contextmanager
def turn_span(prompt_id: str, turn: int) -> Iterator[trace.Span]:
    with _span(
        "llm_headless.turn",
        {"llm_headless.prompt_id": prompt_id, "llm_headless.turn_index": turn},
    ) as span:
        yield span


@contextmanager
def tool_span(tool_name: str, call_id: str) -> Iterator[trace.Span]:
    with _span(
        "llm_headless.tool",
        {"llm_headless.tool.name": tool_name, "llm_headless.tool.call_id": call_id},
    ) as span:
        yield span
