"""Tests for the OpenTelemetry span helpers."""

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import llm_headless.telemetry as telemetry
from llm_headless.config import Config, Settings, TelemetrySettings


@pytest.fixture
def exporter(monkeypatch):
    memory = InMemorySpanExporter()
    monkeypatch.setattr(telemetry, "_create_exporter", lambda settings: memory)
    yield memory
    telemetry.shutdown_telemetry(None)


def enabled_config():
    return Config(Settings(telemetry=TelemetrySettings(enabled=True)))


def test_disabled_by_default():
    telemetry.initialize_telemetry(Config(Settings()))

    assert not telemetry.is_telemetry_sdk_initialized()
    with telemetry.session_span("p", False) as span:
        assert not span.is_recording()


def test_spans_recorded_and_nested(exporter):
    config = enabled_config()
    telemetry.initialize_telemetry(config)
    assert telemetry.is_telemetry_sdk_initialized()

    with telemetry.session_span("p-1", True):
        with telemetry.turn_span("p-1", 1):
            with telemetry.tool_span("read_file", "c1"):
                pass

    spans = {span.name: span for span in exporter.get_finished_spans()}
    assert set(spans) == {"llm_headless.session", "llm_headless.turn", "llm_headless.tool"}
    assert spans["llm_headless.tool"].attributes["llm_headless.tool.name"] == "read_file"
    assert spans["llm_headless.turn"].parent.span_id == spans["llm_headless.session"].context.span_id
    assert spans["llm_headless.session"].resource.attributes["service.name"] == "llm-headless"


def test_shutdown_resets(exporter):
    config = enabled_config()
    telemetry.initialize_telemetry(config)

    telemetry.shutdown_telemetry(config)

    assert not telemetry.is_telemetry_sdk_initialized()
    with telemetry.turn_span("p", 1) as span:
        assert not span.is_recording()
