"""Tests for the agent client and the provider base class."""

import asyncio

import httpx
import openai
import pytest
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from openai.types.chat.chat_completion_chunk import (
    ChatCompletionChunk,
    Choice,
    ChoiceDelta,
    ChoiceDeltaToolCall,
    ChoiceDeltaToolCallFunction,
)

from llm_headless.adapters import OpenAIRequestAdapter
from llm_headless.auth import Provider, get_api_key
from llm_headless.cancellation import CancellationToken
from llm_headless.client import AgentClient
from llm_headless.errors import ConfigError, StreamError
from llm_headless.headless import CANCELLED_MESSAGE, run_non_interactive
from llm_headless.providers import AnthropicLLM, GeminiLLM, OpenAILLM, create_llm
from llm_headless.providers.base import BaseAsyncLLM
from llm_headless.tools import ToolRegistry
from llm_headless.types import EventType

from test_tools import EchoTool


def chunk(content=None, tool_calls=None):
    return ChatCompletionChunk(
        id="chunk",
        choices=[
            Choice(
                index=0,
                delta=ChoiceDelta(content=content, tool_calls=tool_calls),
                finish_reason=None,
            )
        ],
        created=0,
        model="fake",
        object="chat.completion.chunk",
    )


def call_chunk(call_id, name, arguments):
    return chunk(
        tool_calls=[
            ChoiceDeltaToolCall(
                index=0,
                id=call_id,
                type="function",
                function=ChoiceDeltaToolCallFunction(name=name, arguments=arguments),
            )
        ]
    )


class FakeLLM(BaseAsyncLLM):
    """Streams scripted OpenAI chunks, one script per request."""

    provider_name = "fake"

    def __init__(self, scripts, *, fail_with=None):
        super().__init__("fake-model")
        self.scripts = list(scripts)
        self.fail_with = fail_with
        self.requests = []
        self._adapter = OpenAIRequestAdapter()

    @property
    def adapter(self):
        return self._adapter

    async def _stream_impl(self, request):
        self.requests.append(request)
        script = self.scripts.pop(0) if self.scripts else []
        fail_with = self.fail_with

        async def chunks():
            for item in script:
                yield item
            if fail_with is not None:
                raise fail_with

        return chunks()


class RecordingStream:
    """Raw provider stream that remembers whether it was closed.

    ``before`` maps a chunk index to a callback run just before that chunk
    is yielded.
    """

    def __init__(self, chunks, before=None):
        self.chunks = chunks
        self.before = before or {}
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for index, item in enumerate(self.chunks):
            if index in self.before:
                self.before[index]()
            yield item

    async def close(self):
        self.closed = True


class RecordingLLM(FakeLLM):
    def __init__(self, stream):
        super().__init__([])
        self.raw_stream = stream

    async def _stream_impl(self, request):
        self.requests.append(request)
        return self.raw_stream


async def collect(stream):
    return [event async for event in stream]


class TestAgentClient:
    def test_streams_text_and_records_history(self):
        llm = FakeLLM([[chunk("Hel"), chunk("lo")]])
        client = AgentClient(llm, system_prompt="sys")

        events = asyncio.run(
            collect(client.send_message_stream([{"text": "hi"}], CancellationToken(), "p"))
        )

        assert [e.value for e in events] == ["Hel", "lo"]
        assert [c.role for c in client.history] == ["user", "model"]
        assert client.history[1].text == "Hello"
        assert llm.requests[0]["messages"][0] == {"role": "system", "content": "sys"}

    def test_tool_calls_yielded_after_text(self):
        llm = FakeLLM([[chunk("Checking."), call_chunk("c1", "echo", '{"text": "x"}')]])
        client = AgentClient(llm)

        events = asyncio.run(
            collect(client.send_message_stream([{"text": "go"}], CancellationToken(), "p"))
        )

        assert [e.type for e in events] == [EventType.CONTENT, EventType.TOOL_CALL_REQUEST]
        assert events[1].value.call_id == "c1"
        assert events[1].value.args == {"text": "x"}

    def test_tool_schemas_sent(self):
        registry = ToolRegistry()
        registry.register(EchoTool())
        llm = FakeLLM([[chunk("ok")]])
        client = AgentClient(llm, tool_registry=registry)

        asyncio.run(collect(client.send_message_stream([{"text": "go"}], CancellationToken(), "p")))

        assert llm.requests[0]["tools"][0]["function"]["name"] == "echo"

    def test_history_carries_into_next_turn(self):
        llm = FakeLLM([[call_chunk("c1", "echo", "{}")], [chunk("done")]])
        client = AgentClient(llm)
        token = CancellationToken()
        response = {
            "function_response": {"id": "c1", "name": "echo", "response": {"output": "x"}}
        }

        async def two_turns():
            await collect(client.send_message_stream([{"text": "go"}], token, "p"))
            return await collect(client.send_message_stream([response], token, "p"))

        asyncio.run(two_turns())

        roles = [m["role"] for m in llm.requests[1]["messages"]]
        assert roles == ["user", "assistant", "tool"]
        assert len(client.history) == 4

    def test_cancellation_stops_stream_and_drops_tool_calls(self):
        token = CancellationToken()
        llm = FakeLLM([[chunk("a"), call_chunk("c1", "echo", "{}"), chunk("b")]])
        client = AgentClient(llm)

        async def consume():
            seen = []
            async for event in client.send_message_stream([{"text": "go"}], token, "p"):
                seen.append(event)
                token.cancel()
            return seen

        events = asyncio.run(consume())

        assert [e.value for e in events] == ["a"]
        assert client.history[-1].text == "a"

    def test_provider_failure_raises_stream_error(self):
        llm = FakeLLM([[chunk("partial")]], fail_with=ConnectionError("reset"))
        client = AgentClient(llm)

        with pytest.raises(StreamError, match="Connection problem"):
            asyncio.run(
                collect(client.send_message_stream([{"text": "go"}], CancellationToken(), "p"))
            )

        # the partial reply is still recorded
        assert client.history[-1].text == "partial"

    def test_provider_stream_closed_after_full_read(self):
        stream = RecordingStream([chunk("a")])
        client = AgentClient(RecordingLLM(stream))

        asyncio.run(collect(client.send_message_stream([{"text": "go"}], CancellationToken(), "p")))

        assert stream.closed

    def test_cancelled_session_reports_and_closes_stream(self, make_config, make_output, streams):
        token = CancellationToken()
        # cancel arrives between chunks, and the next chunk carries no text
        stream = RecordingStream(
            [chunk("one"), chunk(None), chunk("two")], before={1: token.cancel}
        )
        config = make_config(AgentClient(RecordingLLM(stream)))

        asyncio.run(run_non_interactive(config, "hi", "p", cancellation=token, output=make_output()))

        stdout, stderr = streams
        assert stdout.getvalue() == "one"
        assert CANCELLED_MESSAGE in stderr.getvalue()
        assert stream.closed

    def test_reset_history(self):
        client = AgentClient(FakeLLM([[chunk("x")]]))
        asyncio.run(collect(client.send_message_stream([{"text": "go"}], CancellationToken(), "p")))

        client.reset_history()

        assert client.history == []

    def test_reserved_generation_params_rejected(self):
        with pytest.raises(ValueError):
            AgentClient(FakeLLM([]), params={"stream": False})


class TestCreateLLM:
    def test_openai_from_client(self):
        llm = create_llm(Provider.OPENAI, "gpt-test", client=AsyncOpenAI(api_key="sk-test"))
        assert isinstance(llm, OpenAILLM)
        assert llm.model == "gpt-test"
        assert isinstance(llm.adapter, OpenAIRequestAdapter)

    def test_anthropic_from_client(self):
        llm = create_llm(
            Provider.ANTHROPIC, "claude-test", client=AsyncAnthropic(api_key="sk-test")
        )
        assert isinstance(llm, AnthropicLLM)

    def test_gemini_uses_openai_compatible_client(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-test")
        llm = create_llm(Provider.GEMINI, "gemini-test")
        assert isinstance(llm, GeminiLLM)
        assert "generativelanguage.googleapis.com" in str(llm._client.base_url)

    def test_from_client_rejects_wrong_client(self):
        with pytest.raises(TypeError):
            OpenAILLM.from_client("m", AsyncAnthropic(api_key="sk-test"))

    def test_missing_key(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY missing"):
            get_api_key(Provider.ANTHROPIC)

    def test_rate_limit_classified(self):
        request = httpx.Request("POST", "https://api.test/v1")
        response = httpx.Response(429, request=request)
        error = openai.RateLimitError("slow down", response=response, body=None)
        llm = FakeLLM([[]], fail_with=error)

        async def drain():
            async for _ in llm.stream({}):
                pass

        with pytest.raises(StreamError, match="Rate"):
            asyncio.run(drain())
