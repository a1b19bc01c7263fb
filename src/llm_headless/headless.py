"""
Non-interactive session driver.

Runs one conversation to completion: stream a turn, print tokens (raw or
as JSONL records), execute the requested tools in order, feed their
responses back as the next turn, and stop when a turn requests no tools,
the turn limit is reached, or the session is cancelled.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import aclosing
from typing import TYPE_CHECKING, Optional, Sequence, Union

from llm_headless.cancellation import CancellationToken
from llm_headless.console import ConsolePatcher
from llm_headless.errors import format_api_error
from llm_headless.output import OutputWriter
from llm_headless.prompts import mentions_capture_file
from llm_headless.telemetry import (
    is_telemetry_sdk_initialized,
    session_span,
    shutdown_telemetry,
    turn_span,
)
from llm_headless.tools.executor import execute_tool_call
from llm_headless.types import (
    Content,
    EventType,
    Part,
    ToolCallRequest,
    text_part,
)

if TYPE_CHECKING:
    from llm_headless.config import Config

__all__ = ["run_non_interactive", "MAX_TURNS_MESSAGE", "CANCELLED_MESSAGE"]

logger = logging.getLogger(__name__)

MAX_TURNS_MESSAGE = (
    "\n Reached max session turns for this session. Increase the number of "
    "turns by specifying max_session_turns in settings.json."
)
CANCELLED_MESSAGE = "Operation cancelled."


def _synthesize_call_id(name: str) -> str:
    return f"{name}-{int(time.time() * 1000)}"


def _normalize_parts(
    response_parts: Union[Part, str, Sequence[Union[Part, str]], None],
) -> list[Part]:
    """Flatten tool response parts; strings become text parts, falsy entries are dropped."""
    if not response_parts:
        return []
    items = (
        response_parts
        if isinstance(response_parts, (list, tuple))
        else [response_parts]
    )
    parts: list[Part] = []
    for part in items:
        if isinstance(part, str):
            parts.append(text_part(part))
        elif part:
            parts.append(part)
    return parts


def _silence_stdout() -> None:
    """Point stdout at devnull so the interpreter's final flush cannot fail again."""
    try:
        fd = sys.__stdout__.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


async def run_non_interactive(
    config: "Config",
    input: str,
    prompt_id: str,
    jsonl_output: bool = False,
    *,
    cancellation: Optional[CancellationToken] = None,
    output: Optional[OutputWriter] = None,
) -> None:
    """Drive one headless session.

    Args:
        config: Runtime configuration; supplies the agent client, turn limit,
            debug flag and auth type.
        input: The user's prompt.
        prompt_id: Identifier forwarded to the client and every tool call.
        jsonl_output: Emit ``token``/``tool_call``/``tool_result`` JSON lines
            instead of raw text.
        cancellation: Token checked between stream events and tool calls.
        output: Destination for session output and diagnostics.

    Raises:
        SystemExit: status 1 after printing a diagnostic for any error that
            escapes the turn loop; status 0 when stdout is closed early.
    """
    output = output or OutputWriter(jsonl_output)
    cancellation = cancellation or CancellationToken()
    console_patcher = ConsolePatcher(stderr=True, debug_mode=config.debug_mode)

    try:
        console_patcher.patch()
        client = config.get_client()

        captures = mentions_capture_file(input)
        if captures:
            logger.debug("Prompt references capture file(s): %s", ", ".join(captures))

        current_messages: list[Content] = [
            Content(role="user", parts=[text_part(input)])
        ]
        turn_count = 0

        with session_span(prompt_id, jsonl_output):
            while True:
                turn_count += 1
                max_turns = config.max_session_turns
                if max_turns >= 0 and turn_count > max_turns:
                    output.diagnostic(MAX_TURNS_MESSAGE)
                    return

                with turn_span(prompt_id, turn_count):
                    function_calls: list[ToolCallRequest] = []

                    # Only the first message of the batch is sent. A batch
                    # never holds more than one message.
                    if len(current_messages) > 1:
                        logger.warning(
                            "Dropping %d extra message(s) from turn %d",
                            len(current_messages) - 1,
                            turn_count,
                        )
                    parts = current_messages[0].parts if current_messages else []

                    async with aclosing(
                        client.send_message_stream(parts, cancellation, prompt_id)
                    ) as events:
                        async for event in events:
                            if cancellation.is_cancelled:
                                output.diagnostic(CANCELLED_MESSAGE)
                                return

                            if event.type == EventType.CONTENT:
                                output.token(event.value)
                            elif event.type == EventType.TOOL_CALL_REQUEST:
                                request = event.value
                                if output.jsonl:
                                    output.write_event(
                                        "tool_call",
                                        {
                                            "name": request.name,
                                            "args": request.args,
                                            "call_id": request.call_id,
                                        },
                                    )
                                function_calls.append(request)

                    # The client may stop on cancellation without yielding
                    # another event.
                    if cancellation.is_cancelled:
                        output.diagnostic(CANCELLED_MESSAGE)
                        return

                    if not function_calls:
                        output.write_text("\n")
                        return

                    tool_response_parts: list[Part] = []
                    for fc in function_calls:
                        if cancellation.is_cancelled:
                            output.diagnostic(CANCELLED_MESSAGE)
                            return

                        call_id = fc.call_id or _synthesize_call_id(fc.name)
                        request_info = ToolCallRequest(
                            call_id=call_id,
                            name=fc.name,
                            args=dict(fc.args or {}),
                            is_client_initiated=False,
                            prompt_id=prompt_id,
                        )
                        tool_response = await execute_tool_call(
                            config, request_info, cancellation
                        )
                        error_message = tool_response.error_message

                        if output.jsonl:
                            output.write_event(
                                "tool_result",
                                {
                                    "call_id": call_id,
                                    "name": fc.name,
                                    "result": tool_response.result_display
                                    or error_message
                                    or "Success",
                                    "error": error_message,
                                },
                            )

                        if tool_response.error is not None:
                            output.diagnostic(
                                f"Error executing tool {fc.name}: "
                                f"{tool_response.result_display or error_message}"
                            )

                        tool_response_parts.extend(
                            _normalize_parts(tool_response.response_parts)
                        )

                    current_messages = [
                        Content(role="user", parts=tool_response_parts)
                    ]
    except BrokenPipeError:
        # The consumer of our output went away; nothing left to report.
        _silence_stdout()
        raise SystemExit(0)
    except Exception as error:
        logger.debug("Session %s failed", prompt_id, exc_info=True)
        output.diagnostic(format_api_error(error, config.auth_type))
        raise SystemExit(1)
    finally:
        console_patcher.cleanup()
        if is_telemetry_sdk_initialized():
            shutdown_telemetry(config)
