"""Executes one tool call on behalf of the session driver."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from llm_headless.errors import CancelledError, ToolError
from llm_headless.telemetry import tool_span
from llm_headless.types import ToolCallRequest, ToolCallResponse

if TYPE_CHECKING:
    from llm_headless.cancellation import CancellationToken
    from llm_headless.config import Config

__all__ = ["execute_tool_call", "function_response_part"]

logger = logging.getLogger(__name__)


def function_response_part(call_id: str, name: str, output: str) -> dict:
    return {
        "function_response": {
            "id": call_id,
            "name": name,
            "response": {"output": output},
        }
    }


def _error_response(request: ToolCallRequest, error: Exception) -> ToolCallResponse:
    call_id = request.call_id or ""
    return ToolCallResponse(
        call_id=call_id,
        response_parts=function_response_part(
            call_id, request.name, f"Error: {error}"
        ),
        result_display=None,
        error=error,
    )


async def execute_tool_call(
    config: "Config",
    request: ToolCallRequest,
    cancellation: "CancellationToken",
) -> ToolCallResponse:
    """Look up and run the requested tool.

    Never raises for tool-level failures: an unknown tool, invalid
    arguments, a ``ToolError`` or any other exception from the tool becomes
    a response with ``error`` set and an error ``function_response`` part,
    so the model sees what went wrong on the next turn.
    """
    if cancellation.is_cancelled:
        return _error_response(request, ToolError("Tool call cancelled."))

    tool = config.get_tool_registry().get(request.name)
    if tool is None:
        return _error_response(
            request, ToolError(f'Tool "{request.name}" not found in registry.')
        )

    invalid = tool.validate_args(request.args)
    if invalid:
        return _error_response(request, ToolError(invalid))

    with tool_span(request.name, request.call_id or "") as span:
        try:
            result = await tool.execute(request.args, cancellation)
        except (ToolError, CancelledError) as exc:
            logger.debug("Tool %s failed: %s", request.name, exc)
            span.record_exception(exc)
            return _error_response(request, exc)
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", request.name)
            span.record_exception(exc)
            return _error_response(request, exc)

    call_id = request.call_id or ""
    return ToolCallResponse(
        call_id=call_id,
        response_parts=function_response_part(call_id, request.name, result.llm_content),
        result_display=result.return_display,
    )
