"""Helpers shared by the provider adapters."""

from __future__ import annotations

import json
from typing import Any

from llm_headless.types import Content, Part, part_text


def user_text(content: Content) -> str:
    return "\n".join(t for t in (part_text(p) for p in content.parts) if t)


def response_output(response: Any) -> str:
    """Flatten a function_response payload into the string a provider expects."""
    if isinstance(response, str):
        return response
    if isinstance(response, dict) and set(response) == {"output"}:
        output = response["output"]
        return output if isinstance(output, str) else json.dumps(output)
    return json.dumps(response)


def parse_arguments(raw_args: Any) -> dict[str, Any]:
    """Decode streamed tool-call arguments; malformed JSON gives an empty dict."""
    if isinstance(raw_args, dict):
        return raw_args
    if isinstance(raw_args, str) and raw_args.strip():
        try:
            parsed = json.loads(raw_args)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def function_call_part(call_id: str | None, name: str, args: dict[str, Any]) -> Part:
    return {"function_call": {"id": call_id, "name": name, "args": args}}
