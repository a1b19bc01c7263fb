"""Conversation content types shared by the client, adapters and driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

__all__ = ["Part", "Content", "Role", "text_part", "part_text"]


# A part is a small mapping. Text parts look like {"text": "..."}; anything
# else ({"function_call": ...}, {"function_response": ...}) is passed through
# untouched by the session driver and interpreted by the provider adapters.
Part = dict[str, Any]

Role = Literal["user", "model"]


@dataclass
class Content:
    """One message in the conversation: a role plus its ordered parts."""

    role: Role
    parts: list[Part] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(t for t in (part_text(p) for p in self.parts) if t)

    def function_calls(self) -> list[dict[str, Any]]:
        return [p["function_call"] for p in self.parts if "function_call" in p]

    def function_responses(self) -> list[dict[str, Any]]:
        return [p["function_response"] for p in self.parts if "function_response" in p]


def text_part(text: str) -> Part:
    return {"text": text}


def part_text(part: Part) -> Optional[str]:
    """Return the text of a text part, or None for structured parts."""
    text = part.get("text")
    return text if isinstance(text, str) else None
