"""Session output: raw streamed text or one JSON object per line."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import IO, Any, Literal, Optional

__all__ = ["OutputWriter", "JsonlEventType", "iso_timestamp"]

JsonlEventType = Literal["token", "tool_call", "tool_result"]


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class OutputWriter:
    """Writes session output to stdout and diagnostics to stderr.

    The streams are captured at construction time, so output keeps going to
    the real stdout even while ``ConsolePatcher`` redirects ``sys.stdout``.
    """

    def __init__(
        self,
        jsonl: bool = False,
        *,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
    ) -> None:
        self.jsonl = jsonl
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def write_text(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def write_event(self, event_type: JsonlEventType, data: Any) -> None:
        record = {"type": event_type, "data": data, "timestamp": iso_timestamp()}
        self.stdout.write(json.dumps(record, default=str) + "\n")
        self.stdout.flush()

    def token(self, text: str) -> None:
        if self.jsonl:
            self.write_event("token", text)
        else:
            self.write_text(text)

    def diagnostic(self, message: str) -> None:
        self.stderr.write(message + "\n")
        self.stderr.flush()
