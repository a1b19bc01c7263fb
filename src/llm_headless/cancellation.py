"""Cooperative cancellation shared by the session driver, client and tools."""

from __future__ import annotations

import asyncio
from typing import Optional

from llm_headless.errors import CancelledError

__all__ = ["CancellationToken"]


class CancellationToken:
    """A one-shot cancellation flag.

    The session driver polls ``is_cancelled`` between stream events; tools
    with long-running work race it with ``await token.wait()`` and call
    ``raise_if_cancelled`` once they stop.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancelledError("Operation cancelled.")
