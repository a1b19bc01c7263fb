"""Scoped console interception for headless runs.

While patched, stdout is reserved for session output: log records go to
stderr, warnings are routed through logging, and stray ``print`` calls
from libraries are redirected to stderr as well.
"""

from __future__ import annotations

import logging
import sys
from contextlib import ExitStack, redirect_stdout
from typing import IO, Optional

__all__ = ["ConsolePatcher", "LOG_FORMAT"]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class ConsolePatcher:
    """Install stderr logging for the duration of a session.

    Debug records are only shown in debug mode. ``cleanup`` restores the
    previous root handlers, level and stdout, and is safe to call twice.

    Example:
        with ConsolePatcher(debug_mode=config.debug_mode):
            ...
    """

    def __init__(
        self,
        *,
        stderr: bool = True,
        debug_mode: bool = False,
        stream: Optional[IO[str]] = None,
    ) -> None:
        self.stderr = stderr
        self.debug_mode = debug_mode
        self.stream = stream
        self._stack: Optional[ExitStack] = None
        self._saved_handlers: list[logging.Handler] = []
        self._saved_level = logging.WARNING

    def patch(self) -> None:
        if self._stack is not None:
            return
        target = self.stream or sys.stderr
        root = logging.getLogger()
        self._saved_handlers = list(root.handlers)
        self._saved_level = root.level

        handler = logging.StreamHandler(target)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.handlers = [handler]
        root.setLevel(logging.DEBUG if self.debug_mode else logging.WARNING)
        logging.captureWarnings(True)

        self._stack = ExitStack()
        if self.stderr:
            self._stack.enter_context(redirect_stdout(target))

    def cleanup(self) -> None:
        if self._stack is None:
            return
        self._stack.close()
        self._stack = None

        logging.captureWarnings(False)
        root = logging.getLogger()
        for handler in root.handlers:
            handler.flush()
        root.handlers = self._saved_handlers
        root.setLevel(self._saved_level)

    def __enter__(self) -> "ConsolePatcher":
        self.patch()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
