"""
Exception types for llm-headless, plus translation of noisy provider
tracebacks into short, user-facing diagnostics.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Final, Optional, Type

if TYPE_CHECKING:
    from llm_headless.auth import AuthType

__all__: tuple[str, ...] = (
    "HeadlessError",
    "ConfigError",
    "ToolError",
    "StreamError",
    "CancelledError",
    "classify_error",
    "format_api_error",
)


class HeadlessError(RuntimeError):
    """Base exception for llm-headless.

    Attributes:
        original_exc: The underlying exception, when one exists.
    """

    original_exc: Optional[Exception]

    def __init__(self, message: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        if original_exc is not None:
            self.__cause__ = original_exc


class ConfigError(HeadlessError):
    """Invalid settings, unknown provider or missing credentials."""


class ToolError(HeadlessError):
    """Raised by a tool when it cannot complete the requested call."""


class StreamError(HeadlessError):
    """The streamed exchange with the model provider failed."""


class CancelledError(HeadlessError):
    """Raised at safe points once the session has been cancelled."""


def _import_exception(path: str) -> Type[Exception]:
    """Dynamically import an exception type, falling back to Exception."""
    module_name, _, attr = path.rpartition(".")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError):
        return Exception


OpenAI_APIError: Final = _import_exception("openai.APIError")
OpenAI_APIConnectionError: Final = _import_exception("openai.APIConnectionError")
OpenAI_RateLimitError: Final = _import_exception("openai.RateLimitError")
OpenAI_AuthenticationError: Final = _import_exception("openai.AuthenticationError")
OpenAI_PermissionDeniedError: Final = _import_exception("openai.PermissionDeniedError")

Anthropic_APIError: Final = _import_exception("anthropic.APIError")
Anthropic_APIConnectionError: Final = _import_exception("anthropic.APIConnectionError")
Anthropic_RateLimitError: Final = _import_exception("anthropic.RateLimitError")
Anthropic_AuthenticationError: Final = _import_exception("anthropic.AuthenticationError")
Anthropic_PermissionDeniedError: Final = _import_exception(
    "anthropic.PermissionDeniedError"
)

API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_APIError,
    Anthropic_APIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_APIConnectionError,
    Anthropic_APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_RateLimitError,
    Anthropic_RateLimitError,
)

AUTH_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAI_AuthenticationError,
    OpenAI_PermissionDeniedError,
    Anthropic_AuthenticationError,
    Anthropic_PermissionDeniedError,
)

RATE_LIMIT_HINT: Final = (
    "Possible quota limitations in place or slow response times detected. "
    "Wait a moment and try again, or switch to a different model."
)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> StreamError:
    """Wrap a provider SDK exception in StreamError with a concise message."""
    log = logger or logging.getLogger("llm_headless.errors")

    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate‑limit exceeded – please retry later"
    elif isinstance(exc, AUTH_ERRORS):
        msg = "Authentication failed"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem – unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        msg = "Provider reported an internal error"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception", extra={"exc": exc})
    return StreamError(f"{msg}: {exc}", exc)


def _root_cause(error: BaseException) -> BaseException:
    if isinstance(error, HeadlessError) and error.original_exc is not None:
        return error.original_exc
    return error


def format_api_error(error: BaseException, auth_type: "AuthType | None" = None) -> str:
    """Render a session-fatal error as a single diagnostic block.

    The hint depends on the kind of failure: rate limits suggest waiting,
    authentication failures name the environment variable the active
    ``auth_type`` reads its key from.
    """
    message = f"[API Error: {error}]"
    cause = _root_cause(error)

    if isinstance(cause, RATE_LIMIT_ERRORS) or getattr(cause, "status_code", None) == 429:
        return f"{message}\n{RATE_LIMIT_HINT}"

    if isinstance(cause, AUTH_ERRORS) or getattr(cause, "status_code", None) in (401, 403):
        if auth_type is not None:
            return (
                f"{message}\nCheck that {auth_type.env_var} holds a valid key "
                f"for the {auth_type.provider.value} provider."
            )
        return f"{message}\nCheck your API key configuration."

    return message
