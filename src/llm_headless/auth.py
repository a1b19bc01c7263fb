from __future__ import annotations

import os
from enum import StrEnum
from typing import Final

from dotenv import load_dotenv

from llm_headless.errors import ConfigError


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class AuthType(StrEnum):
    """How the active provider is authenticated; reported in diagnostics."""

    OPENAI_API_KEY = "openai-api-key"
    ANTHROPIC_API_KEY = "anthropic-api-key"
    GEMINI_API_KEY = "gemini-api-key"

    @property
    def provider(self) -> Provider:
        return _AUTH_PROVIDERS[self]

    @property
    def env_var(self) -> str:
        return _ENV_VARS[self.provider]

    @classmethod
    def for_provider(cls, provider: Provider) -> "AuthType":
        for auth_type, owner in _AUTH_PROVIDERS.items():
            if owner is provider:
                return auth_type
        raise ConfigError(f"No auth type for {provider!s}")


_AUTH_PROVIDERS: Final[dict[AuthType, Provider]] = {
    AuthType.OPENAI_API_KEY: Provider.OPENAI,
    AuthType.ANTHROPIC_API_KEY: Provider.ANTHROPIC,
    AuthType.GEMINI_API_KEY: Provider.GEMINI,
}

_ENV_VARS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* or raise ConfigError.

    ``.env`` files are honoured; variables already set in the environment win.
    """
    load_dotenv()
    try:
        env_var = _ENV_VARS[provider]
    except KeyError:
        raise ConfigError(f"No config for {provider!s}") from None

    key = os.environ.get(env_var)
    if not key:
        raise ConfigError(f"{env_var} missing")
    return key


__all__ = ["Provider", "AuthType", "get_api_key"]
