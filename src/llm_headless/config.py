"""
Settings and the runtime ``Config`` facade used by the session driver.

Settings are layered, later sources winning:

1. ``~/.llm-headless/settings.json``  (user)
2. ``<workspace>/.llm-headless/settings.json``  (workspace)
3. ``LLM_HEADLESS_*`` environment variables (``.env`` honoured)
4. explicit overrides, usually CLI flags
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Final, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from llm_headless.auth import AuthType, Provider
from llm_headless.errors import ConfigError

__all__ = [
    "Settings",
    "TelemetrySettings",
    "Config",
    "load_settings",
    "SETTINGS_DIR",
    "SETTINGS_FILE",
]

logger = logging.getLogger(__name__)

SETTINGS_DIR: Final = ".llm-headless"
SETTINGS_FILE: Final = "settings.json"

DEFAULT_MODELS: Final[dict[Provider, str]] = {
    Provider.OPENAI: "gpt-4.1-mini",
    Provider.ANTHROPIC: "claude-3-5-haiku-latest",
    Provider.GEMINI: "gemini-2.5-flash",
}

_ENV_SETTINGS: Final[dict[str, str]] = {
    "LLM_HEADLESS_PROVIDER": "provider",
    "LLM_HEADLESS_MODEL": "model",
    "LLM_HEADLESS_MAX_SESSION_TURNS": "max_session_turns",
    "LLM_HEADLESS_DEBUG": "debug_mode",
}


class TelemetrySettings(BaseModel):
    enabled: bool = False
    exporter: Literal["console", "otlp", "none"] = "console"
    endpoint: Optional[str] = None
    service_name: str = "llm-headless"


class Settings(BaseModel):
    """Validated settings for one headless run."""

    provider: Provider = Provider.OPENAI
    model: Optional[str] = None
    max_session_turns: int = -1
    debug_mode: bool = False
    pcap_hint: bool = True
    allow_shell: bool = False
    user_memory: str = ""
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    generation: dict[str, Any] = Field(default_factory=dict)

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}", exc) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    logger.debug("Loaded settings from %s", path)
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge one level deep so nested sections (telemetry) combine per key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _env_settings() -> dict[str, Any]:
    load_dotenv()
    found: dict[str, Any] = {}
    for env_var, key in _ENV_SETTINGS.items():
        value = os.environ.get(env_var)
        if value is not None and value != "":
            found[key] = value
    return found


def load_settings(
    workspace_dir: str | os.PathLike[str] | None = None,
    *,
    user_dir: str | os.PathLike[str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load and validate layered settings; raises ``ConfigError`` on bad input."""
    workspace = Path(workspace_dir) if workspace_dir is not None else Path.cwd()
    home = Path(user_dir) if user_dir is not None else Path.home()

    data: dict[str, Any] = {}
    for path in (
        home / SETTINGS_DIR / SETTINGS_FILE,
        workspace / SETTINGS_DIR / SETTINGS_FILE,
    ):
        data = _merge(data, _read_settings_file(path))
    data = _merge(data, _env_settings())
    data = _merge(data, {k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}", exc) from exc


class Config:
    """Runtime configuration handed to the session driver and tool executor.

    The LLM, agent client and tool registry are created lazily so that
    settings errors surface before any network client is built.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        workspace_dir: str | os.PathLike[str] | None = None,
        llm: Any = None,
        client: Any = None,
        tool_registry: Any = None,
    ) -> None:
        self.settings = settings
        self.workspace_dir = Path(workspace_dir) if workspace_dir else Path.cwd()
        self._llm = llm
        self._client = client
        self._tool_registry = tool_registry

    @property
    def debug_mode(self) -> bool:
        return self.settings.debug_mode

    @property
    def max_session_turns(self) -> int:
        return self.settings.max_session_turns

    @property
    def auth_type(self) -> AuthType:
        return AuthType.for_provider(self.settings.provider)

    def get_tool_registry(self):
        if self._tool_registry is None:
            from llm_headless.tools import ToolRegistry, register_builtin_tools

            registry = ToolRegistry()
            register_builtin_tools(
                registry, self.workspace_dir, allow_shell=self.settings.allow_shell
            )
            self._tool_registry = registry
        return self._tool_registry

    def get_llm(self):
        if self._llm is None:
            from llm_headless.providers import create_llm

            self._llm = create_llm(self.settings.provider, self.settings.resolved_model)
        return self._llm

    def get_client(self):
        if self._client is None:
            from llm_headless.client import AgentClient
            from llm_headless.prompts import get_core_system_prompt

            self._client = AgentClient(
                self.get_llm(),
                system_prompt=get_core_system_prompt(
                    pcap_hint=self.settings.pcap_hint,
                    user_memory=self.settings.user_memory,
                ),
                tool_registry=self.get_tool_registry(),
                params=self.settings.generation,
            )
        return self._client

    async def aclose(self) -> None:
        if self._llm is not None and hasattr(self._llm, "aclose"):
            await self._llm.aclose()
