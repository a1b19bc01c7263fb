"""Tests for layered settings and the runtime Config."""

import json

import pytest

from llm_headless.auth import AuthType, Provider
from llm_headless.client import AgentClient
from llm_headless.config import SETTINGS_DIR, SETTINGS_FILE, Config, Settings, load_settings
from llm_headless.errors import ConfigError
from llm_headless.prompts import PCAP_HINT


def write_settings(root, data):
    path = root / SETTINGS_DIR / SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    for var in (
        "LLM_HEADLESS_PROVIDER",
        "LLM_HEADLESS_MODEL",
        "LLM_HEADLESS_MAX_SESSION_TURNS",
        "LLM_HEADLESS_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)
    user, workspace = tmp_path / "home", tmp_path / "ws"
    user.mkdir()
    workspace.mkdir()
    return user, workspace


class TestLoadSettings:
    def test_defaults(self, dirs):
        user, workspace = dirs
        settings = load_settings(workspace, user_dir=user)

        assert settings.provider is Provider.OPENAI
        assert settings.max_session_turns == -1
        assert settings.pcap_hint is True
        assert settings.allow_shell is False
        assert settings.telemetry.enabled is False
        assert settings.resolved_model == "gpt-4.1-mini"

    def test_workspace_overrides_user(self, dirs):
        user, workspace = dirs
        write_settings(user, {"max_session_turns": 5, "model": "user-model"})
        write_settings(workspace, {"max_session_turns": 2})

        settings = load_settings(workspace, user_dir=user)

        assert settings.max_session_turns == 2
        assert settings.model == "user-model"

    def test_nested_sections_merge_per_key(self, dirs):
        user, workspace = dirs
        write_settings(user, {"telemetry": {"enabled": True, "exporter": "otlp"}})
        write_settings(workspace, {"telemetry": {"endpoint": "http://collector:4318/v1/traces"}})

        telemetry = load_settings(workspace, user_dir=user).telemetry

        assert telemetry.enabled is True
        assert telemetry.exporter == "otlp"
        assert telemetry.endpoint == "http://collector:4318/v1/traces"

    def test_environment_overrides_files(self, dirs, monkeypatch):
        user, workspace = dirs
        write_settings(workspace, {"provider": "openai", "max_session_turns": 2})
        monkeypatch.setenv("LLM_HEADLESS_PROVIDER", "anthropic")
        monkeypatch.setenv("LLM_HEADLESS_MAX_SESSION_TURNS", "7")

        settings = load_settings(workspace, user_dir=user)

        assert settings.provider is Provider.ANTHROPIC
        assert settings.max_session_turns == 7
        assert settings.resolved_model == "claude-3-5-haiku-latest"

    def test_overrides_win_and_none_is_ignored(self, dirs, monkeypatch):
        user, workspace = dirs
        monkeypatch.setenv("LLM_HEADLESS_MODEL", "env-model")

        settings = load_settings(
            workspace,
            user_dir=user,
            overrides={"model": "cli-model", "max_session_turns": None},
        )

        assert settings.model == "cli-model"
        assert settings.max_session_turns == -1

    def test_invalid_json(self, dirs):
        user, workspace = dirs
        write_settings(workspace, "{not json")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_settings(workspace, user_dir=user)

    def test_non_object_file(self, dirs):
        user, workspace = dirs
        write_settings(workspace, [1, 2])

        with pytest.raises(ConfigError, match="JSON object"):
            load_settings(workspace, user_dir=user)

    def test_invalid_value(self, dirs):
        user, workspace = dirs
        write_settings(workspace, {"provider": "nope"})

        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(workspace, user_dir=user)


class TestConfig:
    def test_auth_type_follows_provider(self):
        config = Config(Settings(provider=Provider.GEMINI))

        assert config.auth_type is AuthType.GEMINI_API_KEY
        assert config.auth_type.env_var == "GEMINI_API_KEY"

    def test_builtin_registry_built_lazily(self, tmp_path):
        config = Config(Settings(), workspace_dir=tmp_path)
        registry = config.get_tool_registry()

        assert registry is config.get_tool_registry()
        assert registry.names() == ["read_file", "list_directory"]

    def test_shell_tool_when_allowed(self, tmp_path):
        config = Config(Settings(allow_shell=True), workspace_dir=tmp_path)
        assert "run_shell_command" in config.get_tool_registry()

    def test_client_uses_settings(self, tmp_path):
        llm = object()
        config = Config(
            Settings(generation={"temperature": 0.1}, user_memory="Answer in French."),
            workspace_dir=tmp_path,
            llm=llm,
        )

        client = config.get_client()

        assert isinstance(client, AgentClient)
        assert client.llm is llm
        assert client.params["temperature"] == 0.1
        assert PCAP_HINT in client.system_prompt
        assert client.system_prompt.endswith("Answer in French.")

    def test_pcap_hint_can_be_disabled(self, tmp_path):
        config = Config(Settings(pcap_hint=False), workspace_dir=tmp_path, llm=object())
        assert PCAP_HINT not in config.get_client().system_prompt
