"""Tests for layered configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from fmcp.config import LLMSettings, ServerConfig, load_config, read_config_file
from fmcp.errors import ConfigError


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config(environ={"API_KEY": "k"})
        assert config.api_url == "http://localhost:3000"
        assert config.base_path == "/api"
        assert config.api_version == "v1"
        assert config.auto_update is False
        assert config.update_check_interval == 60
        assert config.llm.model_context_enabled is True
        assert config.llm.allowed_models == "*"
        assert config.llm.max_tokens == 8192
        assert config.llm.caching.enabled is True
        assert config.llm.caching.ttl == 3600
        assert config.llm.caching.max_entries == 1000

    def test_config_is_frozen(self) -> None:
        config = load_config(environ={"API_KEY": "k"})
        with pytest.raises(ValidationError):
            config.api_key = "other"  # type: ignore[misc]


class TestApiKey:
    def test_missing_api_key_raises(self) -> None:
        with pytest.raises(ConfigError, match="API key is required"):
            load_config(environ={})

    def test_empty_override_does_not_clear_env(self) -> None:
        config = load_config({"api_key": None}, environ={"API_KEY": "from-env"})
        assert config.api_key == "from-env"


class TestEnvironment:
    def test_env_values(self) -> None:
        config = load_config(
            environ={
                "API_KEY": "k",
                "API_URL": "https://api.example.com",
                "API_BASE_PATH": "/rest",
                "API_VERSION": "v2",
                "UPDATE_CHECK_INTERVAL": "120",
                "ALLOWED_MODELS": "gpt-4o, claude-3",
                "MAX_TOKENS": "2048",
                "CACHE_TTL": "30",
                "CACHE_MAX_ENTRIES": "5",
            }
        )
        assert config.api_url == "https://api.example.com"
        assert config.base_path == "/rest"
        assert config.api_version == "v2"
        assert config.update_check_interval == 120
        assert config.llm.allowed_models == ("gpt-4o", "claude-3")
        assert config.llm.max_tokens == 2048
        assert config.llm.caching.ttl == 30
        assert config.llm.caching.max_entries == 5

    def test_auto_update_is_opt_in(self) -> None:
        assert load_config(environ={"API_KEY": "k", "AUTO_UPDATE": "true"}).auto_update is True
        assert load_config(environ={"API_KEY": "k", "AUTO_UPDATE": "1"}).auto_update is False

    def test_opt_out_flags(self) -> None:
        config = load_config(
            environ={"API_KEY": "k", "MODEL_CONTEXT_ENABLED": "false", "CACHE_ENABLED": "false"}
        )
        assert config.llm.model_context_enabled is False
        assert config.llm.caching.enabled is False

        config = load_config(
            environ={"API_KEY": "k", "MODEL_CONTEXT_ENABLED": "no", "CACHE_ENABLED": "0"}
        )
        assert config.llm.model_context_enabled is True
        assert config.llm.caching.enabled is True

    def test_invalid_value_raises_config_error(self) -> None:
        with pytest.raises(ConfigError):
            load_config(environ={"API_KEY": "k", "CACHE_TTL": "soon"})


class TestPrecedence:
    def test_flag_beats_env_beats_file(self, tmp_path: Path) -> None:
        path = tmp_path / "fmcp.yaml"
        path.write_text(
            "apiKey: file-key\napiUrl: https://file.example.com\napiVersion: v3\n"
            "llm:\n  maxTokens: 100\n  caching:\n    ttlSeconds: 7\n",
            encoding="utf-8",
        )
        config = load_config(
            {"api_key": "flag-key"},
            environ={"API_URL": "https://env.example.com"},
            config_path=path,
        )
        assert config.api_key == "flag-key"
        assert config.api_url == "https://env.example.com"
        assert config.api_version == "v3"
        assert config.llm.max_tokens == 100
        assert config.llm.caching.ttl == 7

    def test_file_expands_env_vars(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FMCP_TEST_KEY", "secret")
        path = tmp_path / "fmcp.yaml"
        path.write_text("api_key: ${FMCP_TEST_KEY}\n", encoding="utf-8")
        config = load_config(environ={}, config_path=path)
        assert config.api_key == "secret"


class TestReadConfigFile:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            read_config_file(tmp_path / "nope.yaml")

    def test_bad_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("key: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="YAML parse error"):
            read_config_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            read_config_file(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert read_config_file(path) == {}


class TestLLMSettings:
    def test_wildcard_allows_everything(self) -> None:
        assert LLMSettings().is_model_allowed("anything")

    def test_allow_list_is_exact(self) -> None:
        settings = LLMSettings(allowed_models="gpt-4o,claude-3")
        assert settings.is_model_allowed("gpt-4o")
        assert not settings.is_model_allowed("gpt-4")

    def test_server_config_aliases(self) -> None:
        config = ServerConfig.model_validate({"apiKey": "k", "basePath": "/x"})
        assert config.api_key == "k"
        assert config.base_path == "/x"
