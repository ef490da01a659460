"""Server configuration — resolved once at startup, immutable afterwards.

Values are layered, lowest precedence first:

1. model defaults,
2. an optional YAML file (``${VAR}`` references expanded from the environment),
3. environment variables (``API_URL``, ``API_KEY``, ``CACHE_TTL`` ...),
4. explicit overrides, usually the ``--api-key=`` style command-line flags.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fmcp.errors import ConfigError

_FROZEN = ConfigDict(frozen=True, populate_by_name=True)


class CacheSettings(BaseModel):
    """Context cache policy."""

    model_config = _FROZEN

    enabled: bool = True
    ttl: int = Field(default=3600, ge=0, alias="ttlSeconds")
    max_entries: int = Field(default=1000, ge=1, alias="maxEntries")


class LLMSettings(BaseModel):
    """Model-context behaviour."""

    model_config = _FROZEN

    model_context_enabled: bool = Field(default=True, alias="modelContextEnabled")
    allowed_models: Literal["*"] | tuple[str, ...] = Field(default="*", alias="allowedModels")
    max_tokens: int = Field(default=8192, gt=0, alias="maxTokens")
    context_window: int = Field(default=4096, gt=0, alias="contextWindow")
    caching: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("allowed_models", mode="before")
    @classmethod
    def _split_models(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.strip() == "*":
                return "*"
            return tuple(m.strip() for m in value.split(",") if m.strip())
        if isinstance(value, list):
            return tuple(value)
        return value

    def is_model_allowed(self, model: str) -> bool:
        """Exact match against the allow-list unless it is the ``*`` wildcard."""
        if self.allowed_models == "*":
            return True
        return model in self.allowed_models


class ServerConfig(BaseModel):
    """Top-level configuration shared read-only by every component."""

    model_config = _FROZEN

    api_url: str = Field(default="http://localhost:3000", alias="apiUrl")
    api_key: str = Field(default="", alias="apiKey")
    base_path: str = Field(default="/api", alias="basePath")
    api_version: str = Field(default="v1", alias="apiVersion")
    auto_update: bool = Field(default=False, alias="autoUpdate")
    update_check_interval: int = Field(default=60, gt=0, alias="updateCheckInterval")
    request_timeout: float = Field(default=10.0, gt=0, alias="requestTimeout")
    llm: LLMSettings = Field(default_factory=LLMSettings)


# Environment variable -> (section, field). ``None`` section means top level.
_ENV_FIELDS: dict[str, tuple[str | None, str]] = {
    "API_URL": (None, "api_url"),
    "API_KEY": (None, "api_key"),
    "API_BASE_PATH": (None, "base_path"),
    "API_VERSION": (None, "api_version"),
    "UPDATE_CHECK_INTERVAL": (None, "update_check_interval"),
    "API_TIMEOUT": (None, "request_timeout"),
    "ALLOWED_MODELS": ("llm", "allowed_models"),
    "MAX_TOKENS": ("llm", "max_tokens"),
    "CONTEXT_WINDOW": ("llm", "context_window"),
    "CACHE_TTL": ("caching", "ttl"),
    "CACHE_MAX_ENTRIES": ("caching", "max_entries"),
}


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file, expanding ``${VAR}`` references first."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping")
    return data


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    top: dict[str, Any] = {}
    llm: dict[str, Any] = {}
    caching: dict[str, Any] = {}
    sections = {None: top, "llm": llm, "caching": caching}

    for var, (section, field) in _ENV_FIELDS.items():
        value = environ.get(var)
        if value:
            sections[section][field] = value

    # Flags keep the historic semantics: AUTO_UPDATE is opt-in,
    # MODEL_CONTEXT_ENABLED and CACHE_ENABLED are opt-out.
    if "AUTO_UPDATE" in environ:
        top["auto_update"] = environ["AUTO_UPDATE"] == "true"
    if "MODEL_CONTEXT_ENABLED" in environ:
        llm["model_context_enabled"] = environ["MODEL_CONTEXT_ENABLED"] != "false"
    if "CACHE_ENABLED" in environ:
        caching["enabled"] = environ["CACHE_ENABLED"] != "false"

    if caching:
        llm["caching"] = caching
    if llm:
        top["llm"] = llm
    return top


def _merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase aliases from a config file onto field names."""
    aliases = {
        field.alias: name
        for model in (ServerConfig, LLMSettings, CacheSettings)
        for name, field in model.model_fields.items()
        if field.alias
    }
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = aliases.get(key, key)
        out[name] = _normalize_keys(value) if isinstance(value, Mapping) else value
    return out


def load_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> ServerConfig:
    """Resolve the :class:`ServerConfig` for this process.

    Raises:
        ConfigError: If no API key is resolved or a value fails validation.
    """
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    if config_path is not None:
        data = _normalize_keys(read_config_file(config_path))
    data = _merge(data, _env_layer(env))
    data = _merge(data, {k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        config = ServerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    if not config.api_key:
        msg = "API key is required. Use --api-key=your-key or set API_KEY environment variable."
        raise ConfigError(msg)
    return config
