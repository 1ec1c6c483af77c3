"""Intentra hook agent configuration.

Settings come from (in order of precedence):
1. Environment variables (INTENTRA_*)
2. Config file (<config dir>/config.yaml)
3. Built-in defaults
"""
from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from intentra.errors import ConfigError


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Primary delivery endpoint for credentialed (login) uploads
API_ENDPOINT = os.getenv("INTENTRA_API_ENDPOINT", "https://api.intentra.sh").rstrip("/")
USER_AGENT = "intentra-cli/1.0"

# Session buffers
BUFFER_MAX_AGE_SECONDS = _env_int("INTENTRA_BUFFER_MAX_AGE_SECONDS", 30 * 60)
MAX_PRE_COMPACT_EVENTS = 10

# Timeouts
GIT_TIMEOUT_MS = _env_int("INTENTRA_GIT_TIMEOUT_MS", 500)
SCAN_TIMEOUT_SECONDS = _env_int("INTENTRA_SCAN_TIMEOUT_SECONDS", 30)
PATCH_TIMEOUT_SECONDS = _env_int("INTENTRA_PATCH_TIMEOUT_SECONDS", 10)

# Observability
OTEL_ENABLED = _env_bool("INTENTRA_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("INTENTRA_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("INTENTRA_OTEL_SERVICE_NAME", "intentra-hooks")


def debug_from_env() -> bool:
    return _env_bool("INTENTRA_DEBUG")


def get_config_dir() -> Path:
    """Return the agent's config/data directory (INTENTRA_CONFIG_DIR overrides)."""
    override = os.getenv("INTENTRA_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == "nt":
        return Path(os.getenv("APPDATA", str(Path.home()))) / "intentra"
    return Path.home() / ".intentra"


def get_config_path() -> Path:
    return get_config_dir() / "config.yaml"


def get_scans_dir() -> Path:
    return get_config_dir() / "scans"


def get_buffer_dir() -> Path:
    """Directory holding session buffers and last-scan records."""
    return Path(tempfile.gettempdir())


# ── Config file models ─────────────────────────────────────────────

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$")
_ENV_REF_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _expand_env(value: str) -> str:
    """Expand ${VAR} / $VAR references; unset variables expand to ''."""
    return _ENV_REF_PATTERN.sub(lambda m: os.getenv(m.group(1) or m.group(2), ""), value or "")


def _parse_seconds(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_PATTERN.match(str(value or ""))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount = float(match.group(1))
    unit = match.group(2) or "s"
    if unit == "ms":
        return amount / 1000.0
    if unit == "m":
        return amount * 60.0
    return amount


class ApiKeyConfig(BaseModel):
    key_id: str = ""
    secret: str = ""
    hmac_key: str = ""


class AuthConfig(BaseModel):
    mode: str = ""  # "api_key" | "" (login credentials)
    api_key: ApiKeyConfig = Field(default_factory=ApiKeyConfig)


class ServerConfig(BaseModel):
    enabled: bool = False
    endpoint: str = ""
    timeout: float = float(SCAN_TIMEOUT_SECONDS)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    @field_validator("timeout", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: Any) -> float:
        return _parse_seconds(value)


class AgentConfig(BaseModel):
    debug: bool = False
    server: ServerConfig = Field(default_factory=ServerConfig)


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"error reading config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a mapping")
    return data


def load_config(path: Optional[Path] = None) -> AgentConfig:
    """Load the agent configuration from YAML and environment overrides."""
    config_path = path or get_config_path()
    data = _read_config_file(config_path)
    try:
        cfg = AgentConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"error parsing config {config_path}: {exc}") from exc

    api_key = cfg.server.auth.api_key
    api_key.key_id = _expand_env(api_key.key_id)
    api_key.secret = _expand_env(api_key.secret)
    api_key.hmac_key = _expand_env(api_key.hmac_key)

    if key_id := os.getenv("INTENTRA_API_KEY_ID"):
        api_key.key_id = key_id
    if secret := os.getenv("INTENTRA_API_SECRET"):
        api_key.secret = secret
    if endpoint := os.getenv("INTENTRA_SERVER_ENDPOINT"):
        cfg.server.enabled = True
        cfg.server.endpoint = endpoint
    if os.getenv("INTENTRA_DEBUG") is not None:
        cfg.debug = _env_bool("INTENTRA_DEBUG")

    cfg.server.endpoint = cfg.server.endpoint.rstrip("/")
    return cfg
