"""
mimekv Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (MIMEKV_*)
3. Project config (./mimekv.toml)
4. User config (~/.mimekv/config.toml)
5. Defaults (hardcoded)

Environment variable mapping:
    MIMEKV_HOST → server.host
    MIMEKV_PORT → server.port
    MIMEKV_BACKEND → store.backend
    MIMEKV_STORE_PATH → store.path
    MIMEKV_STORE_SHARDS → store.shards
    MIMEKV_COMPRESS_THRESHOLD → store.compress_threshold
    MIMEKV_ALLOW_OCTET_STREAM → media.allow_octet_stream
    MIMEKV_LOG_LEVEL → logging.level
    MIMEKV_LOG_DIR → logging.dir
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from mimekv.core.errors import ConfigError

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ServerConfig(BaseModel):
    """HTTP listener configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


class StoreConfig(BaseModel):
    """Storage backend configuration."""

    backend: Literal["memory", "sqlite", "logfile"] = "memory"
    path: str = "~/.mimekv/data.db"
    shards: int = Field(default=16, ge=1)
    compress_threshold: int = Field(default=1024, ge=0)  # bytes

    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


class MediaConfig(BaseModel):
    """Media type policy configuration."""

    allow_octet_stream: bool = False
    generic_types: list[str] = Field(
        default_factory=lambda: ["application/octet-stream"]
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    dir: str | None = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class MimeKVConfig(BaseModel):
    """Root configuration for mimekv."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> MimeKVConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        # Layer 1: User config (~/.mimekv/config.toml)
        user_config_path = user_path or Path.home() / ".mimekv" / "config.toml"
        if user_config_path.exists():
            _deep_merge(merged, _load_toml(user_config_path))

        # Layer 2: Project config (./mimekv.toml)
        project_config_path = project_path or Path.cwd() / "mimekv.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        # Layer 3: Environment variables
        _deep_merge(merged, _load_from_env())

        # Layer 4: Explicit overrides
        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return MimeKVConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


def _load_from_env() -> dict[str, Any]:
    """Load configuration from MIMEKV_* environment variables."""
    result: dict[str, Any] = {}

    # (section, key, convert): string fields are passed through untouched
    env_mapping = {
        "MIMEKV_HOST": ("server", "host", False),
        "MIMEKV_PORT": ("server", "port", True),
        "MIMEKV_BACKEND": ("store", "backend", False),
        "MIMEKV_STORE_PATH": ("store", "path", False),
        "MIMEKV_STORE_SHARDS": ("store", "shards", True),
        "MIMEKV_COMPRESS_THRESHOLD": ("store", "compress_threshold", True),
        "MIMEKV_ALLOW_OCTET_STREAM": ("media", "allow_octet_stream", True),
        "MIMEKV_LOG_LEVEL": ("logging", "level", False),
        "MIMEKV_LOG_DIR": ("logging", "dir", False),
    }

    for env_var, (section, key, convert) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            result.setdefault(section, {})[key] = _convert_value(value) if convert else value

    return result


def _convert_value(value: str) -> Any:
    """Convert string value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _substitute(value: str) -> str:
    for var_name in _ENV_PATTERN.findall(value):
        value = value.replace(f"${{{var_name}}}", os.environ.get(var_name, ""))
    return value


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            data[key] = _substitute(value)
        elif isinstance(value, list):
            data[key] = [_substitute(v) if isinstance(v, str) else v for v in value]
