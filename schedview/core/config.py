"""
schedview configuration: loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (SCHEDVIEW_*)
3. Project config (./schedview.toml)
4. User config (~/.schedview/config.toml)
5. Defaults (hardcoded)

Environment variable mapping:
    SCHEDVIEW_MAX_CONCURRENCY: snapshot.max_concurrency
    SCHEDVIEW_UNAVAILABLE_TEXT: snapshot.unavailable_detail_text
    SCHEDVIEW_LOG_LEVEL: logging.console_level
    SCHEDVIEW_LOG_DIR: logging.log_dir
    SCHEDVIEW_STATE_FILE: engine.state_file
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from schedview.core.errors import ConfigError

UNAVAILABLE_DETAIL_TEXT = "Not available for remote scheduler"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SnapshotConfig(BaseModel):
    """Snapshot builder configuration."""

    max_concurrency: int = Field(default=8, ge=1)  # 1 = strictly sequential
    unavailable_detail_text: str = UNAVAILABLE_DETAIL_TEXT


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Logging configuration. Level names are case-insensitive."""

    log_dir: str = "~/.schedview/logs"
    console_level: str = "WARNING"
    file_level: str = "DEBUG"

    @field_validator("console_level", "file_level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> str:
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"unknown log level {value!r}, expected one of {', '.join(LOG_LEVELS)}"
            )
        return level


class EngineConfig(BaseModel):
    """Where the CLI reads engine state from."""

    state_file: str | None = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SchedViewConfig(BaseModel):
    """Root configuration for schedview."""

    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> SchedViewConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        user_config_path = user_path or Path.home() / ".schedview" / "config.toml"
        if user_config_path.exists():
            _deep_merge(merged, _read_toml(user_config_path))

        project_config_path = project_path or Path.cwd() / "schedview.toml"
        if project_config_path.exists():
            _deep_merge(merged, _read_toml(project_config_path))

        _deep_merge(merged, _load_from_env())

        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return SchedViewConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def get_log_dir(self) -> Path:
        """Get the resolved log directory."""
        return Path(self.logging.log_dir).expanduser()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Values stay raw strings; the models coerce them per field type.
_ENV_MAPPING: dict[str, tuple[str, str]] = {
    "SCHEDVIEW_MAX_CONCURRENCY": ("snapshot", "max_concurrency"),
    "SCHEDVIEW_UNAVAILABLE_TEXT": ("snapshot", "unavailable_detail_text"),
    "SCHEDVIEW_LOG_DIR": ("logging", "log_dir"),
    "SCHEDVIEW_LOG_LEVEL": ("logging", "console_level"),
    "SCHEDVIEW_STATE_FILE": ("engine", "state_file"),
}


def _read_toml(path: Path) -> dict[str, Any]:
    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


def _load_from_env() -> dict[str, dict[str, str]]:
    """Collect SCHEDVIEW_* variables into config sections."""
    sections: dict[str, dict[str, str]] = {}
    for env_var, (section, key) in _ENV_MAPPING.items():
        if env_var in os.environ:
            sections.setdefault(section, {})[key] = os.environ[env_var]
    return sections


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in place; nested tables merge key by key."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            base[key] = value


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _substitute(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, list):
        return [_substitute(v) for v in value]
    if isinstance(value, dict):
        _substitute_env_vars(value)
    return value


def _substitute_env_vars(data: dict) -> None:
    """Replace ${ENV_VAR} references in string values, recursively."""
    for key, value in data.items():
        data[key] = _substitute(value)
