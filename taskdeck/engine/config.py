"""
Taskdeck Configuration — Load and validate taskdeck.yaml.

Usage:
    from taskdeck.engine.config import load_config, get_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from taskdeck.engine.errors import ConfigError

CONFIG_FILENAME = "taskdeck.yaml"

SORT_FIELDS = ("title", "priority", "status", "due_date", "created_at", "updated_at", "urgency")
QUICK_FILTER_MODES = ("layered", "exclusive")


# ---------------------------------------------------------------------------
# Pydantic models for taskdeck.yaml
# ---------------------------------------------------------------------------

class ViewModelConfig(BaseModel):
    page_size: int = Field(default=20, gt=0)
    search_debounce_ms: int = Field(default=500, ge=0)
    search_limit: int = Field(default=50, gt=0)
    quick_filter_mode: str = "layered"
    default_sort_field: str = "updated_at"
    default_sort_descending: bool = True

    @field_validator("quick_filter_mode")
    @classmethod
    def validate_quick_filter_mode(cls, v: str) -> str:
        if v not in QUICK_FILTER_MODES:
            raise ValueError(f"quick_filter_mode must be layered/exclusive, got '{v}'")
        return v

    @field_validator("default_sort_field")
    @classmethod
    def validate_sort_field(cls, v: str) -> str:
        if v not in SORT_FIELDS:
            raise ValueError(f"default_sort_field must be one of {', '.join(SORT_FIELDS)}, got '{v}'")
        return v

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0


class DataSourceConfig(BaseModel):
    base_url: str = "http://localhost:8080/api"
    timeout: float = Field(default=30.0, gt=0)
    retry_count: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=0.5, ge=0)
    api_key: Optional[str] = None


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".taskdeck/logs"
    structured: bool = False
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level


class TaskdeckConfig(BaseModel):
    """Root model for taskdeck.yaml."""
    environment: str = "dev"
    view_model: ViewModelConfig = ViewModelConfig()
    data_source: DataSourceConfig = DataSourceConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[TaskdeckConfig] = None


def _find_config_file() -> Optional[Path]:
    """Walk up from CWD looking for taskdeck.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> TaskdeckConfig:
    """
    Load and validate taskdeck.yaml.

    Args:
        config_path: Explicit path to taskdeck.yaml. If None, auto-discovers.

    Returns:
        Validated TaskdeckConfig instance. Defaults when no file exists.

    Raises:
        ConfigError if the file is not valid YAML or fails validation.
    """
    global _config

    path = Path(config_path) if config_path else _find_config_file()
    if path is None or not path.exists():
        _config = TaskdeckConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}", path=str(path))

    # Allow the whole document to be nested under a "taskdeck:" key
    data = raw.get("taskdeck", raw)

    try:
        _config = TaskdeckConfig(**data)
    except PydanticValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}",
            path=str(path),
            validation_errors=e.errors(),
        ) from e
    return _config


def get_config() -> TaskdeckConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get the current environment name."""
    return get_config().environment
