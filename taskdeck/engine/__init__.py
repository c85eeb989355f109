"""Taskdeck Engine — Errors, configuration, structured logging."""

from taskdeck.engine.config import TaskdeckConfig, get_config, load_config  # noqa: F401
from taskdeck.engine.errors import (  # noqa: F401
    BulkOperationError,
    ConfigError,
    DataSourceError,
    NotFoundError,
    TaskdeckError,
    ValidationError,
)

__all__ = [
    "TaskdeckConfig",
    "get_config",
    "load_config",
    "TaskdeckError",
    "DataSourceError",
    "NotFoundError",
    "ValidationError",
    "ConfigError",
    "BulkOperationError",
]
