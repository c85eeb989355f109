"""
Taskdeck Error Hierarchy — Structured exceptions for the task list layer.

Every error carries a message plus free-form context and serializes to a
JSON-compatible dict so the presentation layer (or a log sink) can show
or store it without knowing the concrete type.

Hierarchy:
    TaskdeckError
    ├── DataSourceError      — Remote / network failure (retryable)
    │   └── NotFoundError    — Referenced task no longer exists remotely
    ├── ValidationError      — Malformed filter, sort or selection argument
    ├── ConfigError          — Invalid taskdeck.yaml
    └── BulkOperationError   — Partial failure of a fan-out mutation
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TaskdeckError(Exception):
    """
    Base error for all Taskdeck failures.
    All context is kept serializable for logging.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.operation: Optional[str] = context.get("operation")
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "operation": self.operation,
            "retryable": self.retryable,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("operation",)
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.operation:
            parts.append(f"operation={self.operation}")
        return " | ".join(parts)


class DataSourceError(TaskdeckError):
    """
    Network or remote failure talking to the task backend.
    Retryable by re-invoking the same operation.
    """

    def __init__(self, message: str, **context: Any):
        self.status_code: Optional[int] = context.get("status_code")
        self.task_id: Optional[str] = context.get("task_id")
        super().__init__(message, **context)

    @property
    def retryable(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        d["task_id"] = self.task_id
        return d


class NotFoundError(DataSourceError):
    """The referenced task id no longer exists remotely. Not retryable."""

    @property
    def retryable(self) -> bool:
        return False


class ValidationError(TaskdeckError):
    """
    Malformed filter, sort or selection argument.
    Programmer error: raised to the caller, never captured into state.
    """

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        self.value: Any = context.get("value")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        return d


class ConfigError(TaskdeckError):
    """Configuration error — invalid taskdeck.yaml."""
    pass


class BulkOperationError(TaskdeckError):
    """
    Summary of a bulk mutation where at least one per-item call failed.
    Successful items are not rolled back.
    """

    def __init__(
        self,
        message: str,
        succeeded: int,
        failed: int,
        failures: Optional[Dict[str, Exception]] = None,
        **context: Any,
    ):
        self.succeeded = succeeded
        self.failed = failed
        self.failures: Dict[str, Exception] = dict(failures or {})
        super().__init__(message, **context)

    @classmethod
    def from_results(
        cls,
        operation: str,
        succeeded: List[str],
        failures: Dict[str, Exception],
    ) -> "BulkOperationError":
        total = len(succeeded) + len(failures)
        message = (
            f"{operation}: {len(succeeded)} of {total} succeeded, "
            f"{len(failures)} failed"
        )
        return cls(
            message,
            succeeded=len(succeeded),
            failed=len(failures),
            failures=failures,
            operation=operation,
        )

    @property
    def failed_ids(self) -> List[str]:
        return list(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["succeeded"] = self.succeeded
        d["failed"] = self.failed
        d["failures"] = {
            task_id: f"{type(exc).__name__}: {exc}"
            for task_id, exc in self.failures.items()
        }
        return d
