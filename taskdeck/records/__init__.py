"""Task records and enumerations."""

from taskdeck.records.enums import (  # noqa: F401
    QuickFilter,
    SortField,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    UrgencyLevel,
    coerce_enum,
)
from taskdeck.records.task import TaskRecord  # noqa: F401

__all__ = [
    "TaskRecord",
    "TaskStatus",
    "TaskPriority",
    "TaskCategory",
    "SortField",
    "QuickFilter",
    "UrgencyLevel",
    "coerce_enum",
]
