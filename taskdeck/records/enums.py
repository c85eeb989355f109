"""
Task enumerations — status, priority, category, plus the view-model's
sort fields, quick filters and urgency levels.

String values match what the task backend stores, so members round-trip
through JSON unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Tuple, Type, TypeVar

from taskdeck.engine.errors import ValidationError

E = TypeVar("E", bound=Enum)


class TaskStatus(str, Enum):
    """Workflow state of a task."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        return _STATUS_NAMES[self]

    @property
    def order(self) -> int:
        """Workflow position used for sorting."""
        return _STATUS_ORDER[self]

    @property
    def is_closed(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)

    @property
    def next_statuses(self) -> Tuple["TaskStatus", ...]:
        return _STATUS_TRANSITIONS[self]

    def can_transition_to(self, other: "TaskStatus") -> bool:
        return other in _STATUS_TRANSITIONS[self]


_STATUS_NAMES = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "Under Review",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.CANCELLED: "Cancelled",
}

_STATUS_ORDER = {
    TaskStatus.TODO: 0,
    TaskStatus.IN_PROGRESS: 1,
    TaskStatus.REVIEW: 2,
    TaskStatus.COMPLETED: 3,
    TaskStatus.CANCELLED: 4,
}

_STATUS_TRANSITIONS = {
    TaskStatus.TODO: (TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED),
    TaskStatus.IN_PROGRESS: (TaskStatus.REVIEW, TaskStatus.COMPLETED, TaskStatus.CANCELLED),
    TaskStatus.REVIEW: (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED),
    TaskStatus.COMPLETED: (TaskStatus.IN_PROGRESS,),
    TaskStatus.CANCELLED: (TaskStatus.TODO, TaskStatus.IN_PROGRESS),
}


class TaskPriority(str, Enum):
    """Importance of a task. Strict total order low < medium < high < urgent."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self]

    def is_higher_than(self, other: "TaskPriority") -> bool:
        return self.level > other.level


_PRIORITY_LEVELS = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.URGENT: 4,
}


class TaskCategory(str, Enum):
    PERSONAL = "personal"
    TEAM_COLLABORATION = "team_collaboration"
    PROJECT_MANAGEMENT = "project_management"

    @property
    def display_name(self) -> str:
        return _CATEGORY_NAMES[self]

    @property
    def allows_collaboration(self) -> bool:
        return self is not TaskCategory.PERSONAL


_CATEGORY_NAMES = {
    TaskCategory.PERSONAL: "Personal Tasks",
    TaskCategory.TEAM_COLLABORATION: "Team Collaboration",
    TaskCategory.PROJECT_MANAGEMENT: "Project Management",
}


class SortField(str, Enum):
    TITLE = "title"
    PRIORITY = "priority"
    STATUS = "status"
    DUE_DATE = "due_date"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    URGENCY = "urgency"


class QuickFilter(str, Enum):
    """Named preset filters, evaluated locally against the working set."""
    ALL = "all"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_THIS_WEEK = "due_this_week"
    PRIORITY = "priority"


class UrgencyLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    NORMAL = "Normal"


def coerce_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """
    Accept an enum member or its string value.
    Raises ValidationError for anything else.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field} '{value}' (expected one of: {allowed})",
            field=field,
            value=value,
        ) from None

