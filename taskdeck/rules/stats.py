"""Per-axis counts and summary statistics over a set of tasks."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Type, TypeVar

from taskdeck.records.enums import TaskCategory, TaskPriority, TaskStatus
from taskdeck.records.task import TaskRecord
from taskdeck.rules.classification import is_due_today, is_overdue

E = TypeVar("E", bound=Enum)


def _count_by(tasks: Iterable[TaskRecord], attr: str, enum_cls: Type[E]) -> Dict[E, int]:
    counts = Counter(getattr(t, attr) for t in tasks)
    return {member: counts.get(member, 0) for member in enum_cls}


def count_by_status(tasks: Iterable[TaskRecord]) -> Dict[TaskStatus, int]:
    return _count_by(tasks, "status", TaskStatus)


def count_by_priority(tasks: Iterable[TaskRecord]) -> Dict[TaskPriority, int]:
    return _count_by(tasks, "priority", TaskPriority)


def count_by_category(tasks: Iterable[TaskRecord]) -> Dict[TaskCategory, int]:
    return _count_by(tasks, "category", TaskCategory)


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0
    due_today: int = 0

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "in_progress": self.in_progress,
            "overdue": self.overdue,
            "due_today": self.due_today,
            "completion_rate": round(self.completion_rate, 4),
        }


def summarize(tasks: Iterable[TaskRecord], now: datetime) -> TaskStats:
    items = list(tasks)
    return TaskStats(
        total=len(items),
        completed=sum(1 for t in items if t.status is TaskStatus.COMPLETED),
        in_progress=sum(1 for t in items if t.status is TaskStatus.IN_PROGRESS),
        overdue=sum(1 for t in items if is_overdue(t, now)),
        due_today=sum(1 for t in items if is_due_today(t, now)),
    )
