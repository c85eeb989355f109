"""
Filter pipeline — text, quick filter, axis filters.

Stages run in a fixed order and compose with AND semantics:
  1. text: case-insensitive substring of title OR description
  2. quick filter (named preset, see QuickFilter)
  3. status / priority / category exact match, each only when set
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from taskdeck.records.enums import QuickFilter, TaskCategory, TaskPriority, TaskStatus
from taskdeck.records.task import TaskRecord
from taskdeck.rules.classification import is_due_this_week, is_due_today, is_overdue


@dataclass(frozen=True)
class FilterCriteria:
    """Snapshot of every active filter. The default instance matches everything."""
    search_query: str = ""
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    category: Optional[TaskCategory] = None
    quick_filter: QuickFilter = QuickFilter.ALL
    quick_priority: Optional[TaskPriority] = None

    @property
    def has_axis_filters(self) -> bool:
        return any(v is not None for v in (self.status, self.priority, self.category))

    @property
    def is_active(self) -> bool:
        return (
            bool(self.search_query)
            or self.has_axis_filters
            or self.quick_filter is not QuickFilter.ALL
        )

    def axes_only(self) -> "FilterCriteria":
        """The subset the data source can apply server-side."""
        return replace(self, search_query="", quick_filter=QuickFilter.ALL, quick_priority=None)

    def to_query_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.status is not None:
            params["status"] = self.status.value
        if self.priority is not None:
            params["priority"] = self.priority.value
        if self.category is not None:
            params["category"] = self.category.value
        return params


def matches_text(task: TaskRecord, query: str) -> bool:
    if not query:
        return True
    needle = query.casefold()
    return needle in task.title.casefold() or needle in task.description.casefold()


def matches_quick_filter(
    task: TaskRecord,
    quick_filter: QuickFilter,
    now: datetime,
    priority: Optional[TaskPriority] = None,
) -> bool:
    if quick_filter is QuickFilter.ALL:
        return True
    if quick_filter is QuickFilter.PENDING:
        return task.status is TaskStatus.TODO
    if quick_filter is QuickFilter.IN_PROGRESS:
        return task.status is TaskStatus.IN_PROGRESS
    if quick_filter is QuickFilter.COMPLETED:
        return task.status is TaskStatus.COMPLETED
    if quick_filter is QuickFilter.OVERDUE:
        return is_overdue(task, now)
    if quick_filter is QuickFilter.DUE_TODAY:
        return is_due_today(task, now)
    if quick_filter is QuickFilter.DUE_THIS_WEEK:
        return is_due_this_week(task, now)
    if quick_filter is QuickFilter.PRIORITY:
        return priority is None or task.priority is priority
    return True


def matches_axes(task: TaskRecord, criteria: FilterCriteria) -> bool:
    if criteria.status is not None and task.status is not criteria.status:
        return False
    if criteria.priority is not None and task.priority is not criteria.priority:
        return False
    if criteria.category is not None and task.category is not criteria.category:
        return False
    return True


def matches(task: TaskRecord, criteria: FilterCriteria, now: datetime) -> bool:
    return (
        matches_text(task, criteria.search_query)
        and matches_quick_filter(task, criteria.quick_filter, now, criteria.quick_priority)
        and matches_axes(task, criteria)
    )


def apply_filters(
    tasks: Iterable[TaskRecord],
    criteria: FilterCriteria,
    now: datetime,
) -> List[TaskRecord]:
    """Return the tasks matching every active filter, in input order."""
    return [t for t in tasks if matches(t, criteria, now)]


def filter_summary(criteria: FilterCriteria) -> str:
    """Human-readable description of the active filters."""
    parts: List[str] = []
    if criteria.status is not None:
        parts.append(f"Status: {criteria.status.display_name}")
    if criteria.priority is not None:
        parts.append(f"Priority: {criteria.priority.display_name}")
    if criteria.category is not None:
        parts.append(f"Category: {criteria.category.display_name}")
    if criteria.quick_filter is QuickFilter.PRIORITY and criteria.quick_priority is not None:
        parts.append(f"Quick: {criteria.quick_priority.display_name} priority")
    elif criteria.quick_filter is not QuickFilter.ALL:
        parts.append(f"Quick: {criteria.quick_filter.value.replace('_', ' ').title()}")
    if criteria.search_query:
        parts.append(f'Search: "{criteria.search_query}"')
    return ", ".join(parts) if parts else "All Tasks"
