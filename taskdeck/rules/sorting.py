"""
Stable task sorting.

Python's sort is stable in both directions (reverse=True keeps equal keys
in input order), so re-sorting unchanged data is idempotent.

Tasks without a due date always come after dated tasks when sorting by
due_date, whichever direction is requested.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List

from taskdeck.records.enums import SortField
from taskdeck.records.task import TaskRecord
from taskdeck.rules.classification import urgency_score


def _timestamp(value: datetime) -> float:
    """Orderable key for naive (local) and aware datetimes alike."""
    if value.tzinfo is None:
        return value.timestamp()
    return value.astimezone(timezone.utc).timestamp()


_SORT_KEYS: Dict[SortField, Callable[[TaskRecord], Any]] = {
    SortField.TITLE: lambda t: t.title.casefold(),
    SortField.PRIORITY: lambda t: t.priority.level,
    SortField.STATUS: lambda t: t.status.order,
    SortField.CREATED_AT: lambda t: _timestamp(t.created_at),
    SortField.UPDATED_AT: lambda t: _timestamp(t.last_modified),
}


def sort_tasks(
    tasks: Iterable[TaskRecord],
    field: SortField,
    descending: bool,
    now: datetime,
) -> List[TaskRecord]:
    """Return a new, stably sorted list."""
    items = list(tasks)

    if field is SortField.DUE_DATE:
        dated = [t for t in items if t.due_date is not None]
        undated = [t for t in items if t.due_date is None]
        dated.sort(key=lambda t: _timestamp(t.due_date), reverse=descending)
        return dated + undated

    if field is SortField.URGENCY:
        return sorted(items, key=lambda t: urgency_score(t, now), reverse=descending)

    return sorted(items, key=_SORT_KEYS[field], reverse=descending)
