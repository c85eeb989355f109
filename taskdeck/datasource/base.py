"""
TaskDataSource — the contract between the view-model and the task backend.

Implementations raise DataSourceError for network / remote failures and
NotFoundError when a referenced id no longer exists. They never mutate
view-model state; results are returned and applied by the caller.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Tuple

from taskdeck.records.enums import SortField, TaskStatus
from taskdeck.records.task import TaskRecord
from taskdeck.rules.filtering import FilterCriteria


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.UPDATED_AT
    descending: bool = True

    def to_query_params(self) -> dict:
        return {"sort": self.field.value, "descending": "true" if self.descending else "false"}


@dataclass(frozen=True)
class TaskPage:
    """One page of results plus the cursor for the next one."""
    records: Tuple[TaskRecord, ...] = field(default_factory=tuple)
    next_cursor: Optional[str] = None
    has_more: bool = False

    def __len__(self) -> int:
        return len(self.records)


class TaskDataSource(abc.ABC):
    """Capability consumed by TaskListViewModel."""

    @abc.abstractmethod
    async def fetch_page(
        self,
        filters: FilterCriteria,
        sort: Optional[SortSpec],
        cursor: Optional[str],
        page_size: int,
    ) -> TaskPage:
        """Fetch one page matching the axis filters, starting at cursor (None = first page)."""

    @abc.abstractmethod
    async def search(self, query: str, limit: int) -> List[TaskRecord]:
        """Text search, capped at limit. No pagination."""

    @abc.abstractmethod
    async def mutate_status(self, task_id: str, status: TaskStatus) -> TaskRecord:
        """Change a task's status and return the updated record."""

    @abc.abstractmethod
    async def delete(self, task_id: str) -> None:
        """Delete a task."""

    def subscribe(self, filters: FilterCriteria) -> Optional[AsyncIterator[List[TaskRecord]]]:
        """
        Live stream of record-set snapshots matching filters.
        None when the source only supports pull (the default).
        """
        return None

    async def close(self) -> None:
        """Release any held resources."""
