"""
InMemoryTaskDataSource — dict-backed TaskDataSource.

Used for demos and tests. Behaves like the remote backend: axis filters
and sort are applied "server-side", cursors are opaque offsets, and every
call suspends (optionally for a configured latency) so concurrent callers
interleave the way they would against a network service.

Failures can be injected per operation and per task id.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Set

from taskdeck.datasource.base import SortSpec, TaskDataSource, TaskPage
from taskdeck.engine.errors import DataSourceError, NotFoundError, ValidationError
from taskdeck.records.enums import TaskStatus
from taskdeck.records.task import TaskRecord
from taskdeck.rules.filtering import FilterCriteria, apply_filters, matches_text
from taskdeck.rules.sorting import sort_tasks

logger = logging.getLogger("taskdeck.datasource.memory")

OPERATIONS = ("fetch_page", "search", "mutate_status", "delete")


class InMemoryTaskDataSource(TaskDataSource):
    """
    In-process task store.

    Args:
        tasks: Initial records (later duplicates replace earlier ones).
        latency: Seconds each call sleeps before answering.
        clock: Source of "now" for updated_at stamps and urgency sorting.
    """

    def __init__(
        self,
        tasks: Optional[Iterable[TaskRecord]] = None,
        latency: float = 0.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._tasks: Dict[str, TaskRecord] = {}
        for task in tasks or ():
            self._tasks[task.id] = task
        self._latency = latency
        self._clock = clock
        self._failures: Dict[str, Exception] = {}
        self._failing_ids: Dict[str, Dict[str, Exception]] = {op: {} for op in OPERATIONS}
        self._subscribers: Set[asyncio.Queue] = set()
        self.calls: Dict[str, int] = {op: 0 for op in OPERATIONS}

    # -----------------------------------------------------------------------
    # Failure injection
    # -----------------------------------------------------------------------

    def fail_next(self, operation: str, error: Optional[Exception] = None) -> None:
        """Make the next call of operation raise error (DataSourceError by default)."""
        self._check_operation(operation)
        self._failures[operation] = error or DataSourceError(
            f"Injected failure in {operation}", operation=operation
        )

    def fail_for(self, operation: str, task_id: str, error: Optional[Exception] = None) -> None:
        """Make every call of operation for task_id raise error until cleared."""
        self._check_operation(operation)
        self._failing_ids[operation][task_id] = error or DataSourceError(
            f"Injected failure in {operation} for {task_id}",
            operation=operation,
            task_id=task_id,
        )

    def clear_failures(self) -> None:
        self._failures.clear()
        for failing in self._failing_ids.values():
            failing.clear()

    @staticmethod
    def _check_operation(operation: str) -> None:
        if operation not in OPERATIONS:
            raise ValidationError(f"Unknown operation '{operation}'", field="operation", value=operation)

    async def _enter(self, operation: str, task_id: Optional[str] = None) -> None:
        self.calls[operation] += 1
        await asyncio.sleep(self._latency)
        pending = self._failures.pop(operation, None)
        if pending is not None:
            raise pending
        if task_id is not None and task_id in self._failing_ids[operation]:
            raise self._failing_ids[operation][task_id]

    # -----------------------------------------------------------------------
    # Store helpers
    # -----------------------------------------------------------------------

    def put(self, task: TaskRecord) -> None:
        """Insert or replace a record and notify live subscribers."""
        self._tasks[task.id] = task
        self._publish()

    def get(self, task_id: str) -> Optional[TaskRecord]:
        return self._tasks.get(task_id)

    @property
    def tasks(self) -> List[TaskRecord]:
        return list(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    # -----------------------------------------------------------------------
    # TaskDataSource
    # -----------------------------------------------------------------------

    async def fetch_page(
        self,
        filters: FilterCriteria,
        sort: Optional[SortSpec],
        cursor: Optional[str],
        page_size: int,
    ) -> TaskPage:
        await self._enter("fetch_page")
        try:
            offset = int(cursor) if cursor else 0
        except ValueError:
            raise DataSourceError(f"Malformed cursor '{cursor}'", operation="fetch_page") from None

        now = self._clock()
        matching = apply_filters(self._tasks.values(), filters.axes_only(), now)
        if sort is not None:
            matching = sort_tasks(matching, sort.field, sort.descending, now)

        page = matching[offset:offset + page_size]
        end = offset + len(page)
        has_more = end < len(matching)
        return TaskPage(
            records=tuple(page),
            next_cursor=str(end) if has_more else None,
            has_more=has_more,
        )

    async def search(self, query: str, limit: int) -> List[TaskRecord]:
        await self._enter("search")
        return [t for t in self._tasks.values() if matches_text(t, query)][:limit]

    async def mutate_status(self, task_id: str, status: TaskStatus) -> TaskRecord:
        await self._enter("mutate_status", task_id)
        current = self._tasks.get(task_id)
        if current is None:
            raise NotFoundError(f"Task '{task_id}' not found", operation="mutate_status", task_id=task_id)
        now = self._clock()
        updated_at = max(now, current.created_at) if _comparable(now, current.created_at) else now
        updated = current.model_copy(update={"status": status, "updated_at": updated_at})
        self.put(updated)
        logger.debug(f"Task {task_id} status -> {status.value}")
        return updated

    async def delete(self, task_id: str) -> None:
        await self._enter("delete", task_id)
        if self._tasks.pop(task_id, None) is None:
            raise NotFoundError(f"Task '{task_id}' not found", operation="delete", task_id=task_id)
        logger.debug(f"Task {task_id} deleted")
        self._publish()

    # -----------------------------------------------------------------------
    # Live snapshots
    # -----------------------------------------------------------------------

    def subscribe(self, filters: FilterCriteria) -> AsyncIterator[List[TaskRecord]]:
        return self._stream(filters)

    async def _stream(self, filters: FilterCriteria) -> AsyncIterator[List[TaskRecord]]:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.add(queue)
        try:
            yield self._snapshot(filters)
            while True:
                await queue.get()
                yield self._snapshot(filters)
        finally:
            self._subscribers.discard(queue)

    def _snapshot(self, filters: FilterCriteria) -> List[TaskRecord]:
        return apply_filters(self._tasks.values(), filters.axes_only(), self._clock())

    def _publish(self) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(True)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


def _comparable(a: datetime, b: datetime) -> bool:
    return (a.tzinfo is None) == (b.tzinfo is None)
