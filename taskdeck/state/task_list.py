"""
Taskdeck Task List — view-model for a filtered, sorted, paginated task list.

Provides:
- TaskListState: plain mutable state owned by one view-model
- TaskListViewModel: commands (load, filter, sort, select, bulk mutate) and
  derived read-only views (visible_tasks, counts, stats)

Concurrency model: one asyncio event loop. Every load bumps a generation
counter and a response is applied only while its generation is current,
so out-of-order completions never overwrite newer results. load_more is a
no-op while any load is in flight. Bulk mutations fan out with
asyncio.gather and are joined before the selection is cleared.

Data source failures never escape: they land in state.error and leave the
working set untouched. ValidationError (bad arguments) is raised.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
)

from taskdeck.datasource.base import SortSpec, TaskDataSource
from taskdeck.engine.config import ViewModelConfig, get_config
from taskdeck.engine.errors import (
    BulkOperationError,
    DataSourceError,
    NotFoundError,
    TaskdeckError,
    ValidationError,
)
from taskdeck.engine.logging import log, log_bulk_operation, log_view_model_event
from taskdeck.records.enums import (
    QuickFilter,
    SortField,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    coerce_enum,
)
from taskdeck.records.task import TaskRecord
from taskdeck.rules.filtering import FilterCriteria, apply_filters, filter_summary
from taskdeck.rules.sorting import sort_tasks
from taskdeck.rules.stats import (
    TaskStats,
    count_by_category,
    count_by_priority,
    count_by_status,
    summarize,
)
from taskdeck.state.debounce import Debouncer
from taskdeck.state.observable import Change, Observable

logger = logging.getLogger("taskdeck.state.task_list")


@dataclass
class TaskListState:
    """Mutable state for one task list screen."""

    all_tasks: List[TaskRecord] = field(default_factory=list)
    search_query: str = ""
    status_filter: Optional[TaskStatus] = None
    priority_filter: Optional[TaskPriority] = None
    category_filter: Optional[TaskCategory] = None
    quick_filter: QuickFilter = QuickFilter.ALL
    quick_priority: Optional[TaskPriority] = None
    sort_field: SortField = SortField.UPDATED_AT
    sort_descending: bool = True
    selected_ids: Set[str] = field(default_factory=set)
    pagination_cursor: Optional[str] = None
    has_more: bool = True
    is_loading: bool = False
    is_loading_more: bool = False
    error: Optional[TaskdeckError] = None

    def criteria(self) -> FilterCriteria:
        return FilterCriteria(
            search_query=self.search_query,
            status=self.status_filter,
            priority=self.priority_filter,
            category=self.category_filter,
            quick_filter=self.quick_filter,
            quick_priority=self.quick_priority,
        )

    def clear_axis_filters(self) -> None:
        self.status_filter = None
        self.priority_filter = None
        self.category_filter = None

    def clear_quick_filter(self) -> None:
        self.quick_filter = QuickFilter.ALL
        self.quick_priority = None

    def clear_filters(self) -> None:
        self.search_query = ""
        self.clear_axis_filters()
        self.clear_quick_filter()

    def task_ids(self) -> Set[str]:
        return {t.id for t in self.all_tasks}


class TaskListViewModel(Observable):
    """
    Presentation-facing view-model over a TaskDataSource.

    Args:
        data_source: Injected backend capability.
        config: View-model settings; defaults to taskdeck.yaml's view_model.
        clock: Source of "now" for overdue / due-today / urgency evaluation.

    Listeners registered with subscribe() receive (Change, view_model).
    """

    def __init__(
        self,
        data_source: TaskDataSource,
        config: Optional[ViewModelConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__()
        self._source = data_source
        self._config = config or get_config().view_model
        self._clock = clock
        self._default_sort = (
            SortField(self._config.default_sort_field),
            self._config.default_sort_descending,
        )
        self.state = TaskListState(
            sort_field=self._default_sort[0],
            sort_descending=self._default_sort[1],
        )
        self._debouncer = Debouncer(self._config.search_debounce_seconds)
        self._generation = 0
        self._live_task: Optional[asyncio.Task] = None
        self._closed = False

    # -----------------------------------------------------------------------
    # Read-only views
    # -----------------------------------------------------------------------

    @property
    def config(self) -> ViewModelConfig:
        return self._config

    @property
    def all_tasks(self) -> Tuple[TaskRecord, ...]:
        return tuple(self.state.all_tasks)

    @property
    def visible_tasks(self) -> List[TaskRecord]:
        """Working set after text, quick and axis filters, then the current sort."""
        now = self._clock()
        filtered = apply_filters(self.state.all_tasks, self.state.criteria(), now)
        return sort_tasks(filtered, self.state.sort_field, self.state.sort_descending, now)

    @property
    def search_query(self) -> str:
        return self.state.search_query

    @property
    def status_filter(self) -> Optional[TaskStatus]:
        return self.state.status_filter

    @property
    def priority_filter(self) -> Optional[TaskPriority]:
        return self.state.priority_filter

    @property
    def category_filter(self) -> Optional[TaskCategory]:
        return self.state.category_filter

    @property
    def quick_filter(self) -> QuickFilter:
        return self.state.quick_filter

    @property
    def sort_field(self) -> SortField:
        return self.state.sort_field

    @property
    def sort_descending(self) -> bool:
        return self.state.sort_descending

    @property
    def selected_ids(self) -> FrozenSet[str]:
        return frozenset(self.state.selected_ids)

    @property
    def selected_count(self) -> int:
        return len(self.state.selected_ids)

    @property
    def has_selection(self) -> bool:
        return bool(self.state.selected_ids)

    def is_selected(self, task_id: str) -> bool:
        return task_id in self.state.selected_ids

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def is_loading_more(self) -> bool:
        return self.state.is_loading_more

    @property
    def error(self) -> Optional[TaskdeckError]:
        return self.state.error

    @property
    def error_message(self) -> str:
        return self.state.error.message if self.state.error else ""

    @property
    def has_active_filters(self) -> bool:
        return self.state.criteria().is_active

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def status_counts(self) -> Dict[TaskStatus, int]:
        return count_by_status(self.state.all_tasks)

    @property
    def priority_counts(self) -> Dict[TaskPriority, int]:
        return count_by_priority(self.state.all_tasks)

    @property
    def category_counts(self) -> Dict[TaskCategory, int]:
        return count_by_category(self.state.all_tasks)

    def stats(self) -> TaskStats:
        return summarize(self.state.all_tasks, self._clock())

    def filter_summary(self) -> str:
        return filter_summary(self.state.criteria())

    def clear_error(self) -> None:
        if self.state.error is not None:
            self.state.error = None
            self._notify(Change.ERROR)

    # -----------------------------------------------------------------------
    # Loading
    # -----------------------------------------------------------------------

    async def load(self, reset: bool = False) -> bool:
        """
        Fetch the first page (or the search results) with the current filters.

        reset=True starts over: the fetched page replaces the working set and
        the selection is cleared. Otherwise results are merged by id.

        Returns True when results were applied.
        """
        if self._closed:
            return False
        st = self.state
        self._generation += 1
        generation = self._generation
        query = st.search_query

        st.is_loading = True
        self._notify(Change.LOADING)
        self.clear_error()

        try:
            if query:
                records = await self._call(
                    "search", self._source.search(query, self._config.search_limit)
                )
                next_cursor, has_more = None, False
            else:
                page = await self._call("fetch_page", self._source.fetch_page(
                    st.criteria().axes_only(),
                    SortSpec(st.sort_field, st.sort_descending),
                    None,
                    self._config.page_size,
                ))
                records = list(page.records)
                next_cursor = page.next_cursor
                has_more = self._page_has_more(len(records), page.has_more, next_cursor)
        except DataSourceError as e:
            if generation == self._generation:
                self._set_error(e)
                log(log_view_model_event("load_failed", generation=generation, error=str(e)))
            return False
        finally:
            if generation == self._generation:
                st.is_loading = False
                self._notify(Change.LOADING)

        if generation != self._generation:
            logger.debug(f"Discarding stale load response (generation {generation})")
            return False

        if reset:
            st.all_tasks = []
            if st.selected_ids:
                st.selected_ids.clear()
                self._notify(Change.SELECTION)
        self._merge(records)
        st.pagination_cursor = next_cursor
        st.has_more = has_more
        self._prune_selection()
        self._notify(Change.TASKS)
        log(log_view_model_event(
            "loaded",
            generation=generation,
            details={"records": len(records), "reset": reset, "search": bool(query)},
        ))
        return True

    async def load_more(self) -> bool:
        """Append the next page. No-op while a load runs or when nothing is left."""
        st = self.state
        if self._closed or st.is_loading or st.is_loading_more or not st.has_more:
            return False
        generation = self._generation

        st.is_loading_more = True
        self._notify(Change.LOADING)
        self.clear_error()

        try:
            page = await self._call("fetch_page", self._source.fetch_page(
                st.criteria().axes_only(),
                SortSpec(st.sort_field, st.sort_descending),
                st.pagination_cursor,
                self._config.page_size,
            ))
        except DataSourceError as e:
            if generation == self._generation:
                self._set_error(e)
            return False
        finally:
            st.is_loading_more = False
            self._notify(Change.LOADING)

        if generation != self._generation:
            logger.debug("Discarding load_more response superseded by a newer load")
            return False

        self._merge(page.records)
        st.pagination_cursor = page.next_cursor
        st.has_more = self._page_has_more(len(page), page.has_more, page.next_cursor)
        self._notify(Change.TASKS)
        return True

    async def refresh(self) -> bool:
        return await self.load(reset=True)

    def _page_has_more(self, count: int, reported: bool, next_cursor: Optional[str]) -> bool:
        return reported and next_cursor is not None and count >= self._config.page_size

    # -----------------------------------------------------------------------
    # Filters
    # -----------------------------------------------------------------------

    async def set_search_query(self, query: str) -> None:
        """
        Trimmed query; non-empty fetches after the debounce delay, empty
        reloads immediately. Each call restarts the timer.
        """
        if self._closed:
            return
        if not isinstance(query, str):
            raise ValidationError("search query must be a string", field="search_query", value=query)
        self.state.search_query = query.strip()
        if self.state.search_query and self._config.quick_filter_mode == "exclusive":
            self.state.clear_quick_filter()
        self._notify(Change.FILTERS)

        if self.state.search_query:
            self._debouncer.schedule(self._run_debounced_search)
        else:
            self._debouncer.cancel()
            await self.load(reset=True)

    async def _run_debounced_search(self) -> None:
        await self.load(reset=True)

    async def wait_for_search(self) -> None:
        """Wait for a pending debounced search to fire and finish."""
        await self._debouncer.wait()

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    async def set_status_filter(self, status: Any) -> None:
        value = None if status is None else coerce_enum(TaskStatus, status, "status")
        self.state.status_filter = None if value == self.state.status_filter else value
        await self._axis_filter_changed()

    async def set_priority_filter(self, priority: Any) -> None:
        value = None if priority is None else coerce_enum(TaskPriority, priority, "priority")
        self.state.priority_filter = None if value == self.state.priority_filter else value
        await self._axis_filter_changed()

    async def set_category_filter(self, category: Any) -> None:
        value = None if category is None else coerce_enum(TaskCategory, category, "category")
        self.state.category_filter = None if value == self.state.category_filter else value
        await self._axis_filter_changed()

    async def _axis_filter_changed(self) -> None:
        if self._closed:
            return
        if self._config.quick_filter_mode == "exclusive" and self.state.criteria().has_axis_filters:
            self.state.clear_quick_filter()
        self._notify(Change.FILTERS)
        await self._restart_live_updates()
        await self.load(reset=True)

    async def set_quick_filter(self, quick_filter: Any, priority: Any = None) -> None:
        """
        Apply a named preset locally. QuickFilter.PRIORITY needs a priority.

        In "exclusive" mode a preset replaces search and axis filters
        (reloading when any were set); in "layered" mode it ANDs with them.
        """
        if self._closed:
            return
        quick = coerce_enum(QuickFilter, quick_filter, "quick_filter")
        level = None if priority is None else coerce_enum(TaskPriority, priority, "priority")
        if quick is QuickFilter.PRIORITY and level is None:
            raise ValidationError("priority quick filter requires a priority", field="priority")
        if quick is not QuickFilter.PRIORITY and level is not None:
            raise ValidationError(
                f"priority is only valid with the priority quick filter, got '{quick.value}'",
                field="priority",
                value=level,
            )

        st = self.state
        st.quick_filter = quick
        st.quick_priority = level

        needs_reload = (
            self._config.quick_filter_mode == "exclusive"
            and quick is not QuickFilter.ALL
            and (bool(st.search_query) or st.criteria().has_axis_filters)
        )
        if needs_reload:
            self._debouncer.cancel()
            st.search_query = ""
            st.clear_axis_filters()
        self._notify(Change.FILTERS)
        if needs_reload:
            await self._restart_live_updates()
            await self.load(reset=True)

    async def clear_all_filters(self) -> None:
        if self._closed:
            return
        self._debouncer.cancel()
        self.state.clear_filters()
        self._notify(Change.FILTERS)
        await self._restart_live_updates()
        await self.load(reset=True)

    async def reset_to_default(self) -> None:
        """Clear filters and selection, restore the default sort, reload."""
        if self._closed:
            return
        self._debouncer.cancel()
        self.state.clear_filters()
        self.state.sort_field, self.state.sort_descending = self._default_sort
        self.clear_selection()
        self._notify(Change.FILTERS)
        self._notify(Change.SORT)
        await self._restart_live_updates()
        await self.load(reset=True)

    # -----------------------------------------------------------------------
    # Sorting (local only, never refetches)
    # -----------------------------------------------------------------------

    def set_sort(self, field: Any, descending: Optional[bool] = None) -> None:
        """
        Sort by field. Without an explicit direction, picking the current
        field again flips the direction and a new field starts ascending.
        """
        sort_field = coerce_enum(SortField, field, "sort_field")
        if descending is None:
            if sort_field is self.state.sort_field:
                descending = not self.state.sort_descending
            else:
                descending = False
        elif not isinstance(descending, bool):
            raise ValidationError("descending must be a bool", field="descending", value=descending)
        self.state.sort_field = sort_field
        self.state.sort_descending = descending
        self._notify(Change.SORT)

    def toggle_sort_direction(self) -> None:
        self.set_sort(self.state.sort_field, not self.state.sort_descending)

    # -----------------------------------------------------------------------
    # Selection
    # -----------------------------------------------------------------------

    def toggle_selection(self, task_id: str) -> bool:
        """Flip selection of a loaded task. Returns the new selected state."""
        selected = self.state.selected_ids
        if task_id in selected:
            selected.discard(task_id)
        elif task_id in self.state.task_ids():
            selected.add(task_id)
        else:
            raise ValidationError(f"Task '{task_id}' is not loaded", field="task_id", value=task_id)
        self._notify(Change.SELECTION)
        return task_id in selected

    def select_all(self) -> None:
        """Select every loaded task (not the full remote collection)."""
        self.state.selected_ids = self.state.task_ids()
        self._notify(Change.SELECTION)

    def clear_selection(self) -> None:
        if self.state.selected_ids:
            self.state.selected_ids.clear()
            self._notify(Change.SELECTION)

    # -----------------------------------------------------------------------
    # Single-item mutations
    # -----------------------------------------------------------------------

    async def update_task_status(self, task_id: str, status: Any) -> Optional[TaskRecord]:
        """Change one task's status. Returns the updated record, None on failure."""
        new_status = coerce_enum(TaskStatus, status, "status")
        if self._closed:
            return None
        self.clear_error()
        try:
            record = await self._call(
                "mutate_status", self._source.mutate_status(task_id, new_status)
            )
        except NotFoundError as e:
            self._remove_local([task_id])
            self._set_error(e)
            return None
        except DataSourceError as e:
            self._set_error(e)
            return None
        self._merge([record])
        self._notify(Change.TASKS)
        return record

    async def delete_task(self, task_id: str) -> bool:
        """Delete one task. A task already gone remotely is dropped locally too."""
        if self._closed:
            return False
        self.clear_error()
        try:
            await self._call("delete", self._source.delete(task_id))
        except NotFoundError as e:
            self._remove_local([task_id])
            self._set_error(e)
            return False
        except DataSourceError as e:
            self._set_error(e)
            return False
        self._remove_local([task_id])
        return True

    # -----------------------------------------------------------------------
    # Bulk mutations (fan-out / fan-in)
    # -----------------------------------------------------------------------

    async def bulk_update_status(self, status: Any) -> Optional[BulkOperationError]:
        """
        Set status on every selected task concurrently.
        Returns the partial-failure summary (also stored in error), or None.
        """
        new_status = coerce_enum(TaskStatus, status, "status")

        def on_success(task_id: str, record: TaskRecord) -> None:
            self._merge([record])

        return await self._run_bulk(
            "bulk_update_status",
            lambda task_id: self._source.mutate_status(task_id, new_status),
            on_success,
            not_found_is_success=False,
        )

    async def bulk_delete(self) -> Optional[BulkOperationError]:
        """Delete every selected task concurrently."""
        return await self._run_bulk(
            "bulk_delete",
            self._source.delete,
            lambda task_id, _: self._remove_local([task_id]),
            not_found_is_success=True,
        )

    async def _run_bulk(
        self,
        operation: str,
        call: Callable[[str], Awaitable[Any]],
        on_success: Callable[[str, Any], None],
        not_found_is_success: bool,
    ) -> Optional[BulkOperationError]:
        st = self.state
        if self._closed or not st.selected_ids:
            return None
        # Stable order: working-set order
        ids = [t.id for t in st.all_tasks if t.id in st.selected_ids]
        start_time = time.monotonic()

        st.is_loading = True
        self._notify(Change.LOADING)
        self.clear_error()

        results = await asyncio.gather(
            *(self._call(operation, call(task_id)) for task_id in ids),
            return_exceptions=True,
        )
        invalid = next((r for r in results if isinstance(r, ValidationError)), None)

        succeeded: List[str] = []
        failures: Dict[str, Exception] = {}
        gone: List[str] = []
        for task_id, result in zip(ids, results):
            if isinstance(result, NotFoundError):
                gone.append(task_id)
                if not_found_is_success:
                    succeeded.append(task_id)
                else:
                    failures[task_id] = result
            elif isinstance(result, BaseException):
                failures[task_id] = (
                    result if isinstance(result, Exception)
                    else DataSourceError(f"{operation} cancelled", operation=operation, task_id=task_id)
                )
            else:
                succeeded.append(task_id)
                on_success(task_id, result)

        self._remove_local(gone)
        self._notify(Change.TASKS)

        st.is_loading = False
        self._notify(Change.LOADING)
        self.clear_selection()

        duration_ms = (time.monotonic() - start_time) * 1000
        log(log_bulk_operation(operation, len(succeeded), len(failures), duration_ms))
        logger.info(
            f"{operation}: {len(succeeded)} succeeded, {len(failures)} failed "
            f"({duration_ms:.0f}ms)"
        )

        await self.load(reset=True)

        if invalid is not None:
            raise invalid
        if not failures:
            return None
        summary = BulkOperationError.from_results(operation, succeeded, failures)
        self._set_error(summary)
        return summary

    # -----------------------------------------------------------------------
    # Live updates
    # -----------------------------------------------------------------------

    @property
    def live_updates_active(self) -> bool:
        return self._live_task is not None and not self._live_task.done()

    def start_live_updates(self) -> bool:
        """
        Follow the data source's snapshot stream, if it has one.
        Returns False when the source is pull-only.
        """
        if self._closed:
            return False
        if self.live_updates_active:
            return True
        stream = self._source.subscribe(self.state.criteria().axes_only())
        if stream is None:
            logger.info("Data source has no live stream; staying in pull-only mode")
            return False
        self._live_task = asyncio.get_running_loop().create_task(self._consume(stream))
        return True

    async def stop_live_updates(self) -> None:
        task, self._live_task = self._live_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _restart_live_updates(self) -> None:
        if self.live_updates_active:
            await self.stop_live_updates()
            self.start_live_updates()

    async def _consume(self, stream: AsyncIterator[List[TaskRecord]]) -> None:
        try:
            async for snapshot in stream:
                self._apply_snapshot(snapshot)
        except DataSourceError as e:
            self._set_error(e)
        except Exception as e:
            logger.exception("Live update stream failed")
            wrapped = DataSourceError(f"subscribe failed: {e}", operation="subscribe")
            wrapped.__cause__ = e
            self._set_error(wrapped)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def _apply_snapshot(self, snapshot: Iterable[TaskRecord]) -> None:
        st = self.state
        st.all_tasks = []
        self._merge(snapshot)
        st.pagination_cursor = None
        st.has_more = False
        self._prune_selection()
        self._notify(Change.TASKS)

    # -----------------------------------------------------------------------
    # Teardown
    # -----------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel the debounce timer and live stream; ignore later commands."""
        if self._closed:
            return
        self._closed = True
        self._debouncer.cancel()
        await self.stop_live_updates()
        self._clear_listeners()
        logger.debug("Task list view-model closed")

    async def __aenter__(self) -> "TaskListViewModel":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    async def _call(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        """Await a data source call, normalizing unexpected failures to DataSourceError."""
        try:
            return await awaitable
        except (DataSourceError, ValidationError):
            raise
        except Exception as e:
            logger.exception(f"Unexpected failure in {operation}")
            raise DataSourceError(f"{operation} failed: {e}", operation=operation) from e

    def _merge(self, records: Iterable[TaskRecord]) -> None:
        """Upsert by id: existing entries are replaced in place, new ones appended."""
        tasks = self.state.all_tasks
        index = {t.id: i for i, t in enumerate(tasks)}
        for record in records:
            position = index.get(record.id)
            if position is None:
                index[record.id] = len(tasks)
                tasks.append(record)
            else:
                tasks[position] = record

    def _remove_local(self, task_ids: Iterable[str]) -> None:
        doomed = set(task_ids)
        if not doomed:
            return
        st = self.state
        st.all_tasks = [t for t in st.all_tasks if t.id not in doomed]
        self._notify(Change.TASKS)
        if st.selected_ids & doomed:
            st.selected_ids -= doomed
            self._notify(Change.SELECTION)

    def _prune_selection(self) -> None:
        st = self.state
        stale = st.selected_ids - st.task_ids()
        if stale:
            st.selected_ids -= stale
            self._notify(Change.SELECTION)

    def _set_error(self, error: TaskdeckError) -> None:
        self.state.error = error
        logger.warning(f"{error.error_type}: {error.message}")
        self._notify(Change.ERROR)
