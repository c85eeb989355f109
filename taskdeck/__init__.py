"""
Taskdeck — Task list view-model engine.

A UI-agnostic view-model over a paginated task backend: filtering,
sorting, search with debounce, multi-select and concurrent bulk
mutations, with stale-response protection.

    from taskdeck import InMemoryTaskDataSource, TaskListViewModel

    vm = TaskListViewModel(InMemoryTaskDataSource(tasks))
    await vm.load(reset=True)
    vm.visible_tasks
"""

__version__ = "1.0.0"

from taskdeck.datasource import (  # noqa: E402,F401
    HttpTaskDataSource,
    InMemoryTaskDataSource,
    SortSpec,
    TaskDataSource,
    TaskPage,
)
from taskdeck.records import TaskCategory, TaskPriority, TaskRecord, TaskStatus  # noqa: E402,F401
from taskdeck.state import Change, TaskListViewModel  # noqa: E402,F401

__all__ = [
    "TaskListViewModel",
    "Change",
    "TaskDataSource",
    "TaskPage",
    "SortSpec",
    "InMemoryTaskDataSource",
    "HttpTaskDataSource",
    "TaskRecord",
    "TaskStatus",
    "TaskPriority",
    "TaskCategory",
]
