"""View-model state — change notification, debouncing, the task list view-model."""

from taskdeck.state.debounce import Debouncer  # noqa: F401
from taskdeck.state.observable import Change, Observable  # noqa: F401
from taskdeck.state.task_list import TaskListState, TaskListViewModel  # noqa: F401

__all__ = ["Change", "Observable", "Debouncer", "TaskListState", "TaskListViewModel"]
