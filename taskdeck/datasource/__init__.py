"""Task data sources — the contract plus in-memory and HTTP implementations."""

from taskdeck.datasource.base import SortSpec, TaskDataSource, TaskPage  # noqa: F401
from taskdeck.datasource.http import HttpTaskDataSource  # noqa: F401
from taskdeck.datasource.memory import InMemoryTaskDataSource  # noqa: F401

__all__ = [
    "TaskDataSource",
    "TaskPage",
    "SortSpec",
    "InMemoryTaskDataSource",
    "HttpTaskDataSource",
]
