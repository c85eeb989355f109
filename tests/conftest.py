"""
Taskdeck Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, List

import pytest

from taskdeck.datasource.memory import InMemoryTaskDataSource
from taskdeck.records.enums import TaskCategory, TaskPriority, TaskStatus
from taskdeck.records.task import TaskRecord

# Wednesday, 12:00 local time
NOW = datetime(2026, 3, 11, 12, 0, 0)


def fixed_clock() -> datetime:
    return NOW


def make_task(task_id: str, title: str = "", **overrides: Any) -> TaskRecord:
    """Build a TaskRecord with sensible defaults relative to NOW."""
    data = {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "created_at": NOW - timedelta(days=10),
    }
    data.update(overrides)
    return TaskRecord(**data)


def sample_tasks() -> List[TaskRecord]:
    """
    Five tasks, most recently updated first:
        1 Write report    todo         high    personal  due in 2 days
        2 Review PR       in_progress  urgent  team      overdue by a day
        3 Plan sprint     review       medium  project   due today 15:00
        4 Buy milk        completed    low     personal  no due date
        5 Fix login bug   todo         urgent  project   due in 5 days
    """
    return [
        make_task(
            "1", "Write report",
            status=TaskStatus.TODO, priority=TaskPriority.HIGH,
            category=TaskCategory.PERSONAL,
            due_date=NOW + timedelta(days=2), updated_at=NOW - timedelta(hours=1),
        ),
        make_task(
            "2", "Review PR",
            status=TaskStatus.IN_PROGRESS, priority=TaskPriority.URGENT,
            category=TaskCategory.TEAM_COLLABORATION,
            due_date=NOW - timedelta(days=1), updated_at=NOW - timedelta(hours=2),
        ),
        make_task(
            "3", "Plan sprint",
            status=TaskStatus.REVIEW, priority=TaskPriority.MEDIUM,
            category=TaskCategory.PROJECT_MANAGEMENT,
            due_date=NOW + timedelta(hours=3), updated_at=NOW - timedelta(hours=3),
        ),
        make_task(
            "4", "Buy milk",
            status=TaskStatus.COMPLETED, priority=TaskPriority.LOW,
            category=TaskCategory.PERSONAL,
            updated_at=NOW - timedelta(hours=4),
        ),
        make_task(
            "5", "Fix login bug",
            description="Users cannot log in",
            status=TaskStatus.TODO, priority=TaskPriority.URGENT,
            category=TaskCategory.PROJECT_MANAGEMENT,
            due_date=NOW + timedelta(days=5), updated_at=NOW - timedelta(hours=5),
        ),
    ]


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset the config singleton and the structured log queue between tests."""
    import taskdeck.engine.config as cfg_mod
    from taskdeck.engine.logging import shutdown_logging

    cfg_mod._config = None
    yield
    cfg_mod._config = None
    shutdown_logging()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tasks() -> List[TaskRecord]:
    return sample_tasks()


@pytest.fixture
def source(tasks) -> InMemoryTaskDataSource:
    return InMemoryTaskDataSource(tasks, clock=fixed_clock)
