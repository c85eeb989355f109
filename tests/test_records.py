"""Unit tests for taskdeck.records — TaskRecord model and enumerations."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from taskdeck.engine.errors import ValidationError
from taskdeck.records import (
    QuickFilter,
    SortField,
    TaskCategory,
    TaskPriority,
    TaskRecord,
    TaskStatus,
    coerce_enum,
)
from tests.conftest import NOW, make_task


class TestTaskRecord:

    def test_defaults(self):
        task = TaskRecord(id="t1", title="Something", created_at=NOW)
        assert task.status is TaskStatus.TODO
        assert task.priority is TaskPriority.MEDIUM
        assert task.category is TaskCategory.PERSONAL
        assert task.description == ""
        assert task.due_date is None
        assert task.tags == []
        assert task.updated_at == NOW
        assert task.last_modified == NOW

    def test_blank_title_rejected(self):
        with pytest.raises(PydanticValidationError):
            TaskRecord(id="t1", title="   ")

    def test_title_length_limit(self):
        TaskRecord(id="t1", title="x" * 200)
        with pytest.raises(PydanticValidationError):
            TaskRecord(id="t1", title="x" * 201)

    def test_empty_id_rejected(self):
        with pytest.raises(PydanticValidationError):
            TaskRecord(id="", title="Something")

    def test_updated_before_created_rejected(self):
        with pytest.raises(PydanticValidationError, match="updated_at"):
            TaskRecord(id="t1", title="x", created_at=NOW, updated_at=NOW - timedelta(seconds=1))

    def test_progress_bounds(self):
        assert make_task("1", progress=0.5).progress == 0.5
        with pytest.raises(PydanticValidationError):
            make_task("1", progress=1.5)

    def test_none_description_becomes_empty(self):
        assert make_task("1", description=None).description == ""

    def test_frozen(self):
        task = make_task("1")
        with pytest.raises(PydanticValidationError):
            task.title = "changed"

    def test_camel_case_payload(self):
        task = TaskRecord.from_dict({
            "id": "t9",
            "title": "From backend",
            "status": "in_progress",
            "dueDate": "2026-03-12T10:00:00",
            "createdAt": "2026-03-01T09:00:00",
            "assignedTo": "dana",
        })
        assert task.status is TaskStatus.IN_PROGRESS
        assert task.due_date == datetime(2026, 3, 12, 10, 0)
        assert task.assigned_to == "dana"

    def test_to_dict_uses_backend_keys(self):
        d = make_task("1", due_date=NOW).to_dict()
        assert d["id"] == "1"
        assert d["status"] == "todo"
        assert d["dueDate"] == NOW.isoformat()
        assert "createdAt" in d
        assert "due_date" not in d

    def test_has_tag_is_case_insensitive(self):
        task = make_task("1", tags=["Backend", "urgent-fix"])
        assert task.has_tag("backend")
        assert not task.has_tag("frontend")


class TestTaskStatus:

    def test_display_names(self):
        assert TaskStatus.TODO.display_name == "To Do"
        assert TaskStatus.REVIEW.display_name == "Under Review"

    def test_order_puts_cancelled_last(self):
        ordered = sorted(TaskStatus, key=lambda s: s.order)
        assert ordered == [
            TaskStatus.TODO,
            TaskStatus.IN_PROGRESS,
            TaskStatus.REVIEW,
            TaskStatus.COMPLETED,
            TaskStatus.CANCELLED,
        ]

    def test_closed_statuses(self):
        assert TaskStatus.COMPLETED.is_closed
        assert TaskStatus.CANCELLED.is_closed
        assert not TaskStatus.REVIEW.is_closed

    def test_transitions(self):
        assert TaskStatus.TODO.can_transition_to(TaskStatus.IN_PROGRESS)
        assert not TaskStatus.TODO.can_transition_to(TaskStatus.COMPLETED)
        assert TaskStatus.COMPLETED.next_statuses == (TaskStatus.IN_PROGRESS,)


class TestTaskPriority:

    def test_levels_are_strictly_ordered(self):
        levels = [p.level for p in TaskPriority]
        assert levels == [1, 2, 3, 4]

    def test_is_higher_than(self):
        assert TaskPriority.URGENT.is_higher_than(TaskPriority.HIGH)
        assert not TaskPriority.LOW.is_higher_than(TaskPriority.LOW)

    def test_display_name(self):
        assert TaskPriority.HIGH.display_name == "High"


class TestTaskCategory:

    def test_collaboration(self):
        assert not TaskCategory.PERSONAL.allows_collaboration
        assert TaskCategory.TEAM_COLLABORATION.allows_collaboration


class TestCoerceEnum:

    def test_accepts_member_and_value(self):
        assert coerce_enum(SortField, SortField.TITLE, "sort_field") is SortField.TITLE
        assert coerce_enum(QuickFilter, "overdue", "quick_filter") is QuickFilter.OVERDUE

    def test_rejects_unknown_value(self):
        with pytest.raises(ValidationError) as exc_info:
            coerce_enum(TaskStatus, "done", "status")
        assert exc_info.value.field == "status"
        assert exc_info.value.value == "done"
        assert "todo" in exc_info.value.message

    def test_rejects_unhashable(self):
        with pytest.raises(ValidationError):
            coerce_enum(TaskStatus, ["todo"], "status")
