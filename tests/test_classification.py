"""Unit tests for taskdeck.rules.classification — due-date checks and urgency."""

from datetime import datetime, timedelta, timezone

from taskdeck.records.enums import TaskPriority, TaskStatus, UrgencyLevel
from taskdeck.rules.classification import (
    completion_percentage,
    days_until_due,
    is_due_this_week,
    is_due_today,
    is_overdue,
    urgency_label,
    urgency_level,
    urgency_score,
)
from tests.conftest import NOW, make_task


class TestIsOverdue:

    def test_past_due_open_task(self):
        assert is_overdue(make_task("1", due_date=NOW - timedelta(minutes=1)), NOW)

    def test_future_due(self):
        assert not is_overdue(make_task("1", due_date=NOW + timedelta(minutes=1)), NOW)

    def test_closed_task_never_overdue(self):
        due = NOW - timedelta(days=3)
        assert not is_overdue(make_task("1", due_date=due, status=TaskStatus.COMPLETED), NOW)
        assert not is_overdue(make_task("1", due_date=due, status=TaskStatus.CANCELLED), NOW)

    def test_no_due_date(self):
        assert not is_overdue(make_task("1"), NOW)

    def test_aware_due_date_against_naive_now(self):
        task = make_task("1", due_date=datetime(2020, 1, 1, tzinfo=timezone.utc))
        assert is_overdue(task, NOW)


class TestDueWindows:

    def test_due_later_today(self):
        assert is_due_today(make_task("1", due_date=NOW + timedelta(hours=3)), NOW)

    def test_due_earlier_today_is_also_overdue(self):
        task = make_task("1", due_date=NOW - timedelta(hours=11))
        assert is_due_today(task, NOW)
        assert is_overdue(task, NOW)

    def test_due_tomorrow_is_not_today(self):
        assert not is_due_today(make_task("1", due_date=NOW + timedelta(days=1)), NOW)

    def test_due_this_week_excludes_today(self):
        assert not is_due_this_week(make_task("1", due_date=NOW + timedelta(hours=3)), NOW)
        assert is_due_this_week(make_task("1", due_date=NOW + timedelta(days=2)), NOW)
        assert not is_due_this_week(make_task("1", due_date=NOW + timedelta(days=8)), NOW)

    def test_no_due_date(self):
        task = make_task("1")
        assert not is_due_today(task, NOW)
        assert not is_due_this_week(task, NOW)


class TestDaysUntilDue:

    def test_whole_days(self):
        assert days_until_due(make_task("1", due_date=NOW + timedelta(days=2)), NOW) == 2

    def test_truncates_toward_zero(self):
        assert days_until_due(make_task("1", due_date=NOW + timedelta(hours=36)), NOW) == 1
        assert days_until_due(make_task("1", due_date=NOW - timedelta(hours=12)), NOW) == 0
        assert days_until_due(make_task("1", due_date=NOW - timedelta(days=1)), NOW) == -1

    def test_no_due_date(self):
        assert days_until_due(make_task("1"), NOW) is None


class TestUrgency:

    def test_overdue_adds_ten(self):
        task = make_task("1", priority=TaskPriority.HIGH, due_date=NOW - timedelta(days=1))
        assert urgency_score(task, NOW) == 13
        assert urgency_level(task, NOW) is UrgencyLevel.CRITICAL

    def test_due_today_adds_five(self):
        task = make_task("1", priority=TaskPriority.URGENT, due_date=NOW + timedelta(hours=3))
        assert urgency_score(task, NOW) == 9
        assert urgency_level(task, NOW) is UrgencyLevel.HIGH

    def test_due_within_three_days_adds_three(self):
        task = make_task("1", priority=TaskPriority.MEDIUM, due_date=NOW + timedelta(days=2))
        assert urgency_score(task, NOW) == 5
        assert urgency_level(task, NOW) is UrgencyLevel.MEDIUM

    def test_due_within_week_adds_one(self):
        task = make_task("1", priority=TaskPriority.LOW, due_date=NOW + timedelta(days=5))
        assert urgency_score(task, NOW) == 2

    def test_far_future_and_undated_get_priority_only(self):
        assert urgency_score(make_task("1", priority=TaskPriority.LOW, due_date=NOW + timedelta(days=30)), NOW) == 1
        assert urgency_score(make_task("1", priority=TaskPriority.URGENT), NOW) == 4

    def test_completed_past_due_gets_no_bonus(self):
        task = make_task(
            "1", priority=TaskPriority.HIGH, status=TaskStatus.COMPLETED,
            due_date=NOW - timedelta(days=1),
        )
        assert urgency_score(task, NOW) == 3

    def test_due_within_24_hours_but_tomorrow_adds_five(self):
        late = datetime(2026, 3, 11, 23, 0)
        soon = make_task("1", priority=TaskPriority.LOW, due_date=late + timedelta(hours=12))
        later = make_task("2", priority=TaskPriority.LOW, due_date=late + timedelta(hours=36))
        assert not is_due_today(soon, late)
        assert urgency_score(soon, late) == 6
        assert urgency_score(later, late) == 4
        assert urgency_score(soon, late) >= urgency_score(later, late)

    def test_completed_hours_past_due_gets_no_bonus(self):
        late = datetime(2026, 3, 12, 1, 0)
        task = make_task(
            "1", priority=TaskPriority.LOW, status=TaskStatus.COMPLETED,
            due_date=late - timedelta(hours=2),
        )
        assert urgency_score(task, late) == 1

    def test_label_thresholds(self):
        assert urgency_label(10) is UrgencyLevel.CRITICAL
        assert urgency_label(9) is UrgencyLevel.HIGH
        assert urgency_label(7) is UrgencyLevel.HIGH
        assert urgency_label(6) is UrgencyLevel.MEDIUM
        assert urgency_label(4) is UrgencyLevel.MEDIUM
        assert urgency_label(3) is UrgencyLevel.NORMAL


class TestCompletionPercentage:

    def test_explicit_progress_wins(self):
        assert completion_percentage(make_task("1", progress=0.3, status=TaskStatus.REVIEW)) == 0.3

    def test_estimated_from_status(self):
        assert completion_percentage(make_task("1", status=TaskStatus.TODO)) == 0.0
        assert completion_percentage(make_task("1", status=TaskStatus.IN_PROGRESS)) == 0.5
        assert completion_percentage(make_task("1", status=TaskStatus.REVIEW)) == 0.8
        assert completion_percentage(make_task("1", status=TaskStatus.COMPLETED)) == 1.0
