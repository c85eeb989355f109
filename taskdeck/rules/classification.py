"""
Due-date classification and urgency scoring.

Pure functions of a TaskRecord and "now". Naive datetimes are treated as
local time; when one side is timezone-aware both are converted to the
local zone before comparing, so calendar-day checks use local day
boundaries.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from taskdeck.records.enums import TaskStatus, UrgencyLevel
from taskdeck.records.task import TaskRecord

SECONDS_PER_DAY = 86400

# Urgency bonuses on top of the priority level (1..4)
OVERDUE_BONUS = 10
DUE_TODAY_BONUS = 5
DUE_SOON_BONUS = 3
DUE_THIS_WEEK_BONUS = 1
DUE_SOON_DAYS = 3
DUE_THIS_WEEK_DAYS = 7

# Label thresholds, checked highest first
URGENCY_THRESHOLDS = (
    (10, UrgencyLevel.CRITICAL),
    (7, UrgencyLevel.HIGH),
    (4, UrgencyLevel.MEDIUM),
)

# Completion estimate when no explicit progress is recorded
_STATUS_COMPLETION = {
    TaskStatus.TODO: 0.0,
    TaskStatus.IN_PROGRESS: 0.5,
    TaskStatus.REVIEW: 0.8,
    TaskStatus.COMPLETED: 1.0,
    TaskStatus.CANCELLED: 0.0,
}


def _align(due: datetime, now: datetime) -> Tuple[datetime, datetime]:
    if (due.tzinfo is None) == (now.tzinfo is None):
        return due, now
    return due.astimezone(), now.astimezone()


def _local_date(value: datetime) -> date:
    if value.tzinfo is not None:
        return value.astimezone().date()
    return value.date()


def is_overdue(task: TaskRecord, now: datetime) -> bool:
    if task.due_date is None or task.status.is_closed:
        return False
    due, now = _align(task.due_date, now)
    return due < now


def is_due_today(task: TaskRecord, now: datetime) -> bool:
    if task.due_date is None:
        return False
    return _local_date(task.due_date) == _local_date(now)


def is_due_this_week(task: TaskRecord, now: datetime) -> bool:
    """Due after the end of today and before now + 7 days."""
    if task.due_date is None:
        return False
    due, now = _align(task.due_date, now)
    if now.tzinfo is not None:
        now = now.astimezone()
    end_of_today = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return end_of_today < due < now + timedelta(days=DUE_THIS_WEEK_DAYS)


def days_until_due(task: TaskRecord, now: datetime) -> Optional[int]:
    """Whole days until the due date, truncated toward zero. None without a due date."""
    if task.due_date is None:
        return None
    due, now = _align(task.due_date, now)
    return int((due - now).total_seconds() / SECONDS_PER_DAY)


def urgency_score(task: TaskRecord, now: datetime) -> int:
    """
    Derived urgency used for display and the "urgency" sort.

    score = priority level (1..4)
      + 10 if overdue
      else + 5 if due today or within 24 hours
      else + 3 if due within 3 days
      else + 1 if due within 7 days
    """
    score = task.priority.level
    if task.due_date is None:
        return score

    if is_overdue(task, now):
        return score + OVERDUE_BONUS
    if is_due_today(task, now):
        return score + DUE_TODAY_BONUS

    due, aligned_now = _align(task.due_date, now)
    if due < aligned_now:
        # Closed and past due
        return score
    days = days_until_due(task, now)
    if days == 0:
        score += DUE_TODAY_BONUS
    elif days <= DUE_SOON_DAYS:
        score += DUE_SOON_BONUS
    elif days <= DUE_THIS_WEEK_DAYS:
        score += DUE_THIS_WEEK_BONUS
    return score


def urgency_label(score: int) -> UrgencyLevel:
    for threshold, level in URGENCY_THRESHOLDS:
        if score >= threshold:
            return level
    return UrgencyLevel.NORMAL


def urgency_level(task: TaskRecord, now: datetime) -> UrgencyLevel:
    return urgency_label(urgency_score(task, now))


def completion_percentage(task: TaskRecord) -> float:
    if task.progress is not None:
        return task.progress
    return _STATUS_COMPLETION[task.status]
