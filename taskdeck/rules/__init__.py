"""Pure task rules — classification, urgency, filtering, sorting, statistics."""

from taskdeck.rules.classification import (  # noqa: F401
    completion_percentage,
    days_until_due,
    is_due_this_week,
    is_due_today,
    is_overdue,
    urgency_label,
    urgency_level,
    urgency_score,
)
from taskdeck.rules.filtering import FilterCriteria, apply_filters, filter_summary  # noqa: F401
from taskdeck.rules.sorting import sort_tasks  # noqa: F401
from taskdeck.rules.stats import (  # noqa: F401
    TaskStats,
    count_by_category,
    count_by_priority,
    count_by_status,
    summarize,
)
