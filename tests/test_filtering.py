"""Unit tests for taskdeck.rules.filtering — the local filter pipeline."""

import pytest

from taskdeck.records.enums import QuickFilter, TaskCategory, TaskPriority, TaskStatus
from taskdeck.rules.filtering import (
    FilterCriteria,
    apply_filters,
    filter_summary,
    matches_text,
)
from tests.conftest import NOW, make_task


def ids(tasks):
    return [t.id for t in tasks]


class TestFilterCriteria:

    def test_default_is_inactive(self):
        criteria = FilterCriteria()
        assert not criteria.is_active
        assert not criteria.has_axis_filters

    def test_any_axis_makes_active(self):
        assert FilterCriteria(category=TaskCategory.PERSONAL).is_active
        assert FilterCriteria(search_query="x").is_active
        assert FilterCriteria(quick_filter=QuickFilter.OVERDUE).is_active

    def test_axes_only_strips_local_filters(self):
        criteria = FilterCriteria(
            search_query="bug",
            status=TaskStatus.TODO,
            quick_filter=QuickFilter.PRIORITY,
            quick_priority=TaskPriority.HIGH,
        )
        axes = criteria.axes_only()
        assert axes.search_query == ""
        assert axes.quick_filter is QuickFilter.ALL
        assert axes.quick_priority is None
        assert axes.status is TaskStatus.TODO

    def test_query_params(self):
        criteria = FilterCriteria(status=TaskStatus.REVIEW, category=TaskCategory.PROJECT_MANAGEMENT)
        assert criteria.to_query_params() == {"status": "review", "category": "project_management"}


class TestTextMatch:

    def test_title_case_insensitive(self):
        assert matches_text(make_task("1", "Write REPORT"), "report")

    def test_description(self):
        assert matches_text(make_task("1", "x", description="Users cannot log in"), "LOG IN")

    def test_empty_query_matches(self):
        assert matches_text(make_task("1"), "")

    def test_no_match(self):
        assert not matches_text(make_task("1", "Write report"), "milk")


class TestApplyFilters:

    def test_no_filters_keeps_everything_in_order(self, tasks):
        assert ids(apply_filters(tasks, FilterCriteria(), NOW)) == ["1", "2", "3", "4", "5"]

    def test_status(self, tasks):
        assert ids(apply_filters(tasks, FilterCriteria(status=TaskStatus.TODO), NOW)) == ["1", "5"]

    def test_axes_combine_with_and(self, tasks):
        criteria = FilterCriteria(status=TaskStatus.TODO, priority=TaskPriority.URGENT)
        assert ids(apply_filters(tasks, criteria, NOW)) == ["5"]

    def test_text_and_category(self, tasks):
        criteria = FilterCriteria(search_query="r", category=TaskCategory.PERSONAL)
        assert ids(apply_filters(tasks, criteria, NOW)) == ["1"]

    @pytest.mark.parametrize("quick, expected", [
        (QuickFilter.PENDING, ["1", "5"]),
        (QuickFilter.IN_PROGRESS, ["2"]),
        (QuickFilter.COMPLETED, ["4"]),
        (QuickFilter.OVERDUE, ["2"]),
        (QuickFilter.DUE_TODAY, ["3"]),
        (QuickFilter.DUE_THIS_WEEK, ["1", "5"]),
    ])
    def test_quick_filters(self, tasks, quick, expected):
        assert ids(apply_filters(tasks, FilterCriteria(quick_filter=quick), NOW)) == expected

    def test_priority_quick_filter(self, tasks):
        criteria = FilterCriteria(quick_filter=QuickFilter.PRIORITY, quick_priority=TaskPriority.URGENT)
        assert ids(apply_filters(tasks, criteria, NOW)) == ["2", "5"]

    def test_quick_filter_ands_with_axes(self, tasks):
        criteria = FilterCriteria(quick_filter=QuickFilter.OVERDUE, status=TaskStatus.TODO)
        assert apply_filters(tasks, criteria, NOW) == []


class TestFilterSummary:

    def test_all_tasks(self):
        assert filter_summary(FilterCriteria()) == "All Tasks"

    def test_axes_and_search(self):
        criteria = FilterCriteria(
            search_query="bug",
            status=TaskStatus.IN_PROGRESS,
            priority=TaskPriority.HIGH,
            category=TaskCategory.TEAM_COLLABORATION,
        )
        assert filter_summary(criteria) == (
            'Status: In Progress, Priority: High, Category: Team Collaboration, Search: "bug"'
        )

    def test_quick_filters(self):
        assert filter_summary(FilterCriteria(quick_filter=QuickFilter.DUE_TODAY)) == "Quick: Due Today"
        criteria = FilterCriteria(quick_filter=QuickFilter.PRIORITY, quick_priority=TaskPriority.URGENT)
        assert filter_summary(criteria) == "Quick: Urgent priority"
