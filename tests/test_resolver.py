"""
Tests for the cascade rule resolver.
"""

import pytest

from stratmap.exceptions import CalendarComputationError
from stratmap.managers.resolver import TERMINAL, CascadeTarget, resolve_target
from stratmap.models import Timeframe


class TestYearlyRule:
    """yearly -> December of reference_year + year_index."""

    def test_current_year(self, mock_data):
        target = resolve_target(mock_data.create_yearly(year_index=0), 2025)
        assert target == CascadeTarget(Timeframe.MONTHLY, 2025 * 12 + 11)
        assert target.field == "month_col_index"

    def test_next_year(self, mock_data):
        target = resolve_target(mock_data.create_yearly(year_index=1), 2025)
        assert target == CascadeTarget(Timeframe.MONTHLY, 24323)

    def test_negative_offset(self, mock_data):
        target = resolve_target(mock_data.create_yearly(year_index=-1), 2025)
        assert target.value == 2024 * 12 + 11

    def test_missing_year_index_is_terminal(self, mock_data):
        assert resolve_target(mock_data.create_yearly(year_index=None), 2025) is TERMINAL

    def test_out_of_range_year(self, mock_data):
        with pytest.raises(CalendarComputationError):
            resolve_target(mock_data.create_yearly(year_index=8000), 2025)


class TestMonthlyRule:
    """monthly -> ISO week of the month's last day."""

    def test_november(self, mock_data):
        target = resolve_target(mock_data.create_monthly(month_col_index=24310), 2025)
        assert target == CascadeTarget(Timeframe.WEEKLY, 48)

    def test_june(self, mock_data):
        target = resolve_target(mock_data.create_monthly(month_col_index=24305), 2025)
        assert target == CascadeTarget(Timeframe.WEEKLY, 27)

    def test_december_lands_in_week_1(self, mock_data):
        target = resolve_target(mock_data.create_monthly(month_col_index=24311), 2025)
        assert target == CascadeTarget(Timeframe.WEEKLY, 1)

    def test_december_of_53_week_year(self, mock_data):
        target = resolve_target(mock_data.create_monthly(month_col_index=2026 * 12 + 11), 2025)
        assert target == CascadeTarget(Timeframe.WEEKLY, 53)

    def test_ignores_reference_year(self, mock_data):
        item = mock_data.create_monthly(month_col_index=24310)
        assert resolve_target(item, 2025) == resolve_target(item, 1990)

    def test_missing_month_is_terminal(self, mock_data):
        assert resolve_target(mock_data.create_monthly(month_col_index=None), 2025) is TERMINAL


class TestWeeklyRule:
    """weekly -> Sunday of the ISO week."""

    def test_root_uses_reference_year(self, mock_data):
        target = resolve_target(mock_data.create_weekly(week_number=10), 2025)
        assert target == CascadeTarget(Timeframe.DAILY, 20250309)
        assert target.field == "daily_date_key"

    def test_root_week_1(self, mock_data):
        target = resolve_target(mock_data.create_weekly(week_number=1), 2026)
        assert target == CascadeTarget(Timeframe.DAILY, 20260104)

    def test_week_1_under_december_parent_rolls_over(self, mock_data):
        """Week 1 derived from Dec 2025 is the week of Sun Jan 4, 2026."""
        item = mock_data.create_weekly(week_number=1)
        target = resolve_target(item, 2025, parent_month_col_index=2025 * 12 + 11)
        assert target == CascadeTarget(Timeframe.DAILY, 20260104)

    def test_week_1_under_december_2024_parent(self, mock_data):
        item = mock_data.create_weekly(week_number=1)
        target = resolve_target(item, 2025, parent_month_col_index=2024 * 12 + 11)
        assert target == CascadeTarget(Timeframe.DAILY, 20250105)

    def test_parent_month_overrides_reference_year(self, mock_data):
        item = mock_data.create_weekly(week_number=53)
        target = resolve_target(item, 2025, parent_month_col_index=2026 * 12 + 11)
        assert target == CascadeTarget(Timeframe.DAILY, 20270103)

    def test_week_53_in_52_week_year(self, mock_data):
        with pytest.raises(CalendarComputationError):
            resolve_target(mock_data.create_weekly(week_number=53), 2025)

    def test_missing_week_is_terminal(self, mock_data):
        assert resolve_target(mock_data.create_weekly(week_number=None), 2025) is TERMINAL


class TestTerminal:
    """Tests for chain termination."""

    def test_daily_is_terminal(self, mock_data):
        assert resolve_target(mock_data.create_daily(), 2025) is TERMINAL

    def test_terminal_is_falsy_singleton(self):
        assert not TERMINAL
        assert repr(TERMINAL) == "TERMINAL"
        assert type(TERMINAL)() is TERMINAL

    def test_targets_are_truthy(self, mock_data):
        assert resolve_target(mock_data.create_yearly(), 2025)


def test_resolver_does_not_touch_item(mock_data):
    item = mock_data.create_yearly(year_index=2)
    before = item.model_dump()

    first = resolve_target(item, 2025)
    second = resolve_target(item, 2025)

    assert first == second
    assert item.model_dump() == before
