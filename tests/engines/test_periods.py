"""Tests for period presets."""

from datetime import date

import pytest

from dairy_engines.periods import PeriodPreset, month_bounds, resolve_period
from dairy_kernel.domain.values import DateRange
from dairy_kernel.exceptions import InvalidDateRangeError, InvalidInputError

TODAY = date(2024, 2, 14)


class TestResolvePeriod:

    def test_daily(self):
        assert resolve_period("daily", TODAY) == DateRange(TODAY, TODAY)

    def test_weekly_is_seven_days_ending_today(self):
        period = resolve_period(PeriodPreset.WEEKLY, TODAY)
        assert period == DateRange(date(2024, 2, 8), TODAY)
        assert period.days == 7

    def test_monthly_leap_february(self):
        assert resolve_period("monthly", TODAY) == DateRange(date(2024, 2, 1), date(2024, 2, 29))

    def test_custom(self):
        period = resolve_period("custom", TODAY, date(2024, 1, 1), date(2024, 1, 15))
        assert period == DateRange(date(2024, 1, 1), date(2024, 1, 15))

    def test_custom_missing_bounds_default_to_today(self):
        assert resolve_period("custom", TODAY) == DateRange(TODAY, TODAY)
        assert resolve_period("custom", TODAY, custom_start=date(2024, 2, 1)).end == TODAY

    def test_custom_out_of_order(self):
        with pytest.raises(InvalidDateRangeError):
            resolve_period("custom", TODAY, date(2024, 2, 10), date(2024, 2, 1))

    def test_unknown_preset(self):
        with pytest.raises(InvalidInputError) as exc_info:
            resolve_period("yearly", TODAY)
        assert exc_info.value.field == "preset"


class TestMonthBounds:

    @pytest.mark.parametrize(
        "day, end",
        [
            (date(2023, 2, 10), date(2023, 2, 28)),
            (date(2024, 4, 30), date(2024, 4, 30)),
            (date(2024, 12, 1), date(2024, 12, 31)),
        ],
    )
    def test_last_day(self, day, end):
        period = month_bounds(day)
        assert period.start == day.replace(day=1)
        assert period.end == end
