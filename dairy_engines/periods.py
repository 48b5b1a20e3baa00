"""
Period presets.

Pure functions. ``today`` is always passed in; nothing here reads a clock.

Presets:
    daily    today..today
    weekly   the seven days ending today (today - 6 .. today)
    monthly  first..last day of today's month
    custom   the given bounds; a missing bound defaults to today
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from enum import Enum

from dairy_kernel.domain.values import DateRange, as_calendar_date
from dairy_kernel.exceptions import InvalidInputError


class PeriodPreset(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


def month_bounds(day: date) -> DateRange:
    last = calendar.monthrange(day.year, day.month)[1]
    return DateRange(day.replace(day=1), day.replace(day=last))


def resolve_period(
    preset: PeriodPreset | str,
    today: date,
    custom_start: date | None = None,
    custom_end: date | None = None,
) -> DateRange:
    """
    Resolve a preset name to an inclusive DateRange.

    Raises:
        InvalidInputError: unknown preset
        InvalidDateRangeError: custom bounds out of order
    """
    try:
        preset = PeriodPreset(preset)
    except ValueError:
        raise InvalidInputError(
            "preset", preset, f"must be one of {', '.join(p.value for p in PeriodPreset)}"
        )
    today = as_calendar_date(today, "today")

    if preset is PeriodPreset.DAILY:
        return DateRange(today, today)
    if preset is PeriodPreset.WEEKLY:
        return DateRange(today - timedelta(days=6), today)
    if preset is PeriodPreset.MONTHLY:
        return month_bounds(today)
    return DateRange(custom_start or today, custom_end or today)
