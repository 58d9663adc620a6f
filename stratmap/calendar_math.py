"""
Calendar arithmetic for the stratmap cascade engine.

Pure functions converting between ISO weeks, month column indices and
YYYYMMDD date keys. Nothing here reads the clock.
"""

import calendar
from datetime import MAXYEAR, MINYEAR, date, timedelta
from typing import Optional, Tuple

from stratmap.exceptions import CalendarComputationError


def _check_year(year: int) -> None:
    if not MINYEAR < year < MAXYEAR:
        raise CalendarComputationError(
            f"Year {year} is out of range. Years must be between {MINYEAR + 1} and {MAXYEAR - 1}."
        )


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise CalendarComputationError(f"Month {month} is out of range. Months must be between 1 and 12.")


def check_week_number(week_number: int) -> int:
    """
    Validate an ISO week number on its own, without a year.

    Raises:
        CalendarComputationError: If the week is outside 1-53.
    """
    if not 1 <= week_number <= 53:
        raise CalendarComputationError(
            f"Week {week_number} is out of range. Weeks must be between 1 and 53."
        )
    return week_number


def weeks_in_iso_year(iso_year: int) -> int:
    """
    Return the number of ISO weeks (52 or 53) in an ISO week-numbering year.

    Dec 28 always falls in the last ISO week of its year.
    """
    _check_year(iso_year)
    return date(iso_year, 12, 28).isocalendar()[1]


def last_iso_week_of_month(year: int, month: int) -> int:
    """
    Get the ISO week number of the last calendar day of a month.

    Args:
        year: Calendar year.
        month: Month number (1-12).

    Returns:
        ISO week number (1-53). For December this is often week 1, because
        Dec 29-31 can already belong to the next ISO year.

    Raises:
        CalendarComputationError: If year or month is out of range.

    Examples:
        >>> last_iso_week_of_month(2025, 11)  # Sun Nov 30, 2025
        48
        >>> last_iso_week_of_month(2026, 12)  # Thu Dec 31, 2026
        53
    """
    _check_year(year)
    _check_month(month)
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    return last_day.isocalendar()[1]


def sunday_of_iso_week(iso_year: int, week_number: int) -> date:
    """
    Get the Sunday that closes an ISO week.

    The Monday of week 1 is Jan 4 minus (ISO weekday of Jan 4 - 1) days;
    the target Monday is (week_number - 1) weeks later and Sunday six days
    after that.

    Args:
        iso_year: ISO week-numbering year.
        week_number: ISO week number.

    Returns:
        Date of the Sunday.

    Raises:
        CalendarComputationError: If the week doesn't exist in iso_year.
    """
    _check_year(iso_year)
    max_week = weeks_in_iso_year(iso_year)
    if not 1 <= week_number <= max_week:
        raise CalendarComputationError(
            f"Week {week_number} is out of range for ISO year {iso_year}. "
            f"Weeks must be between 1 and {max_week}."
        )

    jan_4th = date(iso_year, 1, 4)
    monday_of_week_1 = jan_4th - timedelta(days=jan_4th.isoweekday() - 1)
    monday = monday_of_week_1 + timedelta(weeks=week_number - 1)
    return monday + timedelta(days=6)


def sunday_for_week_in_context(year: int, week_number: int, month: Optional[int] = None) -> date:
    """
    Get the Sunday of a week number read in the context of a calendar year.

    Week 1 seen from December (either because the computed Sunday lands in
    December or because the context month is December) belongs to the next
    ISO year, so the Sunday is recomputed with year + 1.

    Args:
        year: Calendar year the week number was derived from.
        week_number: ISO week number.
        month: Month the week number was derived from, when known.

    Returns:
        Date of the Sunday.
    """
    sunday = sunday_of_iso_week(year, week_number)
    if week_number == 1 and (sunday.month == 12 or month == 12):
        sunday = sunday_of_iso_week(year + 1, week_number)
    return sunday


def date_to_date_key(value: date) -> int:
    """
    Format a date as an integer YYYYMMDD key.

    Examples:
        >>> date_to_date_key(date(2026, 1, 4))
        20260104
    """
    return value.year * 10000 + value.month * 100 + value.day


def date_key_to_date(date_key: int) -> date:
    """
    Parse an integer YYYYMMDD key back into a date.

    Raises:
        CalendarComputationError: If the key is not a real calendar date.
    """
    year, rest = divmod(date_key, 10000)
    month, day = divmod(rest, 100)
    try:
        return date(year, month, day)
    except ValueError as e:
        raise CalendarComputationError(f"Invalid date key {date_key}: {e}")


def month_col_index(year: int, month: int) -> int:
    """Encode a calendar month as year * 12 + (month - 1)."""
    _check_year(year)
    _check_month(month)
    return year * 12 + (month - 1)


def december_col_index(year: int) -> int:
    """Month column index of December in the given year."""
    return month_col_index(year, 12)


def decode_month_col_index(index: int) -> Tuple[int, int]:
    """
    Decode a month column index into (year, month).

    Raises:
        CalendarComputationError: If the decoded year is out of range.
    """
    year, month_offset = divmod(index, 12)
    _check_year(year)
    return year, month_offset + 1
