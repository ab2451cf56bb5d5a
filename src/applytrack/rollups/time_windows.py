"""Calendar windows with DST awareness.

Weeks start on Monday everywhere in applytrack. Day, week and month
windows are defined on local calendar dates; their UTC boundaries are
computed here for callers that need to query timestamped rows.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from typing import Literal

import pytz

from ..core.time import format_utc_iso8601, local_date

__all__ = [
    "TimeWindow",
    "compute_boundaries_utc",
    "compute_day_boundaries_utc",
    "compute_month_boundaries_utc",
    "compute_week_boundaries_utc",
    "days_in_month",
    "get_week_start",
    "iter_days",
    "month_start",
    "shift_months",
    "trailing_days",
    "week_starting_monday",
]

TimeWindow = Literal["day", "week", "month"]

MONDAY = 0


def get_week_start(dt: date, start_on: int = MONDAY) -> date:
    """Get start of week for a date or datetime.

    Parameters
    ----------
    dt
        Date (or datetime) to get week start for
    start_on
        Day of week to start on (0=Monday, 6=Sunday)

    Returns
    -------
    date
        Start of week. A datetime input returns a datetime with the same
        time of day and tzinfo.
    """
    days_since_start = (dt.weekday() - start_on) % 7
    return dt - timedelta(days=days_since_start)


def week_starting_monday(now: date | datetime, timezone_str: str | None = None) -> date:
    """Calendar date of the Monday on or before ``now``.

    Counting days with Sunday as index 0, Sunday is 6 days after Monday and
    Mon..Sat are ``index - 1`` days after it. ``date.weekday()`` already
    numbers Monday as 0, so the offset is simply the weekday.

    Example
    -------
    >>> week_starting_monday(date(2024, 1, 7))  # Sunday
    datetime.date(2024, 1, 1)
    """
    today = local_date(now, timezone_str)
    return get_week_start(today, start_on=MONDAY)


def days_in_month(year: int, month: int) -> int:
    """Number of days (28-31) in a calendar month."""
    return calendar.monthrange(year, month)[1]


def month_start(day: date) -> date:
    """First day of the month containing ``day``."""
    return day.replace(day=1)


def shift_months(first_of_month: date, months: int) -> date:
    """First day of the month ``months`` away (negative goes back)."""
    index = first_of_month.year * 12 + (first_of_month.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in ``[start, end]``."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def trailing_days(today: date, window_days: int) -> list[date]:
    """The ``window_days`` calendar days ending at ``today``, oldest first."""
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")
    start = today - timedelta(days=window_days - 1)
    return list(iter_days(start, today))


def _local_midnight_utc(tz: pytz.BaseTzInfo, day: date) -> datetime:
    local_midnight = tz.localize(datetime(day.year, day.month, day.day, 0, 0, 0))
    return local_midnight.astimezone(pytz.UTC)


def compute_day_boundaries_utc(
    local_day: date,
    timezone_str: str = "UTC",
) -> tuple[str, str]:
    """Compute UTC boundaries for a local day.

    Handles DST transitions: a "day" in local time may be 23, 24, or 25 hours in UTC.

    Parameters
    ----------
    local_day
        Date in local timezone (time component ignored)
    timezone_str
        Timezone name (e.g., "America/New_York")

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings

    Examples
    --------
    >>> # DST transition day (spring forward: 23 hours)
    >>> start, end = compute_day_boundaries_utc(date(2025, 3, 9), "America/New_York")
    """
    tz = pytz.timezone(timezone_str)
    day = local_date(local_day)

    start_utc = _local_midnight_utc(tz, day)
    end_utc = _local_midnight_utc(tz, day + timedelta(days=1))

    return (
        format_utc_iso8601(start_utc),
        format_utc_iso8601(end_utc),
    )


def compute_week_boundaries_utc(
    local_day: date,
    timezone_str: str = "UTC",
    start_on: int = MONDAY,
) -> tuple[str, str]:
    """Compute UTC boundaries for the local week containing ``local_day``.

    A week spanning a DST change is 167 or 169 hours long in UTC.

    Parameters
    ----------
    local_day
        Any date in the week
    timezone_str
        Timezone name
    start_on
        Day of week to start on (0=Monday, 6=Sunday)

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings
    """
    tz = pytz.timezone(timezone_str)
    week_start = get_week_start(local_date(local_day), start_on=start_on)

    start_utc = _local_midnight_utc(tz, week_start)
    end_utc = _local_midnight_utc(tz, week_start + timedelta(days=7))

    return (
        format_utc_iso8601(start_utc),
        format_utc_iso8601(end_utc),
    )


def compute_month_boundaries_utc(
    local_day: date,
    timezone_str: str = "UTC",
) -> tuple[str, str]:
    """Compute UTC boundaries for the local month containing ``local_day``.

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings
    """
    tz = pytz.timezone(timezone_str)
    first = month_start(local_date(local_day))

    start_utc = _local_midnight_utc(tz, first)
    end_utc = _local_midnight_utc(tz, shift_months(first, 1))

    return (
        format_utc_iso8601(start_utc),
        format_utc_iso8601(end_utc),
    )


def compute_boundaries_utc(
    local_day: date,
    window: TimeWindow,
    timezone_str: str = "UTC",
    week_start_on: int = MONDAY,
) -> tuple[str, str]:
    """Compute UTC boundaries for any time window.

    Parameters
    ----------
    local_day
        Date in the window
    window
        Type of window ("day", "week", "month")
    timezone_str
        Timezone name
    week_start_on
        Day of week to start on (for week windows)

    Returns
    -------
    tuple[str, str]
        (start_utc, end_utc) as ISO-8601 strings
    """
    if window == "day":
        return compute_day_boundaries_utc(local_day, timezone_str)
    elif window == "week":
        return compute_week_boundaries_utc(local_day, timezone_str, week_start_on)
    elif window == "month":
        return compute_month_boundaries_utc(local_day, timezone_str)
    else:
        raise ValueError(f"Unknown window type: {window}")
