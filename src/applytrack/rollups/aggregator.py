"""Date-bucketed aggregation of application counts.

Every function here is pure: it takes ``now``, an event snapshot and the
live counter for today, and never reads a clock or a store. Today's value
always comes from ``today_count``; a stale entry for today in ``events`` is
ignored so the live counter is never double counted.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Literal

from ..core.events import check_live_count, events_by_date
from ..core.time import local_date
from .time_windows import (
    compute_day_boundaries_utc,
    days_in_month,
    iter_days,
    month_start,
    shift_months,
    trailing_days,
    week_starting_monday,
)

__all__ = [
    "ALL_TIME",
    "DayBucket",
    "PeriodBucket",
    "PeriodUnit",
    "Totals",
    "compute_totals",
    "daily_breakdown",
    "last_active_date",
    "period_rollup",
    "rolling_total",
    "unique_days_active",
    "week_breakdown",
    "weekly_average",
]

PeriodUnit = Literal["week", "month"]

# Sentinel window for rolling_total; math.inf is accepted too
ALL_TIME = None

WEEK_DAYS = 7
MONTH_DAYS = 30


@dataclass(frozen=True)
class DayBucket:
    """One calendar day, ready for display.

    Attributes
    ----------
    date : date
        Calendar date
    label : str
        Display label, e.g. "Mon, Jan 8"
    count : int
        Applications on that day
    is_today : bool
        Whether the day is the caller's current date
    """

    date: date
    label: str
    count: int
    is_today: bool = False

    @property
    def weekday(self) -> str:
        """Short weekday name, e.g. "Mon"."""
        return self.date.strftime("%a")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date.isoformat(),
            "label": self.label,
            "count": self.count,
            "is_today": self.is_today,
        }


@dataclass(frozen=True)
class PeriodBucket:
    """Aggregate over a contiguous run of days (a week or a month).

    Attributes
    ----------
    label : str
        Display label ("Week 3", "Jan 24")
    total : int
        Sum of daily counts in the period
    period_start : date
        First day of the period
    period_end : date
        Last day of the period (inclusive)
    """

    label: str
    total: int
    period_start: date
    period_end: date

    @property
    def range_label(self) -> str:
        """Human range, e.g. "Jan 1 - Jan 7"."""
        return f"{_month_day(self.period_start)} - {_month_day(self.period_end)}"

    @property
    def days(self) -> int:
        """Number of calendar days in the period (7, or 28-31)."""
        return (self.period_end - self.period_start).days + 1

    @property
    def daily_average(self) -> float:
        return round(self.total / self.days, 1)

    def boundaries_utc(self, timezone_str: str = "UTC") -> tuple[str, str]:
        """DST-aware UTC instants ``[start, end)`` covering the period."""
        start_utc, _ = compute_day_boundaries_utc(self.period_start, timezone_str)
        _, end_utc = compute_day_boundaries_utc(self.period_end, timezone_str)
        return start_utc, end_utc

    def to_dict(self, timezone_str: str | None = None) -> dict[str, Any]:
        """Convert to dictionary, with UTC boundaries when a timezone is given."""
        data: dict[str, Any] = {
            "label": self.label,
            "total": self.total,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "range": self.range_label,
            "days": self.days,
            "daily_average": self.daily_average,
        }
        if timezone_str is not None:
            data["start_utc"], data["end_utc"] = self.boundaries_utc(timezone_str)
        return data


@dataclass(frozen=True)
class Totals:
    """Rolling sums anchored at now."""

    today: int
    week: int
    month: int
    overall: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {"today": self.today, "week": self.week, "month": self.month, "overall": self.overall}


def _month_day(day: date) -> str:
    return f"{day:%b} {day.day}"


def _day_label(day: date) -> str:
    return f"{day:%a}, {day:%b} {day.day}"


def _day_count(day: date, today: date, lookup: dict[date, int], today_count: int) -> int:
    if day == today:
        return today_count
    return lookup.get(day, 0)


def _day_bucket(day: date, today: date, lookup: dict[date, int], today_count: int) -> DayBucket:
    return DayBucket(
        date=day,
        label=_day_label(day),
        count=_day_count(day, today, lookup, today_count),
        is_today=day == today,
    )


def _sum_days(start: date, end: date, today: date, lookup: dict[date, int], today_count: int) -> int:
    return sum(_day_count(day, today, lookup, today_count) for day in iter_days(start, end))


def daily_breakdown(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    window_days: int,
    *,
    timezone_str: str | None = None,
) -> list[DayBucket]:
    """Per-day buckets for the trailing window ending today.

    Parameters
    ----------
    now
        Current instant or date
    events
        Historical events, unique by date
    today_count
        Live, uncommitted count for today
    window_days
        Number of days (>= 1)
    timezone_str
        Timezone used to project an aware ``now`` onto a date

    Returns
    -------
    list[DayBucket]
        Exactly ``window_days`` buckets, oldest first, the last one is today
    """
    today = local_date(now, timezone_str)
    lookup = events_by_date(events)
    today_count = check_live_count(today_count)

    return [_day_bucket(day, today, lookup, today_count) for day in trailing_days(today, window_days)]


def week_breakdown(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    *,
    timezone_str: str | None = None,
) -> list[DayBucket]:
    """The seven days of the current Monday-start week.

    Days after today are included with whatever the history holds for them
    (normally nothing).
    """
    today = local_date(now, timezone_str)
    lookup = events_by_date(events)
    today_count = check_live_count(today_count)
    monday = week_starting_monday(today)

    return [
        _day_bucket(monday + timedelta(days=offset), today, lookup, today_count)
        for offset in range(WEEK_DAYS)
    ]


def period_rollup(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    unit: PeriodUnit,
    period_count: int,
    *,
    timezone_str: str | None = None,
) -> list[PeriodBucket]:
    """Totals for the trailing ``period_count`` weeks or calendar months.

    Weeks are Monday-start and include the current (partial) week.
    Months are calendar months; every day from 1 to the month's real
    length is summed.

    Returns
    -------
    list[PeriodBucket]
        Oldest period first, the last one contains today
    """
    if period_count < 1:
        raise ValueError(f"period_count must be >= 1, got {period_count}")

    today = local_date(now, timezone_str)
    lookup = events_by_date(events)
    today_count = check_live_count(today_count)

    buckets: list[PeriodBucket] = []

    if unit == "week":
        current_monday = week_starting_monday(today)
        for index, back in enumerate(range(period_count - 1, -1, -1), start=1):
            start = current_monday - timedelta(weeks=back)
            end = start + timedelta(days=WEEK_DAYS - 1)
            buckets.append(
                PeriodBucket(
                    label=f"Week {index}",
                    total=_sum_days(start, end, today, lookup, today_count),
                    period_start=start,
                    period_end=end,
                )
            )
    elif unit == "month":
        current_month = month_start(today)
        for back in range(period_count - 1, -1, -1):
            start = shift_months(current_month, -back)
            end = start.replace(day=days_in_month(start.year, start.month))
            buckets.append(
                PeriodBucket(
                    label=f"{start:%b %y}",
                    total=_sum_days(start, end, today, lookup, today_count),
                    period_start=start,
                    period_end=end,
                )
            )
    else:
        raise ValueError(f"Unknown period unit: {unit}")

    return buckets


def _is_all_time(window_days: int | float | None) -> bool:
    return window_days is ALL_TIME or (isinstance(window_days, float) and math.isinf(window_days))


def rolling_total(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    window_days: int | float | None,
    *,
    timezone_str: str | None = None,
) -> int:
    """Sum of counts over the trailing window, today inclusive.

    ``window_days=ALL_TIME`` (or ``math.inf``) sums every event not dated
    today plus ``today_count``.
    """
    today = local_date(now, timezone_str)
    lookup = events_by_date(events)
    today_count = check_live_count(today_count)

    if _is_all_time(window_days):
        return sum(count for day, count in lookup.items() if day != today) + today_count

    return sum(_day_count(day, today, lookup, today_count) for day in trailing_days(today, int(window_days)))


def compute_totals(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    *,
    timezone_str: str | None = None,
) -> Totals:
    """Today, trailing 7 days, trailing 30 days and all-time totals."""
    snapshot = list(events)
    return Totals(
        today=check_live_count(today_count),
        week=rolling_total(now, snapshot, today_count, WEEK_DAYS, timezone_str=timezone_str),
        month=rolling_total(now, snapshot, today_count, MONTH_DAYS, timezone_str=timezone_str),
        overall=rolling_total(now, snapshot, today_count, ALL_TIME, timezone_str=timezone_str),
    )


def weekly_average(buckets: Sequence[DayBucket]) -> float:
    """Average per day over the buckets, rounded to one decimal."""
    if not buckets:
        return 0.0
    return round(sum(bucket.count for bucket in buckets) / len(buckets), 1)


def unique_days_active(
    now: date | datetime,
    events: Iterable[Any],
    today_count: int,
    manual_adjustment: int = 0,
    *,
    timezone_str: str | None = None,
) -> int:
    """Number of distinct days with at least one application.

    Today counts once if the live counter is positive and history has no
    active entry for today. ``manual_adjustment`` is a stored user
    correction; the result is clamped at zero.
    """
    today = local_date(now, timezone_str)
    lookup = events_by_date(events)
    today_count = check_live_count(today_count)

    active_days = sum(1 for count in lookup.values() if count > 0)
    add_today = today_count > 0 and lookup.get(today, 0) == 0

    return max(0, active_days + (1 if add_today else 0) + manual_adjustment)


def last_active_date(events: Iterable[Any]) -> date | None:
    """Most recent date with a positive count, or None."""
    active = [day for day, count in events_by_date(events).items() if count > 0]
    return max(active) if active else None
