"""Tests for calendar windows.

Weeks start on Monday; DST weeks and months yield correct UTC boundaries.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from applytrack.core.time import parse_utc_iso8601
from applytrack.rollups.time_windows import (
    compute_boundaries_utc,
    compute_day_boundaries_utc,
    compute_month_boundaries_utc,
    compute_week_boundaries_utc,
    days_in_month,
    get_week_start,
    iter_days,
    month_start,
    shift_months,
    trailing_days,
    week_starting_monday,
)


def _hours(boundaries: tuple[str, str]) -> float:
    start, end = (parse_utc_iso8601(value) for value in boundaries)
    return (end - start).total_seconds() / 3600


def test_get_week_start_monday():
    """Wednesday, Oct 8, 2025 belongs to the week of Monday Oct 6."""
    dt = datetime(2025, 10, 8, 15, 30, 0)

    start = get_week_start(dt, start_on=0)

    assert start.weekday() == 0
    assert start.day == 6
    assert start.hour == 15


def test_get_week_start_keeps_datetime_tzinfo():
    dt = datetime(2025, 10, 12, 8, 0, tzinfo=ZoneInfo("Europe/Brussels"))

    start = get_week_start(dt)

    assert isinstance(start, datetime)
    assert start == datetime(2025, 10, 6, 8, 0, tzinfo=ZoneInfo("Europe/Brussels"))


def test_get_week_start_sunday():
    start = get_week_start(date(2025, 10, 8), start_on=6)

    assert start == date(2025, 10, 5)


@pytest.mark.parametrize(
    ("day", "monday"),
    [
        (date(2024, 1, 1), date(2024, 1, 1)),  # Monday
        (date(2024, 1, 3), date(2024, 1, 1)),  # Wednesday
        (date(2024, 1, 6), date(2024, 1, 1)),  # Saturday
        (date(2024, 1, 7), date(2024, 1, 1)),  # Sunday goes back 6 days
        (date(2024, 1, 8), date(2024, 1, 8)),
        (date(2025, 1, 1), date(2024, 12, 30)),  # across the year
    ],
)
def test_week_starting_monday(day, monday):
    assert week_starting_monday(day) == monday


def test_week_starting_monday_uses_timezone():
    """Monday 03:00 UTC is still Sunday in Los Angeles."""
    now = parse_utc_iso8601("2024-01-08T03:00:00Z")

    assert week_starting_monday(now, "America/Los_Angeles") == date(2024, 1, 1)
    assert week_starting_monday(now, "UTC") == date(2024, 1, 8)


@pytest.mark.parametrize(
    ("year", "month", "expected"),
    [(2024, 2, 29), (2023, 2, 28), (2024, 4, 30), (2024, 12, 31)],
)
def test_days_in_month(year, month, expected):
    assert days_in_month(year, month) == expected


def test_month_helpers():
    assert month_start(date(2024, 3, 17)) == date(2024, 3, 1)
    assert shift_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert shift_months(date(2024, 1, 1), -13) == date(2022, 12, 1)
    assert shift_months(date(2024, 11, 1), 2) == date(2025, 1, 1)


def test_iter_days_inclusive():
    days = list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))

    assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


def test_trailing_days():
    days = trailing_days(date(2024, 1, 10), 7)

    assert len(days) == 7
    assert days[0] == date(2024, 1, 4)
    assert days[-1] == date(2024, 1, 10)


def test_trailing_days_rejects_empty_window():
    with pytest.raises(ValueError, match="window_days"):
        trailing_days(date(2024, 1, 10), 0)


class TestUtcBoundaries:
    """DST-aware UTC boundaries for local windows."""

    def test_regular_day(self):
        start_utc, end_utc = compute_day_boundaries_utc(date(2025, 10, 8), "America/New_York")

        assert start_utc == "2025-10-08T04:00:00+00:00"
        assert end_utc == "2025-10-09T04:00:00+00:00"

    def test_spring_forward_day_is_23_hours(self):
        boundaries = compute_day_boundaries_utc(date(2025, 3, 9), "America/New_York")

        assert "2025-03-09T05:00:00" in boundaries[0]
        assert "2025-03-10T04:00:00" in boundaries[1]
        assert _hours(boundaries) == 23

    def test_fall_back_day_is_25_hours(self):
        assert _hours(compute_day_boundaries_utc(date(2025, 11, 2), "America/New_York")) == 25

    def test_dst_weeks(self):
        # Monday-start weeks containing the March and November transitions
        assert _hours(compute_week_boundaries_utc(date(2025, 3, 5), "America/New_York")) == 167
        assert _hours(compute_week_boundaries_utc(date(2025, 10, 29), "America/New_York")) == 169
        assert _hours(compute_week_boundaries_utc(date(2025, 6, 4), "America/New_York")) == 168

    def test_week_starts_monday(self):
        start_utc, _ = compute_week_boundaries_utc(date(2025, 10, 8), "UTC")

        assert start_utc == "2025-10-06T00:00:00+00:00"

    def test_dst_months(self):
        assert _hours(compute_month_boundaries_utc(date(2025, 3, 15), "America/New_York")) == 743
        assert _hours(compute_month_boundaries_utc(date(2025, 11, 15), "America/New_York")) == 721

    def test_month_boundaries_utc(self):
        start_utc, end_utc = compute_month_boundaries_utc(date(2024, 2, 10), "UTC")

        assert start_utc == "2024-02-01T00:00:00+00:00"
        assert end_utc == "2024-03-01T00:00:00+00:00"

    def test_dispatch(self):
        day = date(2025, 10, 8)

        assert compute_boundaries_utc(day, "day", "UTC") == compute_day_boundaries_utc(day, "UTC")
        assert compute_boundaries_utc(day, "week", "UTC") == compute_week_boundaries_utc(day, "UTC")
        assert compute_boundaries_utc(day, "month", "UTC") == compute_month_boundaries_utc(day, "UTC")

    def test_unknown_window(self):
        with pytest.raises(ValueError, match="Unknown window type"):
            compute_boundaries_utc(date(2025, 10, 8), "year", "UTC")  # type: ignore[arg-type]
