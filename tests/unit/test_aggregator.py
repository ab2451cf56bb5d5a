"""Tests for date-bucketed aggregation."""

import math
import random
from datetime import date, datetime, timedelta, timezone

import pytest

from applytrack.core.errors import InvalidEvent
from applytrack.core.events import ApplicationEvent
from applytrack.rollups.aggregator import (
    ALL_TIME,
    DayBucket,
    PeriodBucket,
    compute_totals,
    daily_breakdown,
    last_active_date,
    period_rollup,
    rolling_total,
    unique_days_active,
    week_breakdown,
    weekly_average,
)

NOW = date(2024, 1, 10)  # Wednesday


def ev(day: str, count: int) -> ApplicationEvent:
    return ApplicationEvent(date.fromisoformat(day), count)


class TestDailyBreakdown:
    """Per-day buckets ending today."""

    def test_empty_history_with_live_count(self):
        """Seven buckets, all zero except today which shows the live count."""
        buckets = daily_breakdown(NOW, [], 4, 7)

        assert len(buckets) == 7
        assert [bucket.count for bucket in buckets] == [0, 0, 0, 0, 0, 0, 4]
        assert buckets[-1].is_today
        assert not any(bucket.is_today for bucket in buckets[:-1])

    @pytest.mark.parametrize("window_days", [1, 2, 7, 30, 366])
    def test_length_and_consecutive_dates(self, window_days):
        buckets = daily_breakdown(NOW, [ev("2024-01-09", 2)], 0, window_days)

        assert len(buckets) == window_days
        assert buckets[-1].date == NOW
        for earlier, later in zip(buckets, buckets[1:]):
            assert later.date - earlier.date == timedelta(days=1)

    def test_history_looked_up_by_date(self):
        buckets = daily_breakdown(NOW, [ev("2024-01-08", 3), ev("2024-01-01", 9)], 0, 3)

        assert [(bucket.date, bucket.count) for bucket in buckets] == [
            (date(2024, 1, 8), 3),
            (date(2024, 1, 9), 0),
            (date(2024, 1, 10), 0),
        ]

    def test_live_count_wins_over_stale_history(self):
        buckets = daily_breakdown(NOW, [ev("2024-01-10", 9)], 2, 1)

        assert buckets[0].count == 2

    def test_labels(self):
        bucket = daily_breakdown(NOW, [], 0, 1)[0]

        assert bucket.label == "Wed, Jan 10"
        assert bucket.weekday == "Wed"
        assert bucket.to_dict() == {"date": "2024-01-10", "label": "Wed, Jan 10", "count": 0, "is_today": True}

    def test_aware_now_projected_to_timezone(self):
        now = datetime(2024, 1, 11, 3, 0, tzinfo=timezone.utc)  # Jan 10 evening in New York

        buckets = daily_breakdown(now, [], 1, 1, timezone_str="America/New_York")

        assert buckets[0].date == date(2024, 1, 10)

    def test_rejects_zero_window(self):
        with pytest.raises(ValueError):
            daily_breakdown(NOW, [], 0, 0)

    def test_rejects_malformed_input(self):
        with pytest.raises(InvalidEvent):
            daily_breakdown(NOW, [("2024-01-09", -1)], 0, 7)
        with pytest.raises(InvalidEvent):
            daily_breakdown(NOW, [], -3, 7)


def test_week_breakdown_is_monday_start():
    buckets = week_breakdown(NOW, [ev("2024-01-08", 2), ev("2024-01-07", 5)], 3)

    assert [bucket.date for bucket in buckets] == [date(2024, 1, 8) + timedelta(days=i) for i in range(7)]
    assert [bucket.count for bucket in buckets] == [2, 0, 3, 0, 0, 0, 0]
    assert buckets[0].weekday == "Mon"


def test_week_breakdown_on_sunday():
    buckets = week_breakdown(date(2024, 1, 14), [], 1)

    assert buckets[0].date == date(2024, 1, 8)
    assert buckets[-1].is_today


class TestPeriodRollup:
    """Weekly and monthly totals."""

    def test_weeks(self):
        events = [ev("2023-12-18", 1), ev("2023-12-31", 2), ev("2024-01-07", 4), ev("2024-01-08", 8)]

        buckets = period_rollup(NOW, events, 16, "week", 4)

        assert [bucket.label for bucket in buckets] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert [bucket.total for bucket in buckets] == [1, 2, 4, 24]
        assert buckets[0].period_start == date(2023, 12, 18)
        assert buckets[-1].period_end == date(2024, 1, 14)
        assert buckets[-1].range_label == "Jan 8 - Jan 14"
        assert all(bucket.days == 7 for bucket in buckets)

    def test_months_cover_full_calendar_months(self):
        now = date(2024, 3, 15)
        events = [ev("2024-02-29", 2), ev("2024-02-01", 1), ev("2023-04-30", 7), ev("2023-03-31", 50)]

        buckets = period_rollup(now, events, 5, "month", 12)

        assert len(buckets) == 12
        assert buckets[0].label == "Apr 23"
        assert buckets[0].total == 7
        assert buckets[-1].label == "Mar 24"
        assert buckets[-1].total == 5
        february = buckets[-2]
        assert february.total == 3
        assert february.days == 29
        assert february.daily_average == 0.1

    def test_today_uses_live_count(self):
        buckets = period_rollup(NOW, [ev("2024-01-10", 100)], 1, "month", 1)

        assert buckets[0].total == 1

    def test_bucket_boundaries_utc(self):
        bucket = period_rollup(NOW, [], 0, "week", 1)[0]

        data = bucket.to_dict("UTC")

        assert data["start_utc"] == "2024-01-08T00:00:00+00:00"
        assert data["end_utc"] == "2024-01-15T00:00:00+00:00"
        assert "start_utc" not in bucket.to_dict()

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="period_count"):
            period_rollup(NOW, [], 0, "week", 0)
        with pytest.raises(ValueError, match="Unknown period unit"):
            period_rollup(NOW, [], 0, "year", 2)  # type: ignore[arg-type]


class TestRollingTotal:
    """Trailing sums with the live counter for today."""

    def test_matches_daily_breakdown(self):
        events = [ev("2024-01-03", 2), ev("2024-01-04", 3), ev("2024-01-09", 1), ev("2024-01-10", 7)]

        total = rolling_total(NOW, events, 4, 7)

        assert total == sum(bucket.count for bucket in daily_breakdown(NOW, events, 4, 7))
        assert total == 3 + 1 + 4

    def test_all_time_excludes_stale_today_entry(self):
        events = [ev("2024-01-02", 5), ev("2024-01-10", 9)]

        assert rolling_total(NOW, events, 9, ALL_TIME) == 14
        assert rolling_total(NOW, events, 9, math.inf) == 14

    def test_all_time_includes_future_dates(self):
        assert rolling_total(NOW, [ev("2024-02-01", 2)], 1, ALL_TIME) == 3

    def test_window_of_one_is_today(self):
        assert rolling_total(NOW, [ev("2024-01-09", 5)], 2, 1) == 2


def test_compute_totals():
    events = [ev("2023-12-01", 10), ev("2023-12-20", 4), ev("2024-01-05", 2)]

    totals = compute_totals(NOW, events, 3)

    assert totals.today == 3
    assert totals.week == 5
    assert totals.month == 9
    assert totals.overall == 19
    assert totals.to_dict() == {"today": 3, "week": 5, "month": 9, "overall": 19}


def test_weekly_average():
    buckets = week_breakdown(NOW, [ev("2024-01-08", 3)], 2)

    assert weekly_average(buckets) == 0.7
    assert weekly_average([]) == 0.0


class TestUniqueDaysActive:
    """Distinct active days with the live counter and a manual correction."""

    def test_counts_positive_days(self):
        events = [ev("2024-01-01", 1), ev("2024-01-02", 0), ev("2024-01-05", 2)]

        assert unique_days_active(NOW, events, 0) == 2

    def test_today_added_once(self):
        assert unique_days_active(NOW, [ev("2024-01-01", 1)], 3) == 2
        assert unique_days_active(NOW, [ev("2024-01-10", 1)], 3) == 1

    def test_manual_adjustment_clamped(self):
        assert unique_days_active(NOW, [ev("2024-01-01", 1)], 0, 5) == 6
        assert unique_days_active(NOW, [ev("2024-01-01", 1)], 0, -10) == 0

    def test_monotonic_when_adding_new_active_day(self):
        rng = random.Random(7)
        events = [ev(f"2023-12-{day:02d}", rng.randint(1, 5)) for day in range(1, 20, 2)]
        before = unique_days_active(NOW, events, 0)

        after = unique_days_active(NOW, [*events, ev("2023-12-02", 1)], 0)

        assert after == before + 1


def test_last_active_date():
    assert last_active_date([ev("2024-01-01", 1), ev("2024-01-04", 0), ev("2024-01-03", 2)]) == date(2024, 1, 3)
    assert last_active_date([]) is None


def test_bucket_types_are_frozen():
    bucket = DayBucket(date=NOW, label="x", count=1)
    period = PeriodBucket(label="Week 1", total=0, period_start=NOW, period_end=NOW)

    with pytest.raises(AttributeError):
        bucket.count = 2  # type: ignore[misc]
    with pytest.raises(AttributeError):
        period.total = 2  # type: ignore[misc]
