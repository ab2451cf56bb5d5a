"""Aggregation engine: calendar windows, rollups, streaks and goals."""

from .aggregator import (
    ALL_TIME,
    DayBucket,
    PeriodBucket,
    Totals,
    compute_totals,
    daily_breakdown,
    last_active_date,
    period_rollup,
    rolling_total,
    unique_days_active,
    week_breakdown,
    weekly_average,
)
from .goals import GoalProgress, goal_just_reached, goal_progress, milestone_message
from .streaks import StreakResult, compute_streaks
from .time_windows import (
    TimeWindow,
    compute_boundaries_utc,
    compute_day_boundaries_utc,
    compute_month_boundaries_utc,
    compute_week_boundaries_utc,
    get_week_start,
    week_starting_monday,
)

__all__ = [
    # Time windows
    "TimeWindow",
    "compute_boundaries_utc",
    "compute_day_boundaries_utc",
    "compute_week_boundaries_utc",
    "compute_month_boundaries_utc",
    "get_week_start",
    "week_starting_monday",
    # Aggregation
    "ALL_TIME",
    "DayBucket",
    "PeriodBucket",
    "Totals",
    "daily_breakdown",
    "week_breakdown",
    "period_rollup",
    "rolling_total",
    "compute_totals",
    "weekly_average",
    "unique_days_active",
    "last_active_date",
    # Streaks
    "StreakResult",
    "compute_streaks",
    # Goals
    "GoalProgress",
    "goal_progress",
    "goal_just_reached",
    "milestone_message",
]
