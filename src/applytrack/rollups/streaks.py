"""Streak computation over active calendar days."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from ..core.events import check_live_count, events_by_date
from ..core.time import local_date

__all__ = ["StreakResult", "compute_streaks", "current_run", "longest_run"]

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakResult:
    """Current and longest streak lengths in days."""

    current_streak: int = 0
    longest_streak: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {"current_streak": self.current_streak, "longest_streak": self.longest_streak}


def longest_run(active_dates: list[date]) -> int:
    """Length of the longest run of consecutive days in sorted ``active_dates``."""
    longest = 0
    run = 0
    previous: date | None = None

    for day in active_dates:
        run = run + 1 if previous is not None and day - previous == ONE_DAY else 1
        longest = max(longest, run)
        previous = day

    return longest


def current_run(active_dates: list[date], today: date, *, allow_yesterday: bool = True) -> int:
    """Run ending at the latest active date.

    The run is current only if the latest active date is today, or
    yesterday when ``allow_yesterday`` is set.
    """
    if not active_dates:
        return 0

    latest = active_dates[-1]
    valid_ends = (today, today - ONE_DAY) if allow_yesterday else (today,)
    if latest not in valid_ends:
        return 0

    run = 1
    for index in range(len(active_dates) - 1, 0, -1):
        if active_dates[index] - active_dates[index - 1] != ONE_DAY:
            break
        run += 1

    return run


def compute_streaks(
    events: Iterable[Any],
    now: date | datetime,
    *,
    today_count: int | None = None,
    timezone_str: str | None = None,
) -> StreakResult:
    """Current and longest streak.

    Without ``today_count`` only committed history is used, and a run that
    ended yesterday is still current because today may simply not be
    committed yet.

    Passing ``today_count`` includes the live counter as the authority for
    today: a positive count adds today as a virtual event, zero means today
    had no activity, which breaks currency for a run that ended yesterday.

    Parameters
    ----------
    events
        Historical events (any order)
    now
        Current instant or date
    today_count
        Live count for today, or None to use history only
    timezone_str
        Timezone used to project an aware ``now`` onto a date

    Returns
    -------
    StreakResult
        ``(0, 0)`` when there are no active days

    Example
    -------
    >>> events = [("2024-01-01", 3), ("2024-01-02", 5)]
    >>> compute_streaks(events, date(2024, 1, 3), today_count=0)
    StreakResult(current_streak=0, longest_streak=2)
    >>> compute_streaks(events, date(2024, 1, 3), today_count=2)
    StreakResult(current_streak=3, longest_streak=3)
    """
    today = local_date(now, timezone_str)
    active = {day for day, count in events_by_date(events).items() if count > 0}

    if today_count is not None:
        if check_live_count(today_count) > 0:
            active.add(today)
        else:
            active.discard(today)

    if not active:
        return StreakResult(0, 0)

    active_dates = sorted(active)
    return StreakResult(
        current_streak=current_run(active_dates, today, allow_yesterday=today_count is None),
        longest_streak=longest_run(active_dates),
    )
