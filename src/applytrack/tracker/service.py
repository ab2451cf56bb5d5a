"""Tracker service: the stateful side of the dashboard.

TrackerService is the only component that reads the wall clock. It owns
the day rollover, the live counter and preference handling, and hands
snapshots to the pure aggregation functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable

from ..applications.records import ApplicationRecord, events_from_records, status_distribution
from ..core.errors import InvalidEvent
from ..core.events import ApplicationEvent
from ..core.time import get_current_time, local_date, resolve_timezone
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.aggregator import (
    DayBucket,
    PeriodBucket,
    PeriodUnit,
    Totals,
    compute_totals,
    daily_breakdown,
    last_active_date,
    period_rollup,
    unique_days_active,
    week_breakdown,
    weekly_average,
)
from ..rollups.goals import DEFAULT_DAILY_GOAL, MAX_DAILY_GOAL, GoalProgress, goal_just_reached, goal_progress
from ..rollups.streaks import StreakResult, compute_streaks
from ..storage.base import PREF_DAILY_GOAL, PREF_MANUAL_DAYS_OFFSET
from .counter import LiveCounter
from .rollover import RolloverOutcome, RolloverResult, RolloverState, plan_rollover

if TYPE_CHECKING:
    from ..storage.base import EventStore

__all__ = ["DashboardSnapshot", "JobLogSummary", "TrackerService", "live_streaks"]

logger = get_logger("tracker")


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the dashboard shows, computed from one consistent read."""

    today: date
    totals: Totals
    streaks: StreakResult
    days_active: int
    week: list[DayBucket]
    weekly_average: float
    goal: GoalProgress
    last_active_date: date | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "today": self.today.isoformat(),
            "totals": self.totals.to_dict(),
            "streaks": self.streaks.to_dict(),
            "days_active": self.days_active,
            "week": [bucket.to_dict() for bucket in self.week],
            "weekly_average": self.weekly_average,
            "goal": self.goal.to_dict(),
            "last_active_date": self.last_active_date.isoformat() if self.last_active_date else None,
        }


@dataclass(frozen=True)
class JobLogSummary:
    """Analytics derived from the per-application log.

    Each logged record counts as one application on its ``date_applied``;
    today's records play the part of the live counter.
    """

    today: date
    today_count: int
    total: int
    days_applied: int
    by_status: dict[str, int]
    last_7_days: list[DayBucket]
    streaks: StreakResult
    weekly: list[PeriodBucket]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "today": self.today.isoformat(),
            "today_count": self.today_count,
            "total": self.total,
            "days_applied": self.days_applied,
            "by_status": dict(self.by_status),
            "last_7_days": [bucket.to_dict() for bucket in self.last_7_days],
            "streaks": self.streaks.to_dict(),
            "weekly": [bucket.to_dict() for bucket in self.weekly],
        }


def live_streaks(events: list[ApplicationEvent], today: date, live: int) -> StreakResult:
    """Streaks with the live count taken into account once it is positive.

    A zero count only means today has not started yet, so a run that ended
    yesterday stays current until the day is over.
    """
    return compute_streaks(events, today, today_count=live if live > 0 else None)


def default_period_count(unit: PeriodUnit) -> int:
    return 4 if unit == "week" else 12


class TrackerService:
    """Live counter, rollover and dashboard for one user.

    Parameters
    ----------
    store
        Backing store (EventStore, and ApplicationLog for job-log methods)
    timezone
        IANA timezone that defines calendar days
    daily_goal
        Goal used when the user has not stored one
    clock
        Callable returning the current aware datetime
    retention_days
        Committed events older than this are pruned on rollover (0 keeps all)
    strict
        Raise ClockSkew / StaleRollover instead of only logging them

    Example
    -------
    >>> service = TrackerService(InMemoryStore(), timezone="Europe/Brussels")
    >>> service.increment()
    1
    >>> service.dashboard().totals.today
    1
    """

    def __init__(
        self,
        store: EventStore,
        *,
        timezone: str = "UTC",
        daily_goal: int = DEFAULT_DAILY_GOAL,
        clock: Callable[[], datetime] | None = None,
        retention_days: int = 365,
        strict: bool = False,
    ) -> None:
        resolve_timezone(timezone)
        self.store = store
        self.timezone = timezone
        self.default_daily_goal = daily_goal
        self.retention_days = retention_days
        self.strict = strict
        self._clock = clock or (lambda: get_current_time(timezone))

    # Clock and rollover

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        """Current calendar date in the service timezone."""
        return local_date(self.now(), self.timezone)

    def check_rollover(self, today: date | None = None) -> RolloverResult:
        """Commit or discard the live count if the day changed.

        Idempotent within a calendar day. Callers that already read the
        clock pass ``today`` so the whole operation sees one date.

        Raises
        ------
        ClockSkew, StaleRollover
            Only in strict mode, after the transition has been applied
        """
        if today is None:
            today = self.today()
        state = RolloverState(
            live_count=self.store.read_live_today_count(),
            last_rollover_date=self.store.read_last_rollover_date(),
        )
        result = plan_rollover(state, today)

        if result.changed:
            with self.store.transaction():
                if result.committed is not None:
                    self.store.upsert_event(result.committed.date, result.committed.count)
                self.store.write_live_today_count(result.state.live_count)
                self.store.write_last_rollover_date(today)
            self._prune(today)

        if result.outcome is RolloverOutcome.COMMITTED:
            logger.info(
                "Committed live count",
                date=result.committed.date.isoformat(),
                count=result.committed.count,
            )
        elif result.outcome in (RolloverOutcome.RESET, RolloverOutcome.INITIALIZED):
            logger.debug("Live count reset", outcome=result.outcome.value, today=today.isoformat())

        if result.warning is not None:
            logger.warning(
                str(result.warning),
                code=result.warning.code,
                last_rollover_date=result.warning.last_rollover_date.isoformat(),
                today=today.isoformat(),
                discarded=state.live_count if result.outcome is RolloverOutcome.STALE else 0,
            )
            if self.strict:
                raise result.warning

        return result

    def _prune(self, today: date) -> None:
        if self.retention_days > 0:
            self.store.prune_events_before(today - timedelta(days=self.retention_days))

    # Live counter

    def live_count(self) -> int:
        self.check_rollover()
        return self.store.read_live_today_count()

    def _update_counter(self, change: Callable[[LiveCounter], int]) -> int:
        self.check_rollover()
        previous = self.store.read_live_today_count()
        counter = LiveCounter(previous)
        current = change(counter)

        if current != previous:
            self.store.write_live_today_count(current)
            logger.debug("Live count changed", previous=previous, current=current)

        goal = self.daily_goal()
        if goal_just_reached(previous, current, goal):
            logger.info("Daily goal reached", count=current, goal=goal)

        return current

    def increment(self) -> int:
        """Add one application to today. Capped at 999."""
        return self._update_counter(LiveCounter.increment)

    def decrement(self) -> int:
        """Remove one application from today. Floored at 0."""
        return self._update_counter(LiveCounter.decrement)

    def reset(self) -> int:
        """Set today's count to zero."""
        return self._update_counter(LiveCounter.reset)

    def set_today(self, count: int) -> int:
        """Set today's count directly.

        Raises
        ------
        InvalidEvent
            If count is outside 0..999
        """
        return self._update_counter(lambda counter: counter.set(count))

    # Preferences

    def daily_goal(self) -> int:
        return int(self.store.read_user_preference(PREF_DAILY_GOAL, self.default_daily_goal))

    def set_daily_goal(self, goal: int) -> int:
        """Store the daily goal.

        Raises
        ------
        InvalidEvent
            If goal is outside 1..50
        """
        if isinstance(goal, bool) or not isinstance(goal, int) or not 1 <= goal <= MAX_DAILY_GOAL:
            raise InvalidEvent(f"Daily goal must be between 1 and {MAX_DAILY_GOAL}, got {goal!r}", value=goal)
        self.store.write_user_preference(PREF_DAILY_GOAL, goal)
        return goal

    def manual_days_offset(self) -> int:
        return int(self.store.read_user_preference(PREF_MANUAL_DAYS_OFFSET, 0))

    def adjust_days(self, delta: int) -> int:
        """Shift the stored days-active correction by ``delta``.

        The correction never takes the displayed days-active below zero.

        Returns
        -------
        int
            New correction value
        """
        today, events, live = self.snapshot()
        base = unique_days_active(today, events, live)
        offset = max(self.manual_days_offset() + delta, -base)
        self.store.write_user_preference(PREF_MANUAL_DAYS_OFFSET, offset)
        logger.info("Days-active correction updated", offset=offset)
        return offset

    # Reads

    def snapshot(self) -> tuple[date, list[ApplicationEvent], int]:
        """Today, history and live count after the rollover check.

        The clock is read once, so every figure built from the snapshot is
        keyed to the same calendar date.
        """
        today = self.today()
        self.check_rollover(today)
        return today, self.store.list_events(), self.store.read_live_today_count()

    def totals(self) -> Totals:
        today, events, live = self.snapshot()
        return compute_totals(today, events, live)

    def streaks(self) -> StreakResult:
        today, events, live = self.snapshot()
        return live_streaks(events, today, live)

    def days_active(self) -> int:
        today, events, live = self.snapshot()
        return unique_days_active(today, events, live, self.manual_days_offset())

    def week(self) -> list[DayBucket]:
        today, events, live = self.snapshot()
        return week_breakdown(today, events, live)

    def chart(self, unit: PeriodUnit, period_count: int | None = None) -> list[PeriodBucket]:
        """Weekly (4 periods) or monthly (12 periods) totals, oldest first."""
        if period_count is None:
            period_count = default_period_count(unit)
        today, events, live = self.snapshot()
        return period_rollup(today, events, live, unit, period_count)

    def goal(self) -> GoalProgress:
        return goal_progress(self.live_count(), self.daily_goal())

    def dashboard(self) -> DashboardSnapshot:
        """Compute every dashboard figure from one snapshot."""
        with timing_context("dashboard", component="tracker") as ctx:
            today, events, live = self.snapshot()
            week = week_breakdown(today, events, live)

            snapshot = DashboardSnapshot(
                today=today,
                totals=compute_totals(today, events, live),
                streaks=live_streaks(events, today, live),
                days_active=unique_days_active(today, events, live, self.manual_days_offset()),
                week=week,
                weekly_average=weekly_average(week),
                goal=goal_progress(live, self.daily_goal()),
                last_active_date=last_active_date(events),
            )
            ctx["events"] = len(events)

        return snapshot

    def clear_all(self) -> None:
        """Delete every event, preference, log entry and the live state."""
        self.store.clear_all()
        logger.warning("Tracker data cleared")

    # Job log

    def log_application(self, record: ApplicationRecord) -> ApplicationRecord:
        return self.store.add_application(record)

    def update_status(self, record_id: str, status: str) -> ApplicationRecord:
        """Change the status of a logged application.

        Raises
        ------
        RecordNotFound
            If no record has this id
        ValueError
            If the status is unknown
        """
        record = self.store.get_application(record_id).with_status(status)
        return self.store.update_application(record)

    def delete_application(self, record_id: str) -> None:
        self.store.delete_application(record_id)

    def job_log_summary(self) -> JobLogSummary:
        """Counts, last 7 days, streaks, weekly totals and status split from the job log."""
        records = self.store.list_applications()
        today = self.today()
        today_count = sum(1 for record in records if record.date_applied == today)
        history = [event for event in events_from_records(records) if event.date != today]

        return JobLogSummary(
            today=today,
            today_count=today_count,
            total=len(records),
            days_applied=unique_days_active(today, history, today_count),
            by_status=status_distribution(records),
            last_7_days=daily_breakdown(today, history, today_count, 7),
            streaks=live_streaks(history, today, today_count),
            weekly=period_rollup(today, history, today_count, "week", default_period_count("week")),
        )

    # Lifecycle

    def close(self) -> None:
        """Close the backing store if it holds a connection."""
        close = getattr(self.store, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> TrackerService:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
