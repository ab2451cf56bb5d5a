"""Integration tests for the tracker service: rollover, counter and dashboard."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from applytrack.applications.records import ApplicationRecord, ApplicationStatus
from applytrack.core.errors import ClockSkew, InvalidEvent, RecordNotFound, StaleRollover
from applytrack.core.events import ApplicationEvent
from applytrack.rollups.streaks import StreakResult
from applytrack.storage import InMemoryStore, SQLiteStore
from applytrack.tracker import RolloverOutcome, TrackerService

TZ = "America/New_York"


class FakeClock:
    """Settable clock returning aware datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 10, 9, 0, tzinfo=ZoneInfo(TZ)))


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        yield InMemoryStore()
        return
    sqlite_store = SQLiteStore(tmp_path / "applytrack.db")
    yield sqlite_store
    sqlite_store.close()


@pytest.fixture
def service(store, clock) -> TrackerService:
    return TrackerService(store, timezone=TZ, clock=clock)


class TestRollover:
    """Day rollover applied through the store."""

    def test_first_check_initializes(self, service, store):
        result = service.check_rollover()

        assert result.outcome is RolloverOutcome.INITIALIZED
        assert store.read_last_rollover_date() == date(2024, 1, 10)

    def test_same_day_is_idempotent(self, service, store):
        service.increment()
        service.increment()

        result = service.check_rollover()

        assert result.outcome is RolloverOutcome.NOOP
        assert store.read_live_today_count() == 2
        assert store.list_events() == []

    def test_next_day_commits(self, service, store, clock):
        for _ in range(3):
            service.increment()
        clock.advance(days=1)

        result = service.check_rollover()

        assert result.outcome is RolloverOutcome.COMMITTED
        assert store.list_events() == [ApplicationEvent(date(2024, 1, 10), 3)]
        assert store.read_live_today_count() == 0
        assert store.read_last_rollover_date() == date(2024, 1, 11)
        assert service.check_rollover().outcome is RolloverOutcome.NOOP

    def test_rollover_follows_timezone(self, service, store, clock):
        """23:30 in New York is already the next day in UTC but not locally."""
        service.increment()
        clock.now = datetime(2024, 1, 10, 23, 30, tzinfo=ZoneInfo(TZ))

        assert service.check_rollover().outcome is RolloverOutcome.NOOP

        clock.advance(hours=1)

        assert service.check_rollover().outcome is RolloverOutcome.COMMITTED

    def test_empty_day_resets_without_event(self, service, store, clock):
        service.check_rollover()
        clock.advance(days=1)

        assert service.check_rollover().outcome is RolloverOutcome.RESET
        assert store.list_events() == []

    def test_stale_session_discards_count(self, service, store, clock):
        service.set_today(6)
        clock.advance(days=4)

        result = service.check_rollover()

        assert result.outcome is RolloverOutcome.STALE
        assert isinstance(result.warning, StaleRollover)
        assert store.list_events() == []
        assert store.read_live_today_count() == 0
        assert store.read_last_rollover_date() == date(2024, 1, 14)

    def test_clock_skew_leaves_state(self, service, store, clock):
        service.set_today(2)
        clock.advance(days=-2)

        result = service.check_rollover()

        assert result.outcome is RolloverOutcome.CLOCK_SKEW
        assert isinstance(result.warning, ClockSkew)
        assert store.read_live_today_count() == 2
        assert store.read_last_rollover_date() == date(2024, 1, 10)

    def test_strict_mode_raises(self, store, clock):
        strict = TrackerService(store, timezone=TZ, clock=clock, strict=True)
        strict.set_today(6)
        clock.advance(days=3)

        with pytest.raises(StaleRollover):
            strict.check_rollover()

        # The transition was still applied, so the next check is a no-op
        assert strict.check_rollover().outcome is RolloverOutcome.NOOP

    def test_retention_prunes_old_events(self, store, clock):
        store.upsert_event(date(2023, 12, 1), 4)
        store.upsert_event(date(2024, 1, 5), 2)
        short = TrackerService(store, timezone=TZ, clock=clock, retention_days=30)

        short.check_rollover()

        assert store.list_events() == [ApplicationEvent(date(2024, 1, 5), 2)]

    def test_zero_retention_keeps_everything(self, store, clock):
        store.upsert_event(date(2020, 1, 1), 4)

        TrackerService(store, timezone=TZ, clock=clock, retention_days=0).check_rollover()

        assert len(store.list_events()) == 1


class TestCounter:
    """Live counter operations."""

    def test_increment_decrement(self, service):
        assert service.increment() == 1
        assert service.increment() == 2
        assert service.decrement() == 1
        assert service.live_count() == 1

    def test_floor_and_reset(self, service):
        assert service.decrement() == 0
        service.set_today(5)
        assert service.reset() == 0

    def test_cap(self, service):
        service.set_today(999)

        assert service.increment() == 999

    def test_set_today_validates(self, service):
        with pytest.raises(InvalidEvent):
            service.set_today(1000)

    def test_counter_resets_after_rollover(self, service, clock):
        service.set_today(4)
        clock.advance(days=1)

        assert service.increment() == 1


class TestPreferences:
    """Daily goal and days-active correction."""

    def test_daily_goal_default_and_set(self, service):
        assert service.daily_goal() == 5

        service.set_daily_goal(8)

        assert service.daily_goal() == 8
        assert service.goal().goal == 8

    @pytest.mark.parametrize("goal", [0, 51, 2.5])
    def test_invalid_daily_goal(self, service, goal):
        with pytest.raises(InvalidEvent):
            service.set_daily_goal(goal)

    def test_adjust_days(self, service, store):
        store.upsert_event(date(2024, 1, 2), 1)
        store.upsert_event(date(2024, 1, 3), 1)

        assert service.adjust_days(3) == 3
        assert service.days_active() == 5

    def test_adjust_days_never_below_zero(self, service, store):
        store.upsert_event(date(2024, 1, 2), 1)

        assert service.adjust_days(-10) == -1
        assert service.days_active() == 0


class TestDashboard:
    """Dashboard snapshot."""

    def test_dashboard(self, service, store):
        store.upsert_event(date(2024, 1, 8), 2)
        store.upsert_event(date(2024, 1, 9), 3)
        store.upsert_event(date(2023, 12, 1), 10)
        service.set_today(4)

        snapshot = service.dashboard()

        assert snapshot.today == date(2024, 1, 10)
        assert snapshot.totals.to_dict() == {"today": 4, "week": 9, "month": 9, "overall": 19}
        assert snapshot.streaks.current_streak == 3
        assert snapshot.streaks.longest_streak == 3
        assert snapshot.days_active == 4
        assert [day.count for day in snapshot.week] == [2, 3, 4, 0, 0, 0, 0]
        assert snapshot.weekly_average == 1.3
        assert snapshot.goal.message == "Almost there!"
        assert snapshot.last_active_date == date(2024, 1, 9)

        data = snapshot.to_dict()
        assert data["today"] == "2024-01-10"
        assert len(data["week"]) == 7

    def test_dashboard_after_commit_has_no_double_count(self, service, clock):
        service.set_today(3)
        clock.advance(days=1)
        service.set_today(1)

        totals = service.totals()

        assert totals.today == 1
        assert totals.overall == 4
        assert service.streaks().current_streak == 2

    def test_run_ending_yesterday_is_current_before_first_application(self, service, store, clock):
        store.upsert_event(date(2024, 1, 8), 3)
        store.upsert_event(date(2024, 1, 9), 5)
        clock.now = datetime(2024, 1, 10, 8, 0, tzinfo=ZoneInfo(TZ))

        assert service.live_count() == 0
        assert service.streaks() == StreakResult(current_streak=2, longest_streak=2)
        assert service.dashboard().streaks.current_streak == 2

        service.increment()
        assert service.streaks() == StreakResult(current_streak=3, longest_streak=3)

        service.reset()
        assert service.streaks().current_streak == 2

    def test_run_ending_two_days_ago_is_not_current(self, service, store):
        store.upsert_event(date(2024, 1, 7), 3)
        store.upsert_event(date(2024, 1, 8), 5)

        assert service.streaks() == StreakResult(current_streak=0, longest_streak=2)

    def test_dashboard_reads_the_clock_once(self, store):
        ticks = iter(
            [
                datetime(2024, 1, 3, 23, 59, 59, 999000, tzinfo=ZoneInfo("UTC")),
                datetime(2024, 1, 4, 0, 0, 0, 1000, tzinfo=ZoneInfo("UTC")),
            ]
        )
        store.write_last_rollover_date(date(2024, 1, 3))
        store.write_live_today_count(7)
        service = TrackerService(store, timezone="UTC", clock=lambda: next(ticks))

        snapshot = service.dashboard()

        assert snapshot.today == date(2024, 1, 3)
        assert snapshot.totals.today == 7
        assert snapshot.week[-1].count == 0
        assert [day.count for day in snapshot.week if day.is_today] == [7]

    def test_totals_after_midnight_commit_yesterday(self, store):
        ticks = iter([datetime(2024, 1, 4, 0, 0, 0, 1000, tzinfo=ZoneInfo("UTC"))])
        store.write_last_rollover_date(date(2024, 1, 3))
        store.write_live_today_count(7)
        service = TrackerService(store, timezone="UTC", clock=lambda: next(ticks))

        totals = service.totals()

        assert totals.today == 0
        assert totals.overall == 7
        assert store.list_events() == [ApplicationEvent(date(2024, 1, 3), 7)]

    def test_chart(self, service, store):
        store.upsert_event(date(2023, 12, 20), 2)

        weeks = service.chart("week")
        months = service.chart("month")

        assert len(weeks) == 4
        assert len(months) == 12
        assert months[-2].label == "Dec 23"
        assert months[-2].total == 2

    def test_clear_all(self, service, store):
        service.set_today(3)
        store.upsert_event(date(2024, 1, 1), 1)

        service.clear_all()

        assert store.list_events() == []
        assert service.live_count() == 0


class TestJobLog:
    """Job log through the service."""

    def _log(self, service, company: str, day: date) -> ApplicationRecord:
        return service.log_application(ApplicationRecord(company_name=company, job_title="Engineer", date_applied=day))

    def test_summary(self, service):
        self._log(service, "Acme", date(2024, 1, 10))
        self._log(service, "Globex", date(2024, 1, 10))
        item = self._log(service, "Initech", date(2024, 1, 8))
        service.update_status(item.id, "Interviewing")

        summary = service.job_log_summary()

        assert summary.today_count == 2
        assert summary.total == 3
        assert summary.days_applied == 2
        assert summary.by_status == {"Applied": 2, "Interviewing": 1, "Rejected": 0, "Offer": 0}

    def test_summary_analytics(self, service):
        self._log(service, "Acme", date(2024, 1, 8))
        self._log(service, "Globex", date(2024, 1, 9))
        self._log(service, "Initech", date(2024, 1, 9))
        self._log(service, "Hooli", date(2024, 1, 10))

        summary = service.job_log_summary()

        assert summary.today == date(2024, 1, 10)
        assert summary.days_applied == 3
        assert [day.count for day in summary.last_7_days] == [0, 0, 0, 0, 1, 2, 1]
        assert summary.last_7_days[-1].is_today
        assert summary.streaks == StreakResult(current_streak=3, longest_streak=3)
        assert [bucket.total for bucket in summary.weekly] == [0, 0, 0, 4]
        assert summary.weekly[-1].period_start == date(2024, 1, 8)

        data = summary.to_dict()
        assert len(data["last_7_days"]) == 7
        assert data["streaks"]["current_streak"] == 3

    def test_summary_streak_before_first_record_today(self, service):
        self._log(service, "Acme", date(2024, 1, 8))
        self._log(service, "Globex", date(2024, 1, 9))

        summary = service.job_log_summary()

        assert summary.today_count == 0
        assert summary.streaks.current_streak == 2
        assert summary.last_7_days[-1].count == 0

    def test_update_unknown(self, service):
        with pytest.raises(RecordNotFound):
            service.update_status("app-missing", "Offer")

    def test_delete(self, service):
        item = self._log(service, "Acme", date(2024, 1, 10))

        service.delete_application(item.id)

        assert service.job_log_summary().total == 0

    def test_status_values(self, service):
        item = self._log(service, "Acme", date(2024, 1, 10))

        assert service.update_status(item.id, "offer").status is ApplicationStatus.OFFER


def test_service_context_closes_sqlite_store(tmp_path: Path, clock):
    store = SQLiteStore(tmp_path / "applytrack.db")

    with TrackerService(store, timezone=TZ, clock=clock) as service:
        service.increment()
        assert store._conn is not None

    assert store._conn is None
    assert SQLiteStore(tmp_path / "applytrack.db").read_live_today_count() == 1


def test_service_close_without_connection(clock):
    service = TrackerService(InMemoryStore(), timezone=TZ, clock=clock)

    service.close()

    assert service.live_count() == 0
