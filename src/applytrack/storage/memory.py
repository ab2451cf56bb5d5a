"""In-memory store, used by tests and short-lived sessions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

from ..applications.records import ApplicationRecord
from ..core.errors import RecordNotFound, StoreError
from ..core.events import ApplicationEvent, check_live_count

__all__ = ["InMemoryStore"]


class InMemoryStore:
    """EventStore and ApplicationLog kept in dictionaries."""

    def __init__(
        self,
        events: list[ApplicationEvent] | None = None,
        *,
        live_count: int = 0,
        last_rollover_date: date | None = None,
    ) -> None:
        self._events: dict[date, int] = {event.date: event.count for event in events or [] if event.count > 0}
        self._live_count = check_live_count(live_count)
        self._last_rollover_date = last_rollover_date
        self._preferences: dict[str, Any] = {}
        self._applications: dict[str, ApplicationRecord] = {}

    @contextmanager
    def transaction(self) -> Iterator[InMemoryStore]:
        yield self

    def list_events(self) -> list[ApplicationEvent]:
        return [ApplicationEvent(day, count) for day, count in sorted(self._events.items())]

    def upsert_event(self, day: date, count: int) -> None:
        event = ApplicationEvent(day, count)
        if event.count == 0:
            self._events.pop(event.date, None)
        else:
            self._events[event.date] = event.count

    def delete_event(self, day: date) -> bool:
        return self._events.pop(day, None) is not None

    def read_live_today_count(self) -> int:
        return self._live_count

    def write_live_today_count(self, count: int) -> None:
        self._live_count = check_live_count(count)

    def read_last_rollover_date(self) -> date | None:
        return self._last_rollover_date

    def write_last_rollover_date(self, day: date) -> None:
        self._last_rollover_date = day

    def read_user_preference(self, key: str, default: Any = None) -> Any:
        return self._preferences.get(key, default)

    def write_user_preference(self, key: str, value: Any) -> None:
        self._preferences[key] = value

    def prune_events_before(self, cutoff: date) -> int:
        old = [day for day in self._events if day < cutoff]
        for day in old:
            del self._events[day]
        return len(old)

    def clear_all(self) -> None:
        self._events.clear()
        self._preferences.clear()
        self._applications.clear()
        self._live_count = 0
        self._last_rollover_date = None

    def add_application(self, record: ApplicationRecord) -> ApplicationRecord:
        if record.id in self._applications:
            raise StoreError(f"Application {record.id} already exists")
        self._applications[record.id] = record
        return record

    def update_application(self, record: ApplicationRecord) -> ApplicationRecord:
        if record.id not in self._applications:
            raise RecordNotFound(record.id)
        self._applications[record.id] = record
        return record

    def delete_application(self, record_id: str) -> None:
        if self._applications.pop(record_id, None) is None:
            raise RecordNotFound(record_id)

    def get_application(self, record_id: str) -> ApplicationRecord:
        try:
            return self._applications[record_id]
        except KeyError:
            raise RecordNotFound(record_id) from None

    def list_applications(self) -> list[ApplicationRecord]:
        return sorted(self._applications.values(), key=lambda record: (record.date_applied, record.created_at))
