"""Store interfaces consumed by the tracker service."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from datetime import date

    from ..applications.records import ApplicationRecord
    from ..core.events import ApplicationEvent

__all__ = ["ApplicationLog", "EventStore", "PREF_DAILY_GOAL", "PREF_MANUAL_DAYS_OFFSET"]

PREF_DAILY_GOAL = "daily_goal"
PREF_MANUAL_DAYS_OFFSET = "manual_days_offset"


class EventStore(Protocol):
    """Persistence for history, live state and user preferences.

    Implementations are scoped to a single user.
    """

    def transaction(self) -> AbstractContextManager[Any]:
        """Group writes so they are applied together."""
        ...

    def list_events(self) -> list[ApplicationEvent]:
        """All committed events, sorted by date."""
        ...

    def upsert_event(self, day: date, count: int) -> None:
        """Set the count for a day; a count of 0 removes the day."""
        ...

    def delete_event(self, day: date) -> bool:
        """Remove the event for a day. Returns whether one existed."""
        ...

    def read_live_today_count(self) -> int: ...

    def write_live_today_count(self, count: int) -> None: ...

    def read_last_rollover_date(self) -> date | None: ...

    def write_last_rollover_date(self, day: date) -> None: ...

    def read_user_preference(self, key: str, default: Any = None) -> Any: ...

    def write_user_preference(self, key: str, value: Any) -> None: ...

    def prune_events_before(self, cutoff: date) -> int:
        """Delete events dated before ``cutoff``. Returns the number removed."""
        ...

    def clear_all(self) -> None:
        """Delete all data for the user."""
        ...


class ApplicationLog(Protocol):
    """Persistence for logged job applications."""

    def add_application(self, record: ApplicationRecord) -> ApplicationRecord: ...

    def update_application(self, record: ApplicationRecord) -> ApplicationRecord:
        """Replace a stored record.

        Raises
        ------
        RecordNotFound
            If no record has this id
        """
        ...

    def delete_application(self, record_id: str) -> None:
        """Delete a record.

        Raises
        ------
        RecordNotFound
            If no record has this id
        """
        ...

    def get_application(self, record_id: str) -> ApplicationRecord: ...

    def list_applications(self) -> list[ApplicationRecord]: ...
