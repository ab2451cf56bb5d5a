"""Application event model and boundary validation.

An ApplicationEvent is the number of applications submitted on one
calendar day. Engine functions accept any iterable of events and validate
it once with ``validate_events``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

from .errors import InvalidEvent
from .time import parse_calendar_date

__all__ = [
    "ApplicationEvent",
    "MergePolicy",
    "check_live_count",
    "coerce_event",
    "events_by_date",
    "merge_events",
    "validate_events",
]

MergePolicy = Literal["sum", "replace"]


@dataclass(frozen=True, order=True)
class ApplicationEvent:
    """Applications submitted on a calendar day.

    Attributes
    ----------
    date : date
        Calendar date (no time component)
    count : int
        Number of applications, never negative
    """

    date: date
    count: int

    def __post_init__(self) -> None:
        # Strings go through coerce_event; datetimes carry a time component
        if isinstance(self.date, datetime) or not isinstance(self.date, date):
            raise InvalidEvent(f"Invalid event date: {self.date!r}", value=self.date)
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidEvent(f"Event count must be an integer, got {self.count!r}", value=self.count)
        if self.count < 0:
            raise InvalidEvent(f"Event count must be >= 0, got {self.count} on {self.date}", value=self.count)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.date.isoformat(), "count": self.count}


def coerce_event(raw: ApplicationEvent | Mapping[str, Any] | tuple[Any, Any]) -> ApplicationEvent:
    """Build an event from a mapping ``{"date", "count"}`` or a ``(date, count)`` pair.

    Date strings must be ``YYYY-MM-DD``.

    Raises
    ------
    InvalidEvent
        If the date or count is malformed
    """
    if isinstance(raw, ApplicationEvent):
        return raw

    if isinstance(raw, Mapping):
        if "date" not in raw or "count" not in raw:
            raise InvalidEvent(f"Event needs 'date' and 'count': {dict(raw)!r}", value=raw)
        raw_date, raw_count = raw["date"], raw["count"]
    else:
        try:
            raw_date, raw_count = raw
        except (TypeError, ValueError) as exc:
            raise InvalidEvent(f"Cannot read event from {raw!r}", value=raw) from exc

    try:
        day = parse_calendar_date(raw_date)
    except (TypeError, ValueError) as exc:
        raise InvalidEvent(f"Invalid event date: {raw_date!r}", value=raw_date) from exc

    return ApplicationEvent(date=day, count=raw_count)


def validate_events(events: Iterable[Any]) -> list[ApplicationEvent]:
    """Validate an event snapshot at the engine boundary.

    Identical duplicates collapse into one event. Two events on the same
    date with different counts mean upstream corruption and are rejected.

    Returns
    -------
    list[ApplicationEvent]
        Unique events sorted by date

    Raises
    ------
    InvalidEvent
        On malformed events or conflicting duplicates
    """
    seen: dict[date, ApplicationEvent] = {}
    for raw in events:
        event = coerce_event(raw)
        existing = seen.get(event.date)
        if existing is not None and existing.count != event.count:
            raise InvalidEvent(
                f"Conflicting counts for {event.date}: {existing.count} and {event.count}",
                value=event.date,
            )
        seen[event.date] = event

    return sorted(seen.values())


def events_by_date(events: Iterable[Any]) -> dict[date, int]:
    """Validated ``{date: count}`` lookup for an event snapshot."""
    return {event.date: event.count for event in validate_events(events)}


def merge_events(events: Iterable[Any], policy: MergePolicy = "sum") -> list[ApplicationEvent]:
    """Merge raw events that may repeat dates.

    Collaborators that ingest rows (imports, per-application logs) use this
    before handing events to the engine.

    Parameters
    ----------
    events
        Raw events, possibly with repeated dates
    policy
        ``"sum"`` adds counts on the same date, ``"replace"`` keeps the last one

    Returns
    -------
    list[ApplicationEvent]
        Unique events sorted by date, zero-count days dropped
    """
    if policy not in ("sum", "replace"):
        raise ValueError(f"Unknown merge policy: {policy}")

    merged: dict[date, int] = {}
    for raw in events:
        event = coerce_event(raw)
        if policy == "sum":
            merged[event.date] = merged.get(event.date, 0) + event.count
        else:
            merged[event.date] = event.count

    return [ApplicationEvent(day, count) for day, count in sorted(merged.items()) if count > 0]


def check_live_count(today_count: Any) -> int:
    """Validate the live counter for today.

    Raises
    ------
    InvalidEvent
        If the count is not a non-negative integer
    """
    if isinstance(today_count, bool) or not isinstance(today_count, int) or today_count < 0:
        raise InvalidEvent(f"today_count must be a non-negative integer, got {today_count!r}", value=today_count)
    return today_count
