"""Core models, errors and calendar helpers."""

from .errors import (
    ApplyTrackError,
    ClockSkew,
    InvalidEvent,
    RecordNotFound,
    RolloverWarning,
    StaleRollover,
    StoreError,
)
from .events import ApplicationEvent, coerce_event, events_by_date, merge_events, validate_events
from .time import local_date, parse_calendar_date

__all__ = [
    # Models
    "ApplicationEvent",
    "coerce_event",
    "events_by_date",
    "merge_events",
    "validate_events",
    # Calendar
    "local_date",
    "parse_calendar_date",
    # Errors
    "ApplyTrackError",
    "InvalidEvent",
    "RolloverWarning",
    "ClockSkew",
    "StaleRollover",
    "StoreError",
    "RecordNotFound",
]
