"""Stores for history, live state, preferences and the job log."""

from .base import PREF_DAILY_GOAL, PREF_MANUAL_DAYS_OFFSET, ApplicationLog, EventStore
from .memory import InMemoryStore
from .sqlite_store import SQLiteStore

__all__ = [
    "ApplicationLog",
    "EventStore",
    "InMemoryStore",
    "PREF_DAILY_GOAL",
    "PREF_MANUAL_DAYS_OFFSET",
    "SQLiteStore",
]
