"""Error taxonomy for applytrack.

InvalidEvent is raised at the engine boundary for malformed input.
ClockSkew and StaleRollover are rollover warnings: they are returned on
RolloverResult.warning and only raised when the caller asks for strict mode.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

__all__ = [
    "ApplyTrackError",
    "ClockSkew",
    "InvalidEvent",
    "RecordNotFound",
    "RolloverWarning",
    "StaleRollover",
    "StoreError",
]


class ApplyTrackError(Exception):
    """Base class for all applytrack errors."""

    pass


class InvalidEvent(ApplyTrackError, ValueError):
    """Raised when an application event is malformed.

    Negative counts, non-integer counts, non-calendar dates and duplicate
    dates with conflicting counts are rejected, never coerced.
    """

    def __init__(self, message: str, *, value: object = None) -> None:
        super().__init__(message)
        self.value = value


class RolloverWarning(ApplyTrackError):
    """Day rollover could not be applied normally."""

    code = "rollover_warning"

    def __init__(self, message: str, *, last_rollover_date: date, today: date) -> None:
        super().__init__(message)
        self.last_rollover_date = last_rollover_date
        self.today = today


class ClockSkew(RolloverWarning):
    """Recorded rollover date lies in the future relative to now.

    Nothing is committed or reset.
    """

    code = "clock_skew"


class StaleRollover(RolloverWarning):
    """Recorded rollover date is more than one day behind now.

    The live count cannot be attributed to a day with certainty, so it is
    discarded instead of back-filled.
    """

    code = "stale_rollover"

    @property
    def gap_days(self) -> int:
        return (self.today - self.last_rollover_date).days


class StoreError(ApplyTrackError):
    """Raised when the backing store fails."""

    pass


class RecordNotFound(StoreError, KeyError):
    """Raised when a job-application record id does not exist."""

    pass
