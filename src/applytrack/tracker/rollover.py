"""Day rollover planning.

The rollover moves the live counter into history when the calendar day
changes. ``plan_rollover`` is pure: it decides what should happen from the
stored state and today's date, and the service applies the result.

Outcomes:
- NOOP: already rolled over today
- INITIALIZED: no rollover was ever recorded
- COMMITTED: yesterday's live count is committed as an event
- RESET: yesterday had no activity, nothing to commit
- STALE: more than one day passed, the live count is discarded
- CLOCK_SKEW: recorded date lies in the future, nothing changes
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from ..core.errors import ClockSkew, RolloverWarning, StaleRollover
from ..core.events import ApplicationEvent, check_live_count
from ..core.time import yesterday_of

__all__ = [
    "RolloverOutcome",
    "RolloverResult",
    "RolloverState",
    "plan_rollover",
]


class RolloverOutcome(str, Enum):
    """What a rollover check decided."""

    NOOP = "noop"
    INITIALIZED = "initialized"
    COMMITTED = "committed"
    RESET = "reset"
    STALE = "stale"
    CLOCK_SKEW = "clock_skew"


@dataclass(frozen=True)
class RolloverState:
    """Persisted live state.

    Attributes
    ----------
    live_count : int
        Uncommitted count for the day in ``last_rollover_date``
    last_rollover_date : date | None
        Day the counter was last reset, None if never
    """

    live_count: int = 0
    last_rollover_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "live_count": self.live_count,
            "last_rollover_date": self.last_rollover_date.isoformat() if self.last_rollover_date else None,
        }


@dataclass(frozen=True)
class RolloverResult:
    """Planned rollover transition.

    Attributes
    ----------
    outcome : RolloverOutcome
        Decision taken
    committed : ApplicationEvent | None
        Event to upsert into history, if any
    state : RolloverState
        Live state after the transition
    warning : RolloverWarning | None
        ClockSkew or StaleRollover when the rollover was not normal
    """

    outcome: RolloverOutcome
    committed: ApplicationEvent | None
    state: RolloverState
    warning: RolloverWarning | None = None

    @property
    def changed(self) -> bool:
        """Whether the state must be written back."""
        return self.outcome not in (RolloverOutcome.NOOP, RolloverOutcome.CLOCK_SKEW)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "outcome": self.outcome.value,
            "committed": self.committed.to_dict() if self.committed else None,
            "state": self.state.to_dict(),
            "warning": self.warning.code if self.warning else None,
        }


def plan_rollover(state: RolloverState, today: date) -> RolloverResult:
    """Decide the rollover transition for ``today``.

    Applying the result and planning again on the same day yields NOOP.

    Parameters
    ----------
    state
        Current persisted live state
    today
        Current calendar date in the user's timezone

    Returns
    -------
    RolloverResult
        Planned transition

    Example
    -------
    >>> result = plan_rollover(RolloverState(4, date(2024, 3, 4)), date(2024, 3, 5))
    >>> result.outcome, result.committed
    (<RolloverOutcome.COMMITTED: 'committed'>, ApplicationEvent(date=datetime.date(2024, 3, 4), count=4))
    """
    live_count = check_live_count(state.live_count)
    last = state.last_rollover_date
    fresh = RolloverState(live_count=0, last_rollover_date=today)

    if last is None:
        return RolloverResult(RolloverOutcome.INITIALIZED, None, fresh)

    if last == today:
        return RolloverResult(RolloverOutcome.NOOP, None, state)

    if last > today:
        warning = ClockSkew(
            f"Last rollover {last} is after today {today}; leaving live count untouched",
            last_rollover_date=last,
            today=today,
        )
        return RolloverResult(RolloverOutcome.CLOCK_SKEW, None, state, warning)

    if last == yesterday_of(today):
        if live_count > 0:
            return RolloverResult(RolloverOutcome.COMMITTED, ApplicationEvent(last, live_count), fresh)
        return RolloverResult(RolloverOutcome.RESET, None, fresh)

    warning = StaleRollover(
        f"Last rollover {last} is {(today - last).days} days old; not saving stale count {live_count}",
        last_rollover_date=last,
        today=today,
    )
    return RolloverResult(RolloverOutcome.STALE, None, fresh, warning)
