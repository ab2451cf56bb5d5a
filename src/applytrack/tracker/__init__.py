"""Live counter, day rollover and the tracker service."""

from .counter import MAX_DAILY_COUNT, LiveCounter
from .rollover import RolloverOutcome, RolloverResult, RolloverState, plan_rollover
from .service import DashboardSnapshot, JobLogSummary, TrackerService

__all__ = [
    "MAX_DAILY_COUNT",
    "DashboardSnapshot",
    "JobLogSummary",
    "LiveCounter",
    "RolloverOutcome",
    "RolloverResult",
    "RolloverState",
    "TrackerService",
    "plan_rollover",
]
