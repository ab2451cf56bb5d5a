"""Daily goal progress and milestone messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

__all__ = [
    "DEFAULT_DAILY_GOAL",
    "MAX_DAILY_GOAL",
    "GoalProgress",
    "MilestoneKind",
    "goal_just_reached",
    "goal_progress",
    "milestone_message",
]

DEFAULT_DAILY_GOAL = 5
MAX_DAILY_GOAL = 50

MilestoneKind = Literal["count", "streak", "days"]

# (threshold, message), highest first
_GOAL_TIERS = [
    (100.0, "Goal achieved!"),
    (76.0, "Almost there!"),
    (26.0, "Good progress!"),
    (0.0, "Keep going!"),
]

_MILESTONES: dict[str, list[tuple[int, str]]] = {
    "count": [(50, "Excellent!"), (25, "Great job!"), (10, "Good work!"), (0, "Keep going!")],
    "streak": [(30, "Amazing!"), (14, "Great!"), (7, "Good!"), (0, "Keep going!")],
    "days": [(30, "Amazing consistency!"), (14, "Great progress!"), (7, "Good momentum!"), (0, "Keep it up!")],
}


@dataclass(frozen=True)
class GoalProgress:
    """Progress of today's count toward the daily goal.

    Attributes
    ----------
    count : int
        Applications today
    goal : int
        Daily goal (>= 1)
    percent : float
        Progress capped at 100
    achieved : bool
        Whether the goal is met
    message : str
        Encouragement for the current tier
    """

    count: int
    goal: int
    percent: float
    achieved: bool
    message: str

    @property
    def remaining(self) -> int:
        return max(0, self.goal - self.count)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "count": self.count,
            "goal": self.goal,
            "percent": round(self.percent),
            "achieved": self.achieved,
            "remaining": self.remaining,
            "message": self.message,
        }


def _check_goal(goal: int) -> int:
    if isinstance(goal, bool) or not isinstance(goal, int) or goal < 1:
        raise ValueError(f"Daily goal must be an integer >= 1, got {goal!r}")
    return goal


def goal_progress(count: int, goal: int = DEFAULT_DAILY_GOAL) -> GoalProgress:
    """Progress of ``count`` toward ``goal``.

    Raises
    ------
    ValueError
        If goal is below 1
    """
    goal = _check_goal(goal)
    percent = min(max(count, 0) / goal * 100.0, 100.0)
    message = next(text for threshold, text in _GOAL_TIERS if percent >= threshold)

    return GoalProgress(
        count=count,
        goal=goal,
        percent=percent,
        achieved=count >= goal,
        message=message,
    )


def goal_just_reached(previous: int, current: int, goal: int) -> bool:
    """True only on the change that takes the count to or past the goal."""
    goal = _check_goal(goal)
    return previous < goal <= current


def milestone_message(kind: MilestoneKind, value: int) -> str:
    """Encouragement for a count, streak length or days-applied figure."""
    try:
        tiers = _MILESTONES[kind]
    except KeyError:
        raise ValueError(f"Unknown milestone kind: {kind}") from None

    return next(text for threshold, text in tiers if max(value, 0) >= threshold)
