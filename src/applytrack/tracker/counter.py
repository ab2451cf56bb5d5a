"""Live counter for today's applications."""

from __future__ import annotations

from ..core.errors import InvalidEvent

__all__ = ["MAX_DAILY_COUNT", "LiveCounter"]

MAX_DAILY_COUNT = 999


class LiveCounter:
    """Bounded counter for the current day.

    The value stays within ``0..MAX_DAILY_COUNT``: increments past the cap
    and decrements below zero are no-ops.

    Example
    -------
    >>> counter = LiveCounter(998)
    >>> counter.increment(), counter.increment()
    (999, 999)
    """

    def __init__(self, value: int = 0) -> None:
        self._value = 0
        self.set(value)

    @property
    def value(self) -> int:
        return self._value

    def increment(self) -> int:
        if self._value < MAX_DAILY_COUNT:
            self._value += 1
        return self._value

    def decrement(self) -> int:
        if self._value > 0:
            self._value -= 1
        return self._value

    def reset(self) -> int:
        self._value = 0
        return self._value

    def set(self, value: int) -> int:
        """Set the count directly.

        Raises
        ------
        InvalidEvent
            If value is not an integer in ``0..MAX_DAILY_COUNT``
        """
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_DAILY_COUNT:
            raise InvalidEvent(f"Today's count must be between 0 and {MAX_DAILY_COUNT}, got {value!r}", value=value)
        self._value = value
        return self._value

    def __repr__(self) -> str:
        return f"LiveCounter({self._value})"
