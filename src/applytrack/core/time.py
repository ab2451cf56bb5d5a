"""Calendar date and time zone utilities.

Every aggregate in applytrack is keyed by a calendar date in a single,
caller-specified time zone. This module turns injected instants into those
calendar dates:
- a default time zone held by TimeConfig
- projection of aware datetimes onto local calendar dates
- strict parsing of YYYY-MM-DD strings
- ISO-8601 UTC formatting for persisted timestamps
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

__all__ = [
    "TimeConfig",
    "format_utc_iso8601",
    "get_current_time",
    "get_current_utc",
    "get_default_timezone",
    "local_date",
    "parse_calendar_date",
    "parse_utc_iso8601",
    "resolve_timezone",
    "set_default_timezone",
    "yesterday_of",
]


class TimeConfig:
    """Global time configuration."""

    _default_timezone = "UTC"

    @classmethod
    def get_default_timezone_name(cls) -> str:
        """Get default timezone name.

        Returns
        -------
        str
            Timezone name (e.g., "UTC")
        """
        return cls._default_timezone

    @classmethod
    def set_default_timezone_name(cls, timezone_name: str) -> None:
        """Set default timezone.

        Parameters
        ----------
        timezone_name
            IANA timezone name (e.g., "Europe/Brussels", "America/New_York")

        Raises
        ------
        ValueError
            If timezone is invalid
        """
        try:
            ZoneInfo(timezone_name)
        except Exception as exc:
            raise ValueError(f"Invalid timezone: {timezone_name}") from exc

        cls._default_timezone = timezone_name


def get_default_timezone() -> ZoneInfo:
    """Get default timezone object."""
    return ZoneInfo(TimeConfig.get_default_timezone_name())


def set_default_timezone(timezone_name: str) -> None:
    """Set default timezone for the process.

    Raises
    ------
    ValueError
        If timezone is invalid
    """
    TimeConfig.set_default_timezone_name(timezone_name)


def resolve_timezone(tz: ZoneInfo | str | None = None) -> tzinfo:
    """Turn a timezone name, ZoneInfo or None (default) into a tzinfo."""
    if tz is None:
        return get_default_timezone()
    if isinstance(tz, str):
        try:
            return ZoneInfo(tz)
        except Exception as exc:
            raise ValueError(f"Invalid timezone: {tz}") from exc
    return tz


def get_current_time(tz: ZoneInfo | str | None = None) -> datetime:
    """Get current time in specified timezone.

    Only the collaborator layer (TrackerService, CLI) calls this; engine
    functions always receive ``now`` as an argument.
    """
    return datetime.now(resolve_timezone(tz))


def get_current_utc() -> datetime:
    """Get current time in UTC."""
    return datetime.now(timezone.utc)


def local_date(now: date | datetime, tz: ZoneInfo | str | None = None) -> date:
    """Project an instant onto a calendar date.

    Parameters
    ----------
    now
        A ``date`` (returned as is) or a ``datetime``. Aware datetimes are
        converted to ``tz`` first when one is given; naive datetimes are
        taken to already be local wall-clock time.
    tz
        Timezone the calendar is kept in

    Returns
    -------
    date
        Calendar date of ``now`` in ``tz``

    Example
    -------
    >>> from datetime import datetime, timezone
    >>> local_date(datetime(2024, 1, 3, 2, 0, tzinfo=timezone.utc), "America/New_York")
    datetime.date(2024, 1, 2)
    """
    if isinstance(now, datetime):
        if now.tzinfo is not None and tz is not None:
            now = now.astimezone(resolve_timezone(tz))
        return now.date()
    if isinstance(now, date):
        return now
    raise TypeError(f"Expected date or datetime, got {type(now).__name__}")


def yesterday_of(day: date) -> date:
    """Calendar day before ``day``."""
    return day - timedelta(days=1)


def parse_calendar_date(value: date | str) -> date:
    """Parse a calendar date.

    Accepts ``date`` objects (but not ``datetime``, which carries a time
    component) and ``YYYY-MM-DD`` strings.

    Raises
    ------
    ValueError
        If the value is not a calendar date
    """
    if isinstance(value, datetime):
        raise ValueError(f"Expected a calendar date without time, got {value!r}")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) != 10:
            raise ValueError(f"Not a YYYY-MM-DD date: {value!r}")
        return date.fromisoformat(text)
    raise ValueError(f"Not a calendar date: {value!r}")


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Naive datetimes are assumed to be UTC.

    Example
    -------
    >>> dt = datetime(2025, 10, 8, 12, 30, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2025-10-08T12:30:00+00:00'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Raises
    ------
    ValueError
        If string is not valid ISO-8601
    """
    # Handle 'Z' suffix (Zulu time = UTC)
    iso_string = iso_string.replace("Z", "+00:00")

    dt = datetime.fromisoformat(iso_string)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt
