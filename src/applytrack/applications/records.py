"""Per-application job log.

Each submitted application can be logged with company, title and status.
The log feeds the engine through ``events_from_records``: one event per
date, counting the records on that date.
"""

from __future__ import annotations

import uuid
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any

from ..core.errors import InvalidEvent
from ..core.events import ApplicationEvent
from ..core.time import format_utc_iso8601, get_current_utc, parse_calendar_date, parse_utc_iso8601

__all__ = [
    "ApplicationRecord",
    "ApplicationStatus",
    "events_from_records",
    "filter_records",
    "status_distribution",
]


class ApplicationStatus(str, Enum):
    """Pipeline status of a job application."""

    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    REJECTED = "Rejected"
    OFFER = "Offer"

    @classmethod
    def parse(cls, value: str | ApplicationStatus) -> ApplicationStatus:
        """Parse a status case-insensitively.

        Raises
        ------
        ValueError
            If the status is unknown
        """
        if isinstance(value, ApplicationStatus):
            return value
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        valid = ", ".join(status.value for status in cls)
        raise ValueError(f"Unknown status '{value}'. Valid: {valid}")


def _new_record_id() -> str:
    return f"app-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ApplicationRecord:
    """One logged job application.

    Attributes
    ----------
    company_name : str
        Employer
    job_title : str
        Position applied for
    date_applied : date
        Calendar date of the application
    application_url : str
        Link to the posting
    notes : str
        Free text
    status : ApplicationStatus
        Current pipeline status
    id : str
        Record identifier
    created_at : datetime
        UTC creation time
    """

    company_name: str
    job_title: str
    date_applied: date
    application_url: str = ""
    notes: str = ""
    status: ApplicationStatus = ApplicationStatus.APPLIED
    id: str = field(default_factory=_new_record_id)
    created_at: datetime = field(default_factory=get_current_utc)

    def __post_init__(self) -> None:
        if not self.company_name.strip():
            raise InvalidEvent("company_name must not be empty", value=self.company_name)
        if not self.job_title.strip():
            raise InvalidEvent("job_title must not be empty", value=self.job_title)
        if isinstance(self.date_applied, datetime) or not isinstance(self.date_applied, date):
            raise InvalidEvent(f"Invalid date_applied: {self.date_applied!r}", value=self.date_applied)
        if not isinstance(self.status, ApplicationStatus):
            raise InvalidEvent(f"Invalid status: {self.status!r}", value=self.status)

    def with_status(self, status: ApplicationStatus | str) -> ApplicationRecord:
        """Copy of this record with a new status."""
        return replace(self, status=ApplicationStatus.parse(status))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "company_name": self.company_name,
            "job_title": self.job_title,
            "date_applied": self.date_applied.isoformat(),
            "application_url": self.application_url,
            "notes": self.notes,
            "status": self.status.value,
            "created_at": format_utc_iso8601(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApplicationRecord:
        """Build a record from ``to_dict`` output or a database row.

        Raises
        ------
        InvalidEvent
            If a field is malformed
        """
        try:
            return cls(
                id=data["id"],
                company_name=data["company_name"],
                job_title=data["job_title"],
                date_applied=parse_calendar_date(data["date_applied"]),
                application_url=data.get("application_url") or "",
                notes=data.get("notes") or "",
                status=ApplicationStatus.parse(data.get("status") or ApplicationStatus.APPLIED),
                created_at=parse_utc_iso8601(data["created_at"]),
            )
        except (KeyError, ValueError) as exc:
            if isinstance(exc, InvalidEvent):
                raise
            raise InvalidEvent(f"Invalid application record: {exc}", value=data) from exc


def events_from_records(records: Iterable[ApplicationRecord]) -> list[ApplicationEvent]:
    """One event per date, the count being the number of records on it."""
    per_day = Counter(record.date_applied for record in records)
    return [ApplicationEvent(day, count) for day, count in sorted(per_day.items())]


def status_distribution(records: Iterable[ApplicationRecord]) -> dict[str, int]:
    """Count of records per status, every status present in pipeline order."""
    counts = Counter(record.status for record in records)
    return {status.value: counts.get(status, 0) for status in ApplicationStatus}


def filter_records(
    records: Iterable[ApplicationRecord],
    *,
    start: date | None = None,
    end: date | None = None,
    status: ApplicationStatus | str | None = None,
) -> list[ApplicationRecord]:
    """Records within ``[start, end]`` and with the given status.

    Returns
    -------
    list[ApplicationRecord]
        Matching records, newest application date first
    """
    wanted = ApplicationStatus.parse(status) if status is not None else None

    selected = [
        record
        for record in records
        if (start is None or record.date_applied >= start)
        and (end is None or record.date_applied <= end)
        and (wanted is None or record.status == wanted)
    ]
    return sorted(selected, key=lambda record: (record.date_applied, record.created_at), reverse=True)
