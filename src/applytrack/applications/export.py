"""CSV export of the job log."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import date
from typing import TextIO

from ..core.time import format_utc_iso8601
from .records import ApplicationRecord

__all__ = ["CSV_HEADERS", "export_csv", "export_filename"]

CSV_HEADERS = [
    "Company Name",
    "Job Title",
    "Date Applied",
    "Application URL",
    "Status",
    "Notes",
    "Created At",
]


def export_filename(today: date) -> str:
    """Download name for an export made on ``today``."""
    return f"job_applications_{today.isoformat()}.csv"


def export_csv(records: Iterable[ApplicationRecord], stream: TextIO) -> int:
    """Write records as CSV with a header row.

    Parameters
    ----------
    records
        Records to export, written in the given order
    stream
        Text stream opened with ``newline=""``

    Returns
    -------
    int
        Number of records written
    """
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADERS)

    written = 0
    for record in records:
        writer.writerow(
            [
                record.company_name,
                record.job_title,
                record.date_applied.isoformat(),
                record.application_url,
                record.status.value,
                record.notes,
                format_utc_iso8601(record.created_at),
            ]
        )
        written += 1

    return written
