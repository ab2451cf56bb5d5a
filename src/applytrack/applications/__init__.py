"""Job-application log and CSV export."""

from .export import CSV_HEADERS, export_csv, export_filename
from .records import (
    ApplicationRecord,
    ApplicationStatus,
    events_from_records,
    filter_records,
    status_distribution,
)

__all__ = [
    "ApplicationRecord",
    "ApplicationStatus",
    "CSV_HEADERS",
    "events_from_records",
    "export_csv",
    "export_filename",
    "filter_records",
    "status_distribution",
]
