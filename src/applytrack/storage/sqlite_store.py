"""SQLite-backed store.

Tables, all scoped by ``user_id``:
- events: user_id, date → count (only positive counts are kept)
- live_state: user_id → live_count, last_rollover_date
- preferences: user_id, key → JSON value
- job_applications: per-application log
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any

from ..applications.records import ApplicationRecord
from ..core.errors import RecordNotFound, StoreError
from ..core.events import ApplicationEvent, check_live_count
from ..core.time import format_utc_iso8601, parse_calendar_date
from ..observability.loguru_config import get_logger

__all__ = ["SQLiteStore"]

logger = get_logger("storage")

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS events (
        user_id TEXT NOT NULL,
        date TEXT NOT NULL,
        count INTEGER NOT NULL CHECK (count > 0),
        PRIMARY KEY (user_id, date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS live_state (
        user_id TEXT PRIMARY KEY,
        live_count INTEGER NOT NULL DEFAULT 0 CHECK (live_count >= 0),
        last_rollover_date TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS preferences (
        user_id TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        PRIMARY KEY (user_id, key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS job_applications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        company_name TEXT NOT NULL,
        job_title TEXT NOT NULL,
        date_applied TEXT NOT NULL,
        application_url TEXT NOT NULL DEFAULT '',
        notes TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_job_applications_user_date
    ON job_applications(user_id, date_applied)
    """,
]


class SQLiteStore:
    """EventStore and ApplicationLog backed by one SQLite file.

    Parameters
    ----------
    db_path
        Path to SQLite database (``":memory:"`` for a private in-memory db)
    user_id
        Scope for every row read or written
    """

    def __init__(self, db_path: Path | str, user_id: str = "local") -> None:
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.user_id = user_id
        self._conn: sqlite3.Connection | None = None
        self._depth = 0
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.transaction():
            for statement in _SCHEMA:
                self._execute(statement)

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        if self._conn is None:
            try:
                self._conn = sqlite3.connect(str(self.db_path))
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot open database {self.db_path}: {exc}") from exc
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self._get_connection().execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"Database error: {exc}") from exc

    def _commit(self) -> None:
        if self._depth == 0:
            try:
                self._get_connection().commit()
            except sqlite3.Error as exc:
                raise StoreError(f"Commit failed: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[SQLiteStore]:
        """Group writes into one atomic commit.

        Nested blocks join the outermost transaction.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._get_connection().rollback()
            raise
        else:
            self._depth -= 1
            self._commit()

    # Events

    def list_events(self) -> list[ApplicationEvent]:
        rows = self._execute(
            "SELECT date, count FROM events WHERE user_id = ? ORDER BY date",
            (self.user_id,),
        ).fetchall()
        return [ApplicationEvent(parse_calendar_date(row["date"]), row["count"]) for row in rows]

    def upsert_event(self, day: date, count: int) -> None:
        event = ApplicationEvent(day, count)
        if event.count == 0:
            self._execute("DELETE FROM events WHERE user_id = ? AND date = ?", (self.user_id, event.date.isoformat()))
        else:
            self._execute(
                "INSERT OR REPLACE INTO events (user_id, date, count) VALUES (?, ?, ?)",
                (self.user_id, event.date.isoformat(), event.count),
            )
        self._commit()
        logger.debug("Event stored", date=event.date.isoformat(), count=event.count, user_id=self.user_id)

    def delete_event(self, day: date) -> bool:
        cursor = self._execute("DELETE FROM events WHERE user_id = ? AND date = ?", (self.user_id, day.isoformat()))
        self._commit()
        return cursor.rowcount > 0

    def prune_events_before(self, cutoff: date) -> int:
        cursor = self._execute("DELETE FROM events WHERE user_id = ? AND date < ?", (self.user_id, cutoff.isoformat()))
        self._commit()
        if cursor.rowcount:
            logger.info("Pruned old events", cutoff=cutoff.isoformat(), removed=cursor.rowcount)
        return cursor.rowcount

    # Live state

    def _live_row(self) -> sqlite3.Row | None:
        return self._execute(
            "SELECT live_count, last_rollover_date FROM live_state WHERE user_id = ?",
            (self.user_id,),
        ).fetchone()

    def read_live_today_count(self) -> int:
        row = self._live_row()
        return row["live_count"] if row else 0

    def write_live_today_count(self, count: int) -> None:
        count = check_live_count(count)
        self._execute(
            """
            INSERT INTO live_state (user_id, live_count) VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET live_count = excluded.live_count
            """,
            (self.user_id, count),
        )
        self._commit()

    def read_last_rollover_date(self) -> date | None:
        row = self._live_row()
        if row is None or row["last_rollover_date"] is None:
            return None
        return parse_calendar_date(row["last_rollover_date"])

    def write_last_rollover_date(self, day: date) -> None:
        self._execute(
            """
            INSERT INTO live_state (user_id, last_rollover_date) VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET last_rollover_date = excluded.last_rollover_date
            """,
            (self.user_id, day.isoformat()),
        )
        self._commit()

    # Preferences

    def read_user_preference(self, key: str, default: Any = None) -> Any:
        row = self._execute(
            "SELECT value FROM preferences WHERE user_id = ? AND key = ?",
            (self.user_id, key),
        ).fetchone()
        if row is None:
            return default
        return json.loads(row["value"])

    def write_user_preference(self, key: str, value: Any) -> None:
        self._execute(
            "INSERT OR REPLACE INTO preferences (user_id, key, value) VALUES (?, ?, ?)",
            (self.user_id, key, json.dumps(value)),
        )
        self._commit()

    def clear_all(self) -> None:
        with self.transaction():
            for table in ("events", "live_state", "preferences", "job_applications"):
                self._execute(f"DELETE FROM {table} WHERE user_id = ?", (self.user_id,))
        logger.warning("All data cleared", user_id=self.user_id)

    # Job applications

    def _record_params(self, record: ApplicationRecord) -> tuple[Any, ...]:
        return (
            record.company_name,
            record.job_title,
            record.date_applied.isoformat(),
            record.application_url,
            record.notes,
            record.status.value,
            format_utc_iso8601(record.created_at),
            record.id,
            self.user_id,
        )

    def add_application(self, record: ApplicationRecord) -> ApplicationRecord:
        self._execute(
            """
            INSERT INTO job_applications
            (company_name, job_title, date_applied, application_url, notes, status, created_at, id, user_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            self._record_params(record),
        )
        self._commit()
        logger.info("Application logged", record_id=record.id, company=record.company_name)
        return record

    def update_application(self, record: ApplicationRecord) -> ApplicationRecord:
        cursor = self._execute(
            """
            UPDATE job_applications
            SET company_name = ?, job_title = ?, date_applied = ?, application_url = ?,
                notes = ?, status = ?, created_at = ?
            WHERE id = ? AND user_id = ?
            """,
            self._record_params(record),
        )
        self._commit()
        if cursor.rowcount == 0:
            raise RecordNotFound(record.id)
        return record

    def delete_application(self, record_id: str) -> None:
        cursor = self._execute(
            "DELETE FROM job_applications WHERE id = ? AND user_id = ?",
            (record_id, self.user_id),
        )
        self._commit()
        if cursor.rowcount == 0:
            raise RecordNotFound(record_id)

    def get_application(self, record_id: str) -> ApplicationRecord:
        row = self._execute(
            "SELECT * FROM job_applications WHERE id = ? AND user_id = ?",
            (record_id, self.user_id),
        ).fetchone()
        if row is None:
            raise RecordNotFound(record_id)
        return ApplicationRecord.from_dict(dict(row))

    def list_applications(self) -> list[ApplicationRecord]:
        rows = self._execute(
            "SELECT * FROM job_applications WHERE user_id = ? ORDER BY date_applied, created_at",
            (self.user_id,),
        ).fetchall()
        return [ApplicationRecord.from_dict(dict(row)) for row in rows]

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
