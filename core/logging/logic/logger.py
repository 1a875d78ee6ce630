"""
core/logging/logic/logger.py
============================

Thread-safe event logger with a SQLite backend.

Features report notable events (persistence failures, hydration repairs,
session rollovers) here; the log survives restarts so a failed write can be
diagnosed after the fact. Diagnostics that do not need to persist go through
the standard ``logging`` module instead.

Performance optimizations:
- Reuses a single database connection instead of creating new ones per operation
- Connection is thread-safe via check_same_thread=False and explicit locking
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.logging.models.log_entry import LogEntry

_log = logging.getLogger(__name__)


class EventLogger:
    """SQLite-backed event log. Use :func:`get_event_logger` for the shared instance."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    # ------------------------------------------------------------------ #
    #  Connection management (reuse single connection)                   #
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the reusable database connection. Caller holds the lock."""
        if self._conn is None:
            if str(self.db_path) != ":memory:":
                os.makedirs(self.db_path.parent, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """
        Persists one event. A failing write is reported to stdlib logging
        and otherwise dropped; logging never raises into the caller.
        """
        entry = LogEntry(
            id=None,
            timestamp=datetime.now(timezone.utc),
            log_level=level,
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message,
        )
        try:
            self._insert_log(entry)
        except sqlite3.Error as ex:
            _log.error("Event log write failed (%s/%s): %s", feature, event, ex)

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        """Newest first."""
        return self.query_logs(limit=limit)

    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        """Filters combine with AND; None means "any"."""
        filters = {"feature": feature, "event": event, "reference_id": reference_id, "log_level": level}
        active = [(column, value) for column, value in filters.items() if value is not None]
        where = " AND ".join(f"{column} = ?" for column, _ in active) or "1=1"
        params = [value for _, value in active] + [limit]

        with self._lock:
            rows = self._get_connection().execute(
                f"SELECT * FROM logs WHERE {where} ORDER BY id DESC LIMIT ?", params
            ).fetchall()
        return [LogEntry.from_dict(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM logs")
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        """Initialize the database schema. Thread-safe via lock."""
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO'
                )
                """
            )
            conn.commit()

    def _insert_log(self, entry: LogEntry) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO logs
                    (timestamp, feature, event, reference_id, message, log_level)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp.isoformat(),
                    entry.feature,
                    entry.event,
                    entry.reference_id,
                    entry.message,
                    entry.log_level,
                ),
            )
            conn.commit()


# --------------------------------------------------------------------------- #
#  Shared instance                                                            #
# --------------------------------------------------------------------------- #
_instance: EventLogger | None = None
_instance_lock = threading.Lock()


def get_event_logger(db_path: Path | str | None = None) -> EventLogger:
    """
    Returns the process-wide EventLogger, creating it on first use.

    The database path comes from *db_path* or, if omitted, from the
    [Logging] db_path configuration value.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                if db_path is None:
                    from core.config.config_service import ConfigService
                    db_path = ConfigService().logging.db_path
                _instance = EventLogger(db_path)
    return _instance


def configure_logging(level: str = "INFO") -> None:
    """Sets up stdlib logging for the application entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
