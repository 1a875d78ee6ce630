"""
===============================================================================
SQLite Key-Value Store
-------------------------------------------------------------------------------
Purpose:
    Persist string records under string keys in a single SQLite file.

Integration:
    - The DB path is read from [Storage] path by the caller (main.py).
    - ``quota_bytes`` bounds the file size; the page count is used to report
      usage and to refuse writes that would grow the file past the quota.

Notes:
    - sqlite3 errors are translated to StorageError so callers only handle
      the adapter's exception types.
===============================================================================
"""
from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Optional

from contractions.adapters.key_value_store import KeyValueStore, StorageEstimate
from contractions.exceptions.errors import StorageError, StorageQuotaExceededError


class SqliteKeyValueStore(KeyValueStore):
    """
    Key-value table ``kv(key, value, updated_at)`` in a SQLite database.

    Properties
    ----------
    conn : sqlite3.Connection
        Lazily created connection with the schema ensured.
    """

    def __init__(self, db_path: Path | str, *, quota_bytes: int = 0) -> None:
        self._db_path = Path(db_path)
        self._quota = int(quota_bytes)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return a shared sqlite3.Connection; create it on first use."""
        if self._conn is None:
            try:
                if str(self._db_path) != ":memory:":
                    self._db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(str(self._db_path))
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at INTEGER NOT NULL
                    )
                    """
                )
                conn.commit()
            except (sqlite3.Error, OSError) as ex:
                raise StorageError(f"Cannot open key-value store at {self._db_path}: {ex}") from ex
            self._conn = conn
        return self._conn

    def get(self, key: str) -> Optional[str]:
        try:
            row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as ex:
            raise StorageError(f"Read of {key!r} failed: {ex}") from ex
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        if self._quota > 0:
            current = self.estimate()
            incoming = len(value.encode("utf-8"))
            if current is not None and current.usage + incoming > self._quota:
                raise StorageQuotaExceededError(
                    f"Writing {incoming} bytes would exceed quota of {self._quota} bytes."
                )
        try:
            with self.conn:
                self.conn.execute(
                    "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                    (key, value, int(time.time() * 1000)),
                )
        except sqlite3.Error as ex:
            raise StorageError(f"Write of {key!r} failed: {ex}") from ex

    def estimate(self) -> Optional[StorageEstimate]:
        if self._quota <= 0:
            return None
        try:
            page_count = self.conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = self.conn.execute("PRAGMA page_size").fetchone()[0]
        except sqlite3.Error as ex:
            raise StorageError(f"Cannot estimate storage usage: {ex}") from ex
        return StorageEstimate(usage=int(page_count) * int(page_size), quota=self._quota)

    def close(self) -> None:
        """Close the current connection if present and clear the handle."""
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None
