"""
log_entry.py

One row of the event log as read back from SQLite.

Timestamps are stored as UTC ISO strings; ``as_dict()`` adds a local-time
rendering for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # UTC, timezone-aware
    log_level: str
    feature: str
    event: str
    reference_id: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "LogEntry":
        """Accepts a plain dict or a sqlite3.Row converted with dict()."""
        raw_ts = row["timestamp"]
        return cls(
            id=row.get("id"),
            timestamp=datetime.fromisoformat(raw_ts) if isinstance(raw_ts, str) else raw_ts,
            log_level=row.get("log_level") or "INFO",
            feature=row.get("feature") or "",
            event=row.get("event") or "",
            reference_id=row.get("reference_id"),
            message=row.get("message"),
        )

    @property
    def is_error(self) -> bool:
        return self.log_level.upper() in ("ERROR", "CRITICAL")

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp_utc": self.timestamp.replace(microsecond=0).isoformat(),
            "timestamp": self.timestamp.astimezone().strftime(DISPLAY_FORMAT),
            "log_level": self.log_level,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
        }
