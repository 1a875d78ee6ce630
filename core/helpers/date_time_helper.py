"""
date_time_helper.py

Provides helper functions for conversion and formatting of millisecond
timestamps: durations, signed deltas, day-bucket ids and wall-clock labels.

All features and modules should use ONLY these helpers for date/time logic.
Timestamps are integer milliseconds since the epoch; calendar decisions are
made in the local zone unless an explicit tzinfo is passed.
"""

from __future__ import annotations

import time
from datetime import datetime, tzinfo
from typing import Optional

try:
    from zoneinfo import ZoneInfo  # Python 3.9+
except ImportError:
    raise ImportError("Python 3.9+ with zoneinfo is required for timezone support.")

DAY_ID_FORMAT = "%Y-%m-%d"


class SystemClock:
    """Wall-clock time source returning integer milliseconds since the epoch."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


def resolve_timezone(name: str | None) -> Optional[tzinfo]:
    """
    Maps a configured zone name to a tzinfo.

    "" and "local" mean the system zone (returned as None, which makes
    datetime.fromtimestamp() use local time).
    """
    if not name or name.strip().lower() == "local":
        return None
    return ZoneInfo(name.strip())


def to_local_datetime(ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Converts an epoch-ms timestamp to an aware (tz) or naive local datetime."""
    return datetime.fromtimestamp(ms / 1000, tz)


def day_bucket_id(now_ms: int, tz: Optional[tzinfo] = None) -> str:
    """
    Returns the calendar day key "YYYY-MM-DD" for a timestamp.

    Stable for every timestamp within one local day; changes exactly at
    local midnight.
    """
    return to_local_datetime(now_ms, tz).strftime(DAY_ID_FORMAT)


def clamped_duration_seconds(ms: int) -> int:
    """max(0, floor(ms / 1000))"""
    return max(0, ms // 1000)


def format_duration(seconds: int) -> str:
    """Renders seconds as MM:SS; negative input is clamped to 00:00."""
    safe = max(0, int(seconds))
    minutes, secs = divmod(safe, 60)
    return f"{minutes:02d}:{secs:02d}"


def signed_delta(seconds: int) -> str:
    """Renders a signed delta like "+01:10" / "-00:10"; zero is "+00:00"."""
    if seconds == 0:
        return "+00:00"
    sign = "+" if seconds > 0 else "-"
    return f"{sign}{format_duration(abs(seconds))}"


def format_clock_time(ms: int, tz: Optional[tzinfo] = None, *, seconds: bool = False) -> str:
    """Local wall-clock time of a timestamp, HH:MM or HH:MM:SS."""
    fmt = "%H:%M:%S" if seconds else "%H:%M"
    return to_local_datetime(ms, tz).strftime(fmt)


def format_session_label(session_id: str) -> str:
    """
    Formats a day id as a short label, e.g. "2026-10-19" -> "Mon, Oct 19".

    :param session_id: Day id in YYYY-MM-DD form
    :return: Label, or the id unchanged if it does not parse
    """
    try:
        day = datetime.strptime(session_id, DAY_ID_FORMAT)
    except (TypeError, ValueError):
        return session_id
    return f"{day:%a, %b} {day.day}"


def is_day_id(value: object) -> bool:
    """True if *value* is a string in YYYY-MM-DD form naming a real date."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        datetime.strptime(value, DAY_ID_FORMAT)
    except ValueError:
        return False
    return True
