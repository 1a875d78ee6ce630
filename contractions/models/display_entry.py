"""Derived, never-persisted views of a session's entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DisplayEntry:
    """
    A ContractionLogEntry enriched with its position and derived timings.

    Attributes:
        index (int): 1-based position in chronological order.
        duration_sec (int): Clamped duration of this contraction.
        interval_sec (int | None): Gap since the previous contraction ended;
            None for the first entry.
    """
    id: str
    start: int
    end: int
    created_at: int
    index: int
    duration_sec: int
    interval_sec: Optional[int]


@dataclass(frozen=True)
class StatsSummary:
    count: int = 0
    average_duration_sec: int = 0
    average_interval_sec: int = 0
    has_interval_data: bool = False


@dataclass(frozen=True)
class SessionSummary:
    """One past day as shown in the history list."""
    session_id: str
    label: str
    entries: tuple
    stats: StatsSummary
