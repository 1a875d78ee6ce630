"""
Data model for tracker tuning constants.
"""

from dataclasses import dataclass, fields
from typing import Any, Tuple


@dataclass(frozen=True)
class TrackerSettings:
    """
    Encapsulates the timing rules of the contraction tracker.

    Attributes:
        min_duration_sec (int): Shortest accepted manual stop / edited duration.
        max_duration_sec (int): Ceiling; a running timer auto-stops here.
        tap_debounce_ms (int): Toggles closer together than this are ignored.
        tick_interval_ms (int): Elapsed-time refresh cadence while contracting.
        rollover_interval_ms (int): Cadence of the day-rollover check.
        max_recent_entries (int): Length of the "recent" list.
        edit_window_ms (int): Max drift of an edited timestamp from its original.
        edit_adjust_options (tuple): Step sizes (seconds) offered by the editor.
        clear_hold_ms (int): Hold time of the clear-session gesture.
    """
    min_duration_sec: int = 5
    max_duration_sec: int = 180
    tap_debounce_ms: int = 1000
    tick_interval_ms: int = 1000
    rollover_interval_ms: int = 60_000
    max_recent_entries: int = 10
    edit_window_ms: int = 120_000
    edit_adjust_options: Tuple[int, ...] = (-60, -10, 10, 60)
    clear_hold_ms: int = 1500

    @classmethod
    def from_config(cls, section: Any) -> "TrackerSettings":
        """
        Builds settings from a config section object (e.g. the [Tracker]
        dataclass of ConfigService). Attributes the section lacks keep their
        defaults.
        """
        values = {f.name: getattr(section, f.name) for f in fields(cls) if hasattr(section, f.name)}
        return cls(**values)
