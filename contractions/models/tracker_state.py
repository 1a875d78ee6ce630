"""Tracker state machine states and the immutable snapshot it operates on."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .contraction_entry import Store
from .editing_draft import EditingDraft


class TrackerState(Enum):
    IDLE = "idle"
    CONTRACTING = "contracting"


class Outcome(Enum):
    """What a transition did, reported synchronously to the caller."""
    STARTED = "started"
    STOPPED = "stopped"
    AUTO_STOPPED = "auto_stopped"
    TOO_SHORT = "too_short"
    DEBOUNCED = "debounced"
    TICKED = "ticked"
    ROLLED_OVER = "rolled_over"
    UNDONE = "undone"
    CLEARED = "cleared"
    SESSION_SWITCHED = "session_switched"
    EDIT_OPENED = "edit_opened"
    EDIT_ADJUSTED = "edit_adjusted"
    EDIT_REJECTED = "edit_rejected"
    EDIT_SAVED = "edit_saved"
    EDIT_CANCELLED = "edit_cancelled"
    NOOP = "noop"

    @property
    def changes_entries(self) -> bool:
        """True when the logged entries or the current session may differ afterwards."""
        return self in _ENTRY_CHANGING


_ENTRY_CHANGING = frozenset({
    Outcome.STOPPED,
    Outcome.AUTO_STOPPED,
    Outcome.ROLLED_OVER,
    Outcome.UNDONE,
    Outcome.CLEARED,
    Outcome.SESSION_SWITCHED,
    Outcome.EDIT_SAVED,
})


@dataclass(frozen=True)
class TrackerSnapshot:
    """
    Everything the tracker knows at one instant.

    Transitions in ``contractions.logic.tracker_machine`` take a snapshot and
    return a new one; nothing mutates a snapshot in place.
    """
    store: Store
    state: TrackerState = TrackerState.IDLE
    start_timestamp: Optional[int] = None
    elapsed_sec: int = 0
    last_tap_ms: Optional[int] = None
    editing: Optional[EditingDraft] = None
