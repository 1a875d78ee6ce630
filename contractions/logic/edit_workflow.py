"""
Bounded manual adjustment of a logged entry.

An EditingDraft holds the original and draft timestamps of one entry. Every
adjustment is clamped against the *original* value, so repeated small steps
can never drift further than the edit window, and the draft always keeps
the minimum duration.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from contractions.logic.session_model import replace_session_entries
from contractions.models.contraction_entry import Store
from contractions.models.editing_draft import EditField, EditingDraft
from contractions.models.tracker_settings import TrackerSettings

logger = logging.getLogger(__name__)

_DEFAULTS = TrackerSettings()


def open_editor(store: Store, session_id: str, entry_id: str) -> Optional[EditingDraft]:
    """Draft for the given entry, or None if the session or entry is unknown."""
    session = store.sessions.get(session_id)
    if session is None:
        return None
    target = next((e for e in session.entries if e.id == entry_id), None)
    if target is None:
        return None
    return EditingDraft(
        session_id=session_id,
        entry_id=entry_id,
        draft_start=target.start,
        draft_end=target.end,
        original_start=target.start,
        original_end=target.end,
    )


def adjust(
    draft: EditingDraft,
    field: EditField,
    delta_seconds: int,
    settings: TrackerSettings = _DEFAULTS,
) -> EditingDraft:
    """
    Moves the draft start or end by *delta_seconds*.

    The result stays within ±edit_window_ms of that field's original value,
    and start stays at least min_duration_sec before end (and vice versa).
    """
    min_gap = settings.min_duration_sec * 1000
    window = settings.edit_window_ms

    if field == "start":
        value = _clamp(draft.draft_start + delta_seconds * 1000,
                       draft.original_start - window, draft.original_start + window)
        value = min(value, draft.draft_end - min_gap)
        return replace(draft, draft_start=value)
    if field == "end":
        value = _clamp(draft.draft_end + delta_seconds * 1000,
                       draft.original_end - window, draft.original_end + window)
        value = max(value, draft.draft_start + min_gap)
        return replace(draft, draft_end=value)
    raise ValueError(f"Unknown edit field: {field!r}")


def reset_draft(draft: EditingDraft) -> EditingDraft:
    return replace(draft, draft_start=draft.original_start, draft_end=draft.original_end)


def validate_draft(draft: EditingDraft, settings: TrackerSettings = _DEFAULTS) -> Tuple[bool, Optional[str]]:
    if draft.duration_ms // 1000 < settings.min_duration_sec:
        return False, f"Duration must be at least {settings.min_duration_sec} seconds."
    return True, None


def apply_draft(store: Store, draft: EditingDraft) -> Store:
    """
    Writes the draft timestamps into the entry and re-sorts its session.

    The store is returned unchanged if the target disappeared meanwhile.
    """
    session = store.sessions.get(draft.session_id)
    if session is None or not any(e.id == draft.entry_id for e in session.entries):
        logger.warning("Edit target %s/%s no longer exists", draft.session_id, draft.entry_id)
        return store
    entries = [
        replace(e, start=draft.draft_start, end=draft.draft_end) if e.id == draft.entry_id else e
        for e in session.entries
    ]
    return replace_session_entries(store, draft.session_id, entries)


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)
