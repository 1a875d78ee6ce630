"""
Tracker state machine – pure transitions over a TrackerSnapshot.

Each function takes the current snapshot (plus the current time or day id
where needed) and returns ``(new_snapshot, Outcome)``. No clock reads, no I/O:
the caller supplies time and persists the result.

States:  IDLE --start--> CONTRACTING --stop(manual|auto)--> IDLE
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Tuple

from core.helpers.date_time_helper import format_duration
from contractions.logic import edit_workflow
from contractions.logic.session_model import (
    append_entry,
    generate_entry_id,
    new_entry,
    replace_session_entries,
    sort_chronologically,
    switch_session,
)
from contractions.models.editing_draft import EditField
from contractions.models.tracker_settings import TrackerSettings
from contractions.models.tracker_state import Outcome, TrackerSnapshot, TrackerState

Transition = Tuple[TrackerSnapshot, Outcome]

_DEFAULTS = TrackerSettings()


# --------------------------------------------------------------------------- #
#  Timer                                                                      #
# --------------------------------------------------------------------------- #

def start(snapshot: TrackerSnapshot, now_ms: int) -> Transition:
    if snapshot.state is TrackerState.CONTRACTING:
        return snapshot, Outcome.NOOP
    return (
        replace(snapshot, state=TrackerState.CONTRACTING, start_timestamp=now_ms, elapsed_sec=0),
        Outcome.STARTED,
    )


def stop(
    snapshot: TrackerSnapshot,
    now_ms: int,
    settings: TrackerSettings = _DEFAULTS,
    *,
    auto: bool = False,
    id_factory: Callable[[], str] = generate_entry_id,
) -> Transition:
    """
    Ends the running contraction and logs it to the current session.

    A manual stop before min_duration_sec is refused (state unchanged,
    Outcome.TOO_SHORT). The logged duration never exceeds max_duration_sec.
    """
    if snapshot.state is not TrackerState.CONTRACTING or snapshot.start_timestamp is None:
        return snapshot, Outcome.NOOP

    started = snapshot.start_timestamp
    raw_elapsed_sec = (now_ms - started) // 1000
    if not auto and raw_elapsed_sec < settings.min_duration_sec:
        return snapshot, Outcome.TOO_SHORT

    duration_sec = min(raw_elapsed_sec, settings.max_duration_sec)
    if duration_sec <= 0:
        # clock went backwards; nothing loggable
        return snapshot, Outcome.NOOP

    entry = new_entry(started, started + duration_sec * 1000, now_ms, id_factory=id_factory)
    store = append_entry(snapshot.store, snapshot.store.current_session_id, entry)
    return (
        replace(snapshot, store=store, state=TrackerState.IDLE, start_timestamp=None, elapsed_sec=0),
        Outcome.AUTO_STOPPED if auto else Outcome.STOPPED,
    )


def toggle(
    snapshot: TrackerSnapshot,
    now_ms: int,
    settings: TrackerSettings = _DEFAULTS,
    *,
    id_factory: Callable[[], str] = generate_entry_id,
) -> Transition:
    """Tap handler: start when idle, manual stop when contracting. Debounced."""
    last = snapshot.last_tap_ms
    if last is not None and now_ms - last < settings.tap_debounce_ms:
        return snapshot, Outcome.DEBOUNCED

    tapped = replace(snapshot, last_tap_ms=now_ms)
    if tapped.state is TrackerState.IDLE:
        return start(tapped, now_ms)
    return stop(tapped, now_ms, settings, id_factory=id_factory)


def tick(
    snapshot: TrackerSnapshot,
    now_ms: int,
    settings: TrackerSettings = _DEFAULTS,
    *,
    id_factory: Callable[[], str] = generate_entry_id,
) -> Transition:
    """Refreshes the elapsed seconds; auto-stops at the ceiling."""
    if snapshot.state is not TrackerState.CONTRACTING or snapshot.start_timestamp is None:
        return snapshot, Outcome.NOOP

    elapsed = (now_ms - snapshot.start_timestamp) // 1000
    if elapsed >= settings.max_duration_sec:
        return stop(snapshot, now_ms, settings, auto=True, id_factory=id_factory)
    return replace(snapshot, elapsed_sec=max(0, elapsed)), Outcome.TICKED


def display_elapsed(snapshot: TrackerSnapshot) -> str:
    if snapshot.state is not TrackerState.CONTRACTING:
        return "00:00"
    return format_duration(snapshot.elapsed_sec)


# --------------------------------------------------------------------------- #
#  Sessions                                                                   #
# --------------------------------------------------------------------------- #

def check_rollover(snapshot: TrackerSnapshot, today_id: str) -> Transition:
    """Moves the current session pointer to *today_id* when the day changed."""
    if snapshot.store.current_session_id == today_id:
        return snapshot, Outcome.NOOP
    return replace(snapshot, store=switch_session(snapshot.store, today_id)), Outcome.ROLLED_OVER


def new_session(snapshot: TrackerSnapshot, today_id: str) -> Transition:
    store = switch_session(snapshot.store, today_id)
    if store is snapshot.store:
        return snapshot, Outcome.NOOP
    return replace(snapshot, store=store), Outcome.SESSION_SWITCHED


def undo_last(snapshot: TrackerSnapshot) -> Transition:
    """Removes the latest (by start) entry of the current session."""
    session = snapshot.store.current_session
    if not session.entries:
        return snapshot, Outcome.NOOP

    ordered = sort_chronologically(session.entries)
    removed = ordered[-1]
    store = replace_session_entries(snapshot.store, session.id, ordered[:-1])
    editing = snapshot.editing
    if editing is not None and editing.session_id == session.id and editing.entry_id == removed.id:
        editing = None
    return replace(snapshot, store=store, editing=editing), Outcome.UNDONE


def clear_session(snapshot: TrackerSnapshot) -> Transition:
    """Empties the current session; the session itself stays."""
    session = snapshot.store.current_session
    if not session.entries:
        return snapshot, Outcome.NOOP

    store = replace_session_entries(snapshot.store, session.id, ())
    editing = snapshot.editing
    if editing is not None and editing.session_id == session.id:
        editing = None
    return replace(snapshot, store=store, editing=editing), Outcome.CLEARED


# --------------------------------------------------------------------------- #
#  Editing                                                                    #
# --------------------------------------------------------------------------- #

def open_edit(snapshot: TrackerSnapshot, session_id: str, entry_id: str) -> Transition:
    draft = edit_workflow.open_editor(snapshot.store, session_id, entry_id)
    if draft is None:
        return snapshot, Outcome.NOOP
    return replace(snapshot, editing=draft), Outcome.EDIT_OPENED


def adjust_edit(
    snapshot: TrackerSnapshot,
    field: EditField,
    delta_seconds: int,
    settings: TrackerSettings = _DEFAULTS,
) -> Transition:
    if snapshot.editing is None:
        return snapshot, Outcome.NOOP
    draft = edit_workflow.adjust(snapshot.editing, field, delta_seconds, settings)
    return replace(snapshot, editing=draft), Outcome.EDIT_ADJUSTED


def reset_edit(snapshot: TrackerSnapshot) -> Transition:
    if snapshot.editing is None:
        return snapshot, Outcome.NOOP
    return replace(snapshot, editing=edit_workflow.reset_draft(snapshot.editing)), Outcome.EDIT_ADJUSTED


def save_edit(snapshot: TrackerSnapshot, settings: TrackerSettings = _DEFAULTS) -> Transition:
    """
    Commits the draft and closes the editor. A draft below the minimum
    duration is refused with Outcome.EDIT_REJECTED and the editor stays open.
    """
    draft = snapshot.editing
    if draft is None:
        return snapshot, Outcome.NOOP
    ok, _reason = edit_workflow.validate_draft(draft, settings)
    if not ok:
        return snapshot, Outcome.EDIT_REJECTED
    store = edit_workflow.apply_draft(snapshot.store, draft)
    return replace(snapshot, store=store, editing=None), Outcome.EDIT_SAVED


def cancel_edit(snapshot: TrackerSnapshot) -> Transition:
    if snapshot.editing is None:
        return snapshot, Outcome.NOOP
    return replace(snapshot, editing=None), Outcome.EDIT_CANCELLED
