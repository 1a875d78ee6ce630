"""Transitions of the tracker state machine, driven with explicit timestamps."""
from __future__ import annotations

from contractions.logic import tracker_machine as machine
from contractions.logic.session_model import build_session, empty_store
from contractions.logic.stats_service import derive_display
from contractions.models.contraction_entry import ContractionLogEntry, Store
from contractions.models.editing_draft import EditingDraft
from contractions.models.tracker_state import Outcome, TrackerSnapshot, TrackerState
from contractions.tests.conftest import DAY1, DAY2, T0


def _idle() -> TrackerSnapshot:
    return TrackerSnapshot(store=empty_store(DAY1))


def _entries(snapshot: TrackerSnapshot):
    return snapshot.store.current_session.entries


def test_start_records_timestamp_and_resets_elapsed() -> None:
    snap, outcome = machine.start(_idle(), T0)
    assert outcome is Outcome.STARTED
    assert snap.state is TrackerState.CONTRACTING
    assert snap.start_timestamp == T0
    assert snap.elapsed_sec == 0


def test_start_while_contracting_is_noop() -> None:
    snap, _ = machine.start(_idle(), T0)
    again, outcome = machine.start(snap, T0 + 4000)
    assert outcome is Outcome.NOOP
    assert again is snap


def test_manual_stop_below_minimum_keeps_running() -> None:
    snap, _ = machine.start(_idle(), T0)
    after, outcome = machine.stop(snap, T0 + 3000)
    assert outcome is Outcome.TOO_SHORT
    assert after.state is TrackerState.CONTRACTING
    assert _entries(after) == ()


def test_manual_stop_after_six_seconds_logs_entry(ids) -> None:
    snap, _ = machine.start(_idle(), T0)
    after, outcome = machine.stop(snap, T0 + 6000, id_factory=ids)
    assert outcome is Outcome.STOPPED
    assert after.state is TrackerState.IDLE
    assert after.start_timestamp is None
    (entry,) = _entries(after)
    assert entry.start == T0
    assert entry.end == T0 + 6000
    assert entry.created_at == T0 + 6000
    assert derive_display(_entries(after))[0].duration_sec == 6


def test_manual_stop_floors_partial_seconds() -> None:
    snap, _ = machine.start(_idle(), T0)
    after, _ = machine.stop(snap, T0 + 7900)
    assert _entries(after)[0].end == T0 + 7000


def test_stop_when_idle_is_noop() -> None:
    snap = _idle()
    assert machine.stop(snap, T0) == (snap, Outcome.NOOP)


def test_tick_updates_elapsed() -> None:
    snap, _ = machine.start(_idle(), T0)
    snap, outcome = machine.tick(snap, T0 + 42_500)
    assert outcome is Outcome.TICKED
    assert snap.elapsed_sec == 42
    assert machine.display_elapsed(snap) == "00:42"


def test_tick_auto_stops_at_ceiling_exactly_once() -> None:
    snap, _ = machine.start(_idle(), T0)
    snap, outcome = machine.tick(snap, T0 + 179_000)
    assert outcome is Outcome.TICKED

    snap, outcome = machine.tick(snap, T0 + 180_000)
    assert outcome is Outcome.AUTO_STOPPED
    assert snap.state is TrackerState.IDLE

    snap, outcome = machine.tick(snap, T0 + 181_000)
    assert outcome is Outcome.NOOP
    entries = _entries(snap)
    assert len(entries) == 1
    assert derive_display(entries)[0].duration_sec == 180


def test_forgotten_timer_is_capped_at_ceiling() -> None:
    snap, _ = machine.start(_idle(), T0)
    snap, outcome = machine.tick(snap, T0 + 3_600_000)
    assert outcome is Outcome.AUTO_STOPPED
    assert _entries(snap)[0].end == T0 + 180_000


def test_manual_stop_past_ceiling_is_capped() -> None:
    snap, _ = machine.start(_idle(), T0)
    snap, outcome = machine.stop(snap, T0 + 200_000)
    assert outcome is Outcome.STOPPED
    assert _entries(snap)[0].end == T0 + 180_000


def test_toggle_within_debounce_window_is_ignored() -> None:
    snap, outcome = machine.toggle(_idle(), T0)
    assert outcome is Outcome.STARTED

    second, outcome = machine.toggle(snap, T0 + 999)
    assert outcome is Outcome.DEBOUNCED
    assert second is snap
    assert second.state is TrackerState.CONTRACTING


def test_toggle_after_debounce_window_stops() -> None:
    snap, _ = machine.toggle(_idle(), T0)
    snap, outcome = machine.toggle(snap, T0 + 6000)
    assert outcome is Outcome.STOPPED
    assert len(_entries(snap)) == 1


def test_rejected_toggle_still_counts_for_debounce() -> None:
    snap, _ = machine.toggle(_idle(), T0)
    snap, outcome = machine.toggle(snap, T0 + 1500)
    assert outcome is Outcome.TOO_SHORT
    assert snap.last_tap_ms == T0 + 1500

    _, outcome = machine.toggle(snap, T0 + 2000)
    assert outcome is Outcome.DEBOUNCED


def test_rollover_switches_and_keeps_previous_day() -> None:
    entry = ContractionLogEntry("a", T0, T0 + 30_000, T0 + 30_000)
    day1 = build_session(DAY1, [entry])
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: day1}))

    rolled, outcome = machine.check_rollover(snap, DAY2)
    assert outcome is Outcome.ROLLED_OVER
    assert rolled.store.current_session_id == DAY2
    assert rolled.store.sessions[DAY2].entries == ()
    assert rolled.store.sessions[DAY1] is day1

    same, outcome = machine.check_rollover(rolled, DAY2)
    assert outcome is Outcome.NOOP
    assert same is rolled


def test_rollover_reuses_existing_session_for_new_day() -> None:
    existing = build_session(DAY2, [ContractionLogEntry("b", T0, T0 + 10_000, T0)])
    store = Store(DAY1, {DAY1: build_session(DAY1), DAY2: existing})
    rolled, _ = machine.check_rollover(TrackerSnapshot(store=store), DAY2)
    assert rolled.store.sessions[DAY2] is existing


def test_undo_removes_latest_by_start() -> None:
    early = ContractionLogEntry("early", T0, T0 + 10_000, T0 + 500_000)
    late = ContractionLogEntry("late", T0 + 300_000, T0 + 320_000, T0 + 320_000)
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: build_session(DAY1, [late, early])}))

    after, outcome = machine.undo_last(snap)
    assert outcome is Outcome.UNDONE
    assert [e.id for e in _entries(after)] == ["early"]


def test_undo_on_empty_session_is_noop() -> None:
    snap = _idle()
    assert machine.undo_last(snap) == (snap, Outcome.NOOP)


def test_undo_closes_editor_of_removed_entry() -> None:
    entry = ContractionLogEntry("only", T0, T0 + 10_000, T0)
    draft = EditingDraft(DAY1, "only", T0, T0 + 10_000, T0, T0 + 10_000)
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: build_session(DAY1, [entry])}), editing=draft)
    after, _ = machine.undo_last(snap)
    assert after.editing is None


def test_clear_session_empties_but_keeps_session() -> None:
    entry = ContractionLogEntry("a", T0, T0 + 10_000, T0)
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: build_session(DAY1, [entry])}))
    cleared, outcome = machine.clear_session(snap)
    assert outcome is Outcome.CLEARED
    assert DAY1 in cleared.store.sessions
    assert cleared.store.sessions[DAY1].entries == ()

    again, outcome = machine.clear_session(cleared)
    assert outcome is Outcome.NOOP
    assert again is cleared


def test_new_session_switches_to_today() -> None:
    snap, outcome = machine.new_session(_idle(), DAY2)
    assert outcome is Outcome.SESSION_SWITCHED
    assert snap.store.current_session_id == DAY2
    assert set(snap.store.sessions) == {DAY1, DAY2}

    _, outcome = machine.new_session(snap, DAY2)
    assert outcome is Outcome.NOOP


def test_stop_appends_to_session_in_start_order(ids) -> None:
    later = ContractionLogEntry("later", T0 + 600_000, T0 + 630_000, T0)
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: build_session(DAY1, [later])}))
    snap, _ = machine.start(snap, T0)
    snap, _ = machine.stop(snap, T0 + 20_000, id_factory=ids)
    assert [e.id for e in _entries(snap)] == ["e1", "later"]


def test_save_edit_below_minimum_is_rejected() -> None:
    entry = ContractionLogEntry("a", T0, T0 + 10_000, T0)
    draft = EditingDraft(DAY1, "a", T0, T0 + 4_000, T0, T0 + 10_000)
    snap = TrackerSnapshot(store=Store(DAY1, {DAY1: build_session(DAY1, [entry])}), editing=draft)

    after, outcome = machine.save_edit(snap)
    assert outcome is Outcome.EDIT_REJECTED
    assert after is snap
    assert after.editing is draft


def test_open_edit_for_missing_entry_creates_no_draft() -> None:
    snap = _idle()
    after, outcome = machine.open_edit(snap, DAY1, "missing")
    assert outcome is Outcome.NOOP
    assert after.editing is None


def test_auto_stop_after_clock_went_backwards_logs_nothing() -> None:
    snap, _ = machine.start(_idle(), T0)
    after, outcome = machine.stop(snap, T0 - 5_000, auto=True)
    assert outcome is Outcome.NOOP
    assert after is snap
    assert _entries(after) == ()


def test_auto_stop_within_the_same_second_logs_nothing() -> None:
    snap, _ = machine.start(_idle(), T0)
    after, outcome = machine.stop(snap, T0 + 999, auto=True)
    assert outcome is Outcome.NOOP
    assert after.state is TrackerState.CONTRACTING


def test_entry_changing_outcomes() -> None:
    assert Outcome.STOPPED.changes_entries
    assert Outcome.EDIT_SAVED.changes_entries
    assert Outcome.ROLLED_OVER.changes_entries
    assert not Outcome.TICKED.changes_entries
    assert not Outcome.STARTED.changes_entries
    assert not Outcome.NOOP.changes_entries
