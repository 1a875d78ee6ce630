"""
ContractionTracker – owns the tracker snapshot and wires it to time and storage.

Responsibilities:
    - Hydrate the store at startup (eager rollover check included).
    - Run every transition of ``tracker_machine`` with the injected clock.
    - Persist after each store change; a failed save is logged, never raised.
    - Stage confirmations for undo / new session / save edit.
    - Expose the read model the GUI renders (elapsed, lists, stats, warning).

Excludes:
    - Scheduling. Whoever hosts the tracker (the Tk view, a test) calls
      ``tick()`` every tick_interval_ms while ``needs_tick`` is True and
      ``check_rollover()`` every rollover_interval_ms.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Callable, List, Mapping, Optional, Protocol, Tuple

from core.helpers.date_time_helper import SystemClock, day_bucket_id
from contractions.logic import stats_service
from contractions.logic import tracker_machine as machine
from contractions.logic.edit_workflow import validate_draft
from contractions.logic.persistence_gateway import FEATURE, EventLog, PersistenceGateway, SaveResult
from contractions.logic.session_model import empty_store, generate_entry_id
from contractions.models.confirmation import ConfirmationRequest
from contractions.models.contraction_entry import Session
from contractions.models.display_entry import DisplayEntry, SessionSummary, StatsSummary
from contractions.models.editing_draft import EditField, EditingDraft
from contractions.models.tracker_settings import TrackerSettings
from contractions.models.tracker_state import Outcome, TrackerSnapshot, TrackerState

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now_ms(self) -> int: ...


TrackerListener = Callable[["ContractionTracker", Outcome], None]


class ContractionTracker:
    """Stateful facade over the pure tracker transitions."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        clock: Optional[Clock] = None,
        settings: Optional[TrackerSettings] = None,
        tz: Optional[tzinfo] = None,
        event_log: Optional[EventLog] = None,
        id_factory: Callable[[], str] = generate_entry_id,
    ) -> None:
        self._gateway = gateway
        self._clock = clock or SystemClock()
        self._settings = settings or TrackerSettings()
        self._tz = tz
        self._event_log = event_log
        self._id_factory = id_factory
        self._listeners: List[TrackerListener] = []
        self._confirmation: Optional[ConfirmationRequest] = None
        self._storage_warning = False
        self.last_save_result: Optional[SaveResult] = None

        today = self.today_id()
        store = gateway.load(today) or empty_store(today)
        self._snapshot = TrackerSnapshot(store=store)
        logger.info("Hydrated %d session(s), current=%s", len(store.sessions), store.current_session_id)

        self._persist()
        self.check_rollover()
        self._storage_warning = self._gateway.check_capacity()

    # ------------------------------------------------------------------ #
    #  Observers                                                         #
    # ------------------------------------------------------------------ #
    def subscribe(self, callback: TrackerListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: TrackerListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------ #
    #  Read model                                                        #
    # ------------------------------------------------------------------ #
    @property
    def settings(self) -> TrackerSettings:
        return self._settings

    @property
    def tz(self) -> Optional[tzinfo]:
        return self._tz

    @property
    def snapshot(self) -> TrackerSnapshot:
        return self._snapshot

    @property
    def state(self) -> TrackerState:
        return self._snapshot.state

    @property
    def needs_tick(self) -> bool:
        return self._snapshot.state is TrackerState.CONTRACTING

    @property
    def display_elapsed(self) -> str:
        return machine.display_elapsed(self._snapshot)

    @property
    def sessions(self) -> Mapping[str, Session]:
        return self._snapshot.store.sessions

    @property
    def current_session_id(self) -> str:
        return self._snapshot.store.current_session_id

    @property
    def timeline_entries(self) -> Tuple[DisplayEntry, ...]:
        return stats_service.derive_display(self._snapshot.store.current_session.entries)

    @property
    def recent_entries(self) -> Tuple[DisplayEntry, ...]:
        return stats_service.recent_entries(self.timeline_entries, self._settings.max_recent_entries)

    @property
    def stats(self) -> StatsSummary:
        return stats_service.summarize(self.timeline_entries)

    @property
    def storage_warning(self) -> bool:
        return self._storage_warning

    @property
    def editing(self) -> Optional[EditingDraft]:
        return self._snapshot.editing

    @property
    def confirmation(self) -> Optional[ConfirmationRequest]:
        return self._confirmation

    def session_summaries(self) -> Tuple[SessionSummary, ...]:
        return stats_service.session_summaries(self._snapshot.store)

    def today_id(self) -> str:
        return day_bucket_id(self._clock.now_ms(), self._tz)

    # ------------------------------------------------------------------ #
    #  Timer                                                             #
    # ------------------------------------------------------------------ #
    def toggle(self) -> Outcome:
        return self._apply(machine.toggle(
            self._snapshot, self._clock.now_ms(), self._settings, id_factory=self._id_factory
        ))

    def start(self) -> Outcome:
        return self._apply(machine.start(self._snapshot, self._clock.now_ms()))

    def stop(self) -> Outcome:
        """Manual stop; Outcome.TOO_SHORT leaves the timer running."""
        return self._apply(machine.stop(
            self._snapshot, self._clock.now_ms(), self._settings, id_factory=self._id_factory
        ))

    def tick(self) -> Outcome:
        return self._apply(machine.tick(
            self._snapshot, self._clock.now_ms(), self._settings, id_factory=self._id_factory
        ))

    def check_rollover(self) -> Outcome:
        previous = self.current_session_id
        outcome = self._apply(machine.check_rollover(self._snapshot, self.today_id()))
        if outcome is Outcome.ROLLED_OVER:
            logger.info("Day rollover: %s -> %s", previous, self.current_session_id)
            self._report("session_rollover", f"{previous} -> {self.current_session_id}")
        return outcome

    # ------------------------------------------------------------------ #
    #  Session actions                                                   #
    # ------------------------------------------------------------------ #
    def clear_session(self) -> Outcome:
        """Unconditional; the hold-to-confirm gesture lives in the GUI."""
        return self._apply(machine.clear_session(self._snapshot))

    def request_undo(self) -> Optional[ConfirmationRequest]:
        if not self._snapshot.store.current_session.entries:
            return None
        return self._stage(ConfirmationRequest(
            action="undo",
            title="Undo Last Entry",
            message="Undo the most recent contraction entry?",
            confirm_text="Undo",
            variant="warning",
        ))

    def request_new_session(self) -> ConfirmationRequest:
        return self._stage(ConfirmationRequest(
            action="new_session",
            title="Start New Session",
            message="Start a fresh session for today? Previous entries stay in history.",
            confirm_text="Start New Session",
        ))

    # ------------------------------------------------------------------ #
    #  Editing                                                           #
    # ------------------------------------------------------------------ #
    def open_editor(self, session_id: str, entry_id: str) -> Outcome:
        return self._apply(machine.open_edit(self._snapshot, session_id, entry_id))

    def adjust_edit(self, field: EditField, delta_seconds: int) -> Outcome:
        return self._apply(machine.adjust_edit(self._snapshot, field, delta_seconds, self._settings))

    def reset_edit(self) -> Outcome:
        return self._apply(machine.reset_edit(self._snapshot))

    def cancel_edit(self) -> Outcome:
        if self._confirmation is not None and self._confirmation.action == "save_edit":
            self._confirmation = None
        return self._apply(machine.cancel_edit(self._snapshot))

    def request_save_edit(self) -> Tuple[bool, Optional[str]]:
        """
        Validates the draft and stages a confirmation.

        Returns:
            (True, None) when a confirmation was staged, (False, reason) when
            the draft was refused; the editor stays open in that case.
        """
        draft = self._snapshot.editing
        if draft is None:
            return False, None
        ok, reason = validate_draft(draft, self._settings)
        if not ok:
            logger.info("Edit of %s refused: %s", draft.entry_id, reason)
            return False, reason
        self._stage(ConfirmationRequest(
            action="save_edit",
            title="Save Changes",
            message="Save changes to this entry?",
            confirm_text="Save",
        ))
        return True, None

    # ------------------------------------------------------------------ #
    #  Confirmation                                                      #
    # ------------------------------------------------------------------ #
    def confirm(self) -> Outcome:
        """Commits the staged action. Re-evaluated against the current state."""
        request = self._confirmation
        self._confirmation = None
        if request is None:
            return Outcome.NOOP
        if request.action == "undo":
            return self._apply(machine.undo_last(self._snapshot))
        if request.action == "new_session":
            return self._apply(machine.new_session(self._snapshot, self.today_id()))
        return self._apply(machine.save_edit(self._snapshot, self._settings))

    def dismiss_confirmation(self) -> None:
        if self._confirmation is not None:
            self._confirmation = None
            self._notify(Outcome.NOOP)

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _stage(self, request: ConfirmationRequest) -> ConfirmationRequest:
        self._confirmation = request
        self._notify(Outcome.NOOP)
        return request

    def _apply(self, transition: machine.Transition) -> Outcome:
        snapshot, outcome = transition
        previous = self._snapshot
        if snapshot is previous:
            return outcome
        self._snapshot = snapshot
        if snapshot.store is not previous.store:
            self._persist()
            self._storage_warning = self._gateway.check_capacity()
        self._notify(outcome)
        return outcome

    def _persist(self) -> None:
        self.last_save_result = self._gateway.save(self._snapshot.store)
        if not self.last_save_result.ok:
            logger.warning("Continuing in memory; last save failed: %s", self.last_save_result.error)

    def _notify(self, outcome: Outcome) -> None:
        for callback in list(self._listeners):
            callback(self, outcome)

    def _report(self, event: str, message: str) -> None:
        if self._event_log is not None:
            self._event_log.log(FEATURE, event, message=message)
