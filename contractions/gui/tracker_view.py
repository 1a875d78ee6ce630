"""
TrackerView (Tkinter)
---------------------
Live view of the contraction tracker: big toggle button, elapsed timer, last
entries, running stats.

UX notes:
- Hosts the tracker's two timers via Tk's `after`: a 1 Hz tick while a
  contraction runs, and the once-a-minute day rollover check.
- "Clear today" needs a sustained press (hold-to-confirm).
- Undo, new session and saving an edit ask for confirmation first.
"""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Optional

from core.helpers.date_time_helper import format_clock_time, format_duration
from contractions.gui.confirm import ask_confirmation
from contractions.gui.edit_entry_dialog import EditEntryDialog
from contractions.logic.tracker_service import ContractionTracker
from contractions.models.tracker_state import Outcome, TrackerState


class TrackerView(ttk.Frame):
    """
    Main tracker view. Mount this into any container (e.g., a notebook tab).
    """

    def __init__(self, parent: tk.Misc, tracker: ContractionTracker) -> None:
        super().__init__(parent)
        self._tracker = tracker
        self._settings = tracker.settings
        self._tick_after_id: Optional[str] = None
        self._rollover_after_id: Optional[str] = None
        self._clear_after_id: Optional[str] = None

        self._build_ui()
        self._tracker.subscribe(self._on_tracker_changed)
        self._refresh()
        self._schedule_rollover()
        self.bind("<Destroy>", self._on_destroy, add="+")

    # --- UI -----------------------------------------------------------------

    def _build_ui(self) -> None:
        self.columnconfigure(0, weight=1)

        self.warning_var = tk.StringVar(value="")
        self.warning_label = ttk.Label(self, textvariable=self.warning_var, foreground="#b35c00")
        self.warning_label.grid(row=0, column=0, sticky="ew", padx=12, pady=(8, 0))

        self.elapsed_var = tk.StringVar(value="00:00")
        elapsed = ttk.Label(self, textvariable=self.elapsed_var, anchor="center")
        elapsed.configure(font=("Segoe UI", 40, "bold"))
        elapsed.grid(row=1, column=0, sticky="ew", padx=12, pady=(12, 0))

        self.toggle_btn = ttk.Button(self, text="Start", command=self._on_toggle)
        self.toggle_btn.grid(row=2, column=0, sticky="ew", padx=48, pady=12, ipady=18)

        self.stats_var = tk.StringVar(value="")
        ttk.Label(self, textvariable=self.stats_var, anchor="center").grid(
            row=3, column=0, sticky="ew", padx=12
        )

        columns = ("index", "time", "duration", "interval")
        self.tree = ttk.Treeview(self, columns=columns, show="headings", height=10)
        for col, text, width in zip(columns, ("#", "Start", "Duration", "Interval"), (40, 90, 90, 90)):
            self.tree.heading(col, text=text)
            self.tree.column(col, width=width, anchor=tk.CENTER)
        self.tree.grid(row=4, column=0, sticky="nsew", padx=12, pady=8)
        self.tree.bind("<Double-Button-1>", self._on_edit_selected)
        self.rowconfigure(4, weight=1)

        actions = ttk.Frame(self)
        actions.grid(row=5, column=0, sticky="ew", padx=12, pady=(0, 12))
        ttk.Button(actions, text="Undo last", command=self._on_undo).pack(side=tk.LEFT, padx=2)
        ttk.Button(actions, text="New session", command=self._on_new_session).pack(side=tk.LEFT, padx=2)
        self.clear_btn = ttk.Button(actions, text="Hold to clear today")
        self.clear_btn.pack(side=tk.RIGHT, padx=2)
        self.clear_btn.bind("<ButtonPress-1>", self._begin_clear_hold)
        self.clear_btn.bind("<ButtonRelease-1>", self._cancel_clear_hold)
        self.clear_btn.bind("<Leave>", self._cancel_clear_hold)

    # --- Tick loops ---------------------------------------------------------

    def _schedule_tick(self) -> None:
        if self._tick_after_id is None and self._tracker.needs_tick:
            self._tick_after_id = self.after(self._settings.tick_interval_ms, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_after_id = None
        self._tracker.tick()
        self._refresh_elapsed()
        self._schedule_tick()

    def _schedule_rollover(self) -> None:
        self._rollover_after_id = self.after(self._settings.rollover_interval_ms, self._on_rollover)

    def _on_rollover(self) -> None:
        self._tracker.check_rollover()
        self._schedule_rollover()

    def _on_destroy(self, event: tk.Event) -> None:
        if event.widget is not self:
            return
        self._tracker.unsubscribe(self._on_tracker_changed)
        for after_id in (self._tick_after_id, self._rollover_after_id, self._clear_after_id):
            if after_id is not None:
                self.after_cancel(after_id)

    # --- Callbacks ----------------------------------------------------------

    def _on_toggle(self) -> None:
        self._tracker.toggle()
        self._schedule_tick()

    def _on_undo(self) -> None:
        ask_confirmation(self, self._tracker, self._tracker.request_undo())

    def _on_new_session(self) -> None:
        ask_confirmation(self, self._tracker, self._tracker.request_new_session())

    def _on_edit_selected(self, _event: tk.Event) -> None:
        selection = self.tree.selection()
        if not selection:
            return
        if self._tracker.open_editor(self._tracker.current_session_id, selection[0]) is Outcome.EDIT_OPENED:
            EditEntryDialog(self, self._tracker)

    def _begin_clear_hold(self, _event: tk.Event) -> None:
        if not self._tracker.timeline_entries or self._clear_after_id is not None:
            return
        self.clear_btn.configure(text="Keep holding...")
        self._clear_after_id = self.after(self._settings.clear_hold_ms, self._on_clear_held)

    def _cancel_clear_hold(self, _event: tk.Event) -> None:
        if self._clear_after_id is not None:
            self.after_cancel(self._clear_after_id)
            self._clear_after_id = None
        self.clear_btn.configure(text="Hold to clear today")

    def _on_clear_held(self) -> None:
        self._clear_after_id = None
        self.clear_btn.configure(text="Hold to clear today")
        self._tracker.clear_session()

    def _on_tracker_changed(self, _tracker: ContractionTracker, outcome: Outcome) -> None:
        # keep the list (and its selection) unless entries actually changed
        if outcome.changes_entries:
            self._refresh()
        else:
            self._refresh_elapsed()

    # --- Rendering ----------------------------------------------------------

    def _refresh_elapsed(self) -> None:
        self.elapsed_var.set(self._tracker.display_elapsed)
        contracting = self._tracker.state is TrackerState.CONTRACTING
        self.toggle_btn.configure(text="Stop" if contracting else "Start")

    def _refresh(self) -> None:
        self._refresh_elapsed()
        stats = self._tracker.stats
        interval = format_duration(stats.average_interval_sec) if stats.has_interval_data else "--:--"
        self.stats_var.set(
            f"Today: {stats.count}   Avg duration: {format_duration(stats.average_duration_sec)}"
            f"   Avg interval: {interval}"
        )
        self.warning_var.set(
            "Device storage is getting full. Consider clearing old sessions soon."
            if self._tracker.storage_warning else ""
        )

        self.tree.delete(*self.tree.get_children())
        for entry in self._tracker.recent_entries:
            self.tree.insert(
                "",
                "end",
                iid=entry.id,
                values=(
                    entry.index,
                    format_clock_time(entry.start, self._tracker.tz),
                    format_duration(entry.duration_sec),
                    f"+{format_duration(entry.interval_sec)}" if entry.interval_sec is not None else "-",
                ),
            )
