"""
history_view.py

Previous days at a glance: one row per past session with its count and
averages, plus the full chronological timeline of the selected day.

A date picker jumps straight to a given day; days without a session show an
empty timeline.
"""

import tkinter as tk
from datetime import date
from tkinter import ttk

from tkcalendar import DateEntry

from core.helpers.date_time_helper import format_clock_time, format_duration
from contractions.gui.edit_entry_dialog import EditEntryDialog
from contractions.logic.stats_service import derive_display
from contractions.models.tracker_state import Outcome


class HistoryView(ttk.Frame):
    """
    Read-only history. Double-clicking an entry of the selected day opens the
    editor for it, like the live view does for today's entries.
    """

    def __init__(self, parent, tracker, *args, **kwargs):
        super().__init__(parent, *args, **kwargs)
        self._tracker = tracker
        self._selected_id = None

        self._build_ui()
        self._tracker.subscribe(self._on_tracker_changed)
        self.bind("<Destroy>", self._on_destroy, add="+")
        self._populate_sessions()

    def _build_ui(self):
        picker_frame = ttk.Frame(self)
        picker_frame.pack(fill=tk.X, padx=5, pady=5)
        ttk.Label(picker_frame, text="Day:").pack(side=tk.LEFT, padx=2)
        self.date_picker = DateEntry(picker_frame, date_pattern="yyyy-MM-dd", width=12)
        self.date_picker.set_date(date.today())
        self.date_picker.pack(side=tk.LEFT, padx=2)
        self.date_picker.bind("<<DateEntrySelected>>", self._on_date_picked)

        columns = ("day", "count", "avg_duration", "avg_interval")
        self.sessions_tree = ttk.Treeview(self, columns=columns, show="headings", height=6)
        for col, text in zip(columns, ["Day", "Contractions", "Avg duration", "Avg interval"]):
            self.sessions_tree.heading(col, text=text)
            self.sessions_tree.column(col, width=120, anchor=tk.W)
        self.sessions_tree.pack(fill=tk.X, padx=5, pady=5)
        self.sessions_tree.bind("<<TreeviewSelect>>", self._on_session_selected)

        columns = ("index", "start", "duration", "interval")
        self.timeline_tree = ttk.Treeview(self, columns=columns, show="headings")
        for col, text in zip(columns, ["#", "Start", "Duration", "Interval"]):
            self.timeline_tree.heading(col, text=text)
            self.timeline_tree.column(col, width=90, anchor=tk.CENTER)
        self.timeline_tree.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)
        self.timeline_tree.bind("<Double-Button-1>", self._on_edit_selected)

    def _populate_sessions(self):
        self.sessions_tree.delete(*self.sessions_tree.get_children())
        for summary in self._tracker.session_summaries():
            stats = summary.stats
            self.sessions_tree.insert(
                "",
                "end",
                iid=summary.session_id,
                values=(
                    summary.label,
                    stats.count,
                    format_duration(stats.average_duration_sec),
                    format_duration(stats.average_interval_sec) if stats.has_interval_data else "--:--",
                ),
            )
        self._populate_timeline()

    def _populate_timeline(self):
        self.timeline_tree.delete(*self.timeline_tree.get_children())
        session = self._tracker.sessions.get(self._selected_id) if self._selected_id else None
        if session is None:
            return
        tz = self._tracker.tz
        for entry in derive_display(session.entries):
            self.timeline_tree.insert(
                "",
                "end",
                iid=entry.id,
                values=(
                    entry.index,
                    format_clock_time(entry.start, tz),
                    format_duration(entry.duration_sec),
                    f"+{format_duration(entry.interval_sec)}" if entry.interval_sec is not None else "-",
                ),
            )

    # ---------------------------------------------------------------------
    # Callbacks
    # ---------------------------------------------------------------------

    def _on_date_picked(self, _event):
        self._selected_id = self.date_picker.get_date().isoformat()
        if self.sessions_tree.exists(self._selected_id):
            self.sessions_tree.selection_set(self._selected_id)
        self._populate_timeline()

    def _on_session_selected(self, _event):
        selection = self.sessions_tree.selection()
        if selection:
            self._selected_id = selection[0]
            self._populate_timeline()

    def _on_edit_selected(self, _event):
        selection = self.timeline_tree.selection()
        if not selection or not self._selected_id:
            return
        if self._tracker.open_editor(self._selected_id, selection[0]) is Outcome.EDIT_OPENED:
            EditEntryDialog(self, self._tracker)

    def _on_tracker_changed(self, _tracker, outcome):
        if outcome.changes_entries:
            self._populate_sessions()

    def _on_destroy(self, event):
        if event.widget is self:
            self._tracker.unsubscribe(self._on_tracker_changed)
