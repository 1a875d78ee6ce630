"""
EditEntryDialog – fine-tune the logged start/end of one entry.

Shows the draft start/end with their deltas to the original, a button row of
adjust steps per field, and the resulting duration. The tracker owns the
draft; this dialog only forwards clicks and re-renders.
"""

from __future__ import annotations

import tkinter as tk
from tkinter import messagebox, ttk

from core.helpers.date_time_helper import format_clock_time, format_duration, signed_delta
from contractions.gui.confirm import ask_confirmation
from contractions.logic.tracker_service import ContractionTracker
from contractions.models.tracker_state import Outcome


class EditEntryDialog(tk.Toplevel):
    """Modal editor for the tracker's current EditingDraft."""

    def __init__(self, parent: tk.Misc, tracker: ContractionTracker) -> None:
        super().__init__(parent)
        self._tracker = tracker
        self.title("Adjust entry")
        self.resizable(False, False)
        self.transient(parent.winfo_toplevel())
        self.protocol("WM_DELETE_WINDOW", self._on_cancel)

        self.start_var = tk.StringVar()
        self.end_var = tk.StringVar()
        self.duration_var = tk.StringVar()

        self._build_ui()
        self._tracker.subscribe(self._on_tracker_changed)
        self._render()
        self.grab_set()

    def _build_ui(self) -> None:
        ttk.Label(self, text="Fine-tune the logged times by up to ±2 minutes.").grid(
            row=0, column=0, columnspan=2, sticky="w", padx=12, pady=(12, 8)
        )
        for row, (field, var, caption) in enumerate(
            (("start", self.start_var, "Start time"), ("end", self.end_var, "End time")), start=1
        ):
            ttk.Label(self, text=caption).grid(row=row * 2 - 1, column=0, sticky="w", padx=12)
            ttk.Label(self, textvariable=var).grid(row=row * 2, column=0, sticky="w", padx=12)
            buttons = ttk.Frame(self)
            buttons.grid(row=row * 2, column=1, sticky="e", padx=12, pady=4)
            for seconds in self._tracker.settings.edit_adjust_options:
                ttk.Button(
                    buttons,
                    text=signed_delta(seconds),
                    width=7,
                    command=lambda f=field, s=seconds: self._tracker.adjust_edit(f, s),
                ).pack(side=tk.LEFT, padx=1)

        ttk.Label(self, textvariable=self.duration_var, font=("Segoe UI", 14, "bold")).grid(
            row=5, column=0, columnspan=2, sticky="w", padx=12, pady=8
        )

        actions = ttk.Frame(self)
        actions.grid(row=6, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))
        ttk.Button(actions, text="Reset", command=self._tracker.reset_edit).pack(side=tk.LEFT)
        ttk.Button(actions, text="Save", command=self._on_save).pack(side=tk.RIGHT, padx=2)
        ttk.Button(actions, text="Cancel", command=self._on_cancel).pack(side=tk.RIGHT, padx=2)

    def _render(self) -> None:
        draft = self._tracker.editing
        if draft is None:
            return
        tz = self._tracker.tz
        start_delta = (draft.draft_start - draft.original_start) // 1000
        end_delta = (draft.draft_end - draft.original_end) // 1000
        self.start_var.set(f"{format_clock_time(draft.draft_start, tz, seconds=True)}  Δ {signed_delta(start_delta)}")
        self.end_var.set(f"{format_clock_time(draft.draft_end, tz, seconds=True)}  Δ {signed_delta(end_delta)}")

        duration = max(0, draft.duration_ms // 1000)
        original = max(0, (draft.original_end - draft.original_start) // 1000)
        text = f"Duration {format_duration(duration)}  (was {format_duration(original)}"
        if duration != original:
            text += f", {signed_delta(duration - original)}"
        self.duration_var.set(text + ")")

    def _on_tracker_changed(self, tracker: ContractionTracker, _outcome: Outcome) -> None:
        if tracker.editing is None:
            self._close()
        else:
            self._render()

    def _on_save(self) -> None:
        ok, reason = self._tracker.request_save_edit()
        if not ok:
            if reason:
                messagebox.showwarning("Adjust entry", reason, parent=self)
            return
        ask_confirmation(self, self._tracker, self._tracker.confirmation)

    def _on_cancel(self) -> None:
        self._tracker.cancel_edit()

    def _close(self) -> None:
        self._tracker.unsubscribe(self._on_tracker_changed)
        self.grab_release()
        self.destroy()
