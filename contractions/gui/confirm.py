"""Renders a staged ConfirmationRequest as a Tk message box."""

from __future__ import annotations

import tkinter as tk
from tkinter import messagebox
from typing import Optional

from contractions.logic.tracker_service import ContractionTracker
from contractions.models.confirmation import ConfirmationRequest
from contractions.models.tracker_state import Outcome


def ask_confirmation(parent: tk.Misc, tracker: ContractionTracker, request: Optional[ConfirmationRequest]) -> Outcome:
    """Shows the staged request as a yes/no box and confirms or dismisses it."""
    if request is None:
        return Outcome.NOOP
    ask = messagebox.askyesno if request.variant == "default" else messagebox.askokcancel
    if ask(request.title, request.message, parent=parent):
        return tracker.confirm()
    tracker.dismiss_confirmation()
    return Outcome.NOOP
