"""
Tk views of the contractions feature.

Provides factory functions the main window calls to create the views without
hard-coding internals. Both take a Tk container and a ContractionTracker.
"""

import tkinter as tk

from .history_view import HistoryView
from .tracker_view import TrackerView


def get_feature_name() -> str:
    return "Contractions"


def create_feature_view(parent: tk.Misc, tracker) -> tk.Frame:
    """
    Factory for the live tracker view.

    Args:
        parent (tk.Misc): Tk container to mount the widget onto.
        tracker (ContractionTracker): The shared tracker instance.

    Returns:
        tk.Frame: A fully wired tracker view.
    """
    return TrackerView(parent, tracker)


def create_history_view(parent: tk.Misc, tracker) -> tk.Frame:
    """Factory for the past-sessions view."""
    return HistoryView(parent, tracker)
