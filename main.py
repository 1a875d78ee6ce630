"""
Labor Counter – application entry point.

Wires configuration, logging, storage and the tracker, then mounts the live
and history views in a notebook.
"""

from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk

from core.config.config_service import ConfigService
from core.helpers.date_time_helper import resolve_timezone
from core.logging.logic.logger import configure_logging, get_event_logger
from contractions.adapters.key_value_store import KeyValueStore
from contractions.adapters.memory_key_value_store import MemoryKeyValueStore
from contractions.adapters.sqlite_key_value_store import SqliteKeyValueStore
from contractions.exceptions.errors import StorageError
from contractions.gui import create_feature_view, create_history_view, get_feature_name
from contractions.logic.persistence_gateway import PersistenceGateway
from contractions.logic.tracker_service import ContractionTracker
from contractions.models.tracker_settings import TrackerSettings

logger = logging.getLogger(__name__)


def open_storage(config: ConfigService) -> KeyValueStore:
    """SQLite store from [Storage]; in-memory if the file cannot be opened."""
    kv = SqliteKeyValueStore(config.storage.path, quota_bytes=config.storage.quota_bytes)
    try:
        kv.get(config.storage.record_key)
    except StorageError as ex:
        logger.error("Falling back to in-memory storage: %s", ex)
        kv.close()
        return MemoryKeyValueStore(quota_bytes=config.storage.quota_bytes)
    return kv


def build_tracker(config: ConfigService) -> ContractionTracker:
    event_log = get_event_logger(config.logging.db_path)
    gateway = PersistenceGateway(
        open_storage(config),
        key=config.storage.record_key,
        warning_ratio=config.storage.warning_ratio,
        event_log=event_log,
    )
    return ContractionTracker(
        gateway,
        settings=TrackerSettings.from_config(config.tracker),
        tz=resolve_timezone(config.tracker.timezone),
        event_log=event_log,
    )


class MainWindow(tk.Tk):
    def __init__(self, config: ConfigService, tracker: ContractionTracker):
        super().__init__()

        self.title(config.general.app_name or "Labor Counter")
        self.geometry("480x720")
        self.minsize(420, 600)

        notebook = ttk.Notebook(self)
        notebook.pack(fill="both", expand=True)
        notebook.add(create_feature_view(notebook, tracker), text=get_feature_name())
        notebook.add(create_history_view(notebook, tracker), text="History")


def main() -> None:
    config = ConfigService()
    configure_logging(config.logging.level)
    tracker = build_tracker(config)
    app = MainWindow(config, tracker)
    app.mainloop()


if __name__ == "__main__":
    main()
