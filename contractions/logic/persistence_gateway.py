"""
PersistenceGateway – mirrors the session store to one key-value record.

Strategy:
- Save: serialize the whole store as JSON under a fixed key. Best effort;
  failures come back as a SaveResult and are reported to the event log,
  never raised.
- Load: parse, then validate session by session. A bad session is dropped,
  the rest survive. The caller's "today" id fills any gap (no sessions left,
  dangling currentSessionId).
- Capacity: an advisory usage/quota check; the gateway keeps working either way.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from core.helpers.date_time_helper import is_day_id
from contractions.adapters.key_value_store import KeyValueStore
from contractions.exceptions.errors import StorageError
from contractions.logic.session_model import build_session, ensure_session
from contractions.models.contraction_entry import ContractionLogEntry, Session, Store

logger = logging.getLogger(__name__)

FEATURE = "contractions"
STORAGE_KEY = "labor-counter.session-store.v1"
STORAGE_WARNING_RATIO = 0.8

_ENTRY_INT_FIELDS = ("start", "end", "createdAt")
# 9999-12-31T00:00:00Z; leaves a day of headroom for local-zone conversion
_MAX_TIMESTAMP_MS = 253_402_214_400_000


class EventLog(Protocol):
    def log(self, feature: str, event: str, *, level: str = "INFO",
            reference_id: Optional[str] = None, message: Optional[str] = None) -> None: ...


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save. ``error`` is set iff ``ok`` is False."""
    ok: bool
    error: Optional[str] = None

    @staticmethod
    def success() -> "SaveResult":
        return SaveResult(ok=True)

    @staticmethod
    def failure(error: str) -> "SaveResult":
        return SaveResult(ok=False, error=error)


class PersistenceGateway:
    """Loads and saves the Store through a KeyValueStore."""

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str = STORAGE_KEY,
        warning_ratio: float = STORAGE_WARNING_RATIO,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._kv = kv
        self._key = key
        self._warning_ratio = warning_ratio
        self._event_log = event_log

    # --- Public API ---------------------------------------------------------

    def save(self, store: Store) -> SaveResult:
        try:
            payload = json.dumps(store.to_dict(), separators=(",", ":"))
            self._kv.set(self._key, payload)
        except (StorageError, TypeError, ValueError) as ex:
            message = f"{type(ex).__name__}: {ex}"
            logger.error("Failed to persist session data: %s", message)
            self._report("persist_failed", "ERROR", message)
            return SaveResult.failure(message)
        return SaveResult.success()

    def load(self, today_id: str) -> Optional[Store]:
        """
        Returns the persisted store, repaired where needed, or None if there is
        nothing usable (missing record, unreadable backend, unparseable JSON).
        """
        try:
            raw = self._kv.get(self._key)
        except StorageError as ex:
            logger.error("Failed to read session data: %s", ex)
            self._report("hydrate_failed", "ERROR", str(ex))
            return None
        if raw is None:
            return None

        try:
            parsed = json.loads(raw)
        except ValueError as ex:
            logger.error("Failed to hydrate session data: %s", ex)
            self._report("hydrate_failed", "ERROR", f"Unparseable record: {ex}")
            return None
        if not isinstance(parsed, dict):
            self._report("hydrate_failed", "ERROR", f"Record root is {type(parsed).__name__}")
            return None

        sessions: Dict[str, Session] = {}
        raw_sessions = parsed.get("sessions")
        if isinstance(raw_sessions, dict):
            for sid, raw_session in raw_sessions.items():
                session = self._parse_session(sid, raw_session)
                if session is None:
                    logger.warning("Dropping malformed session %r", sid)
                    self._report("session_dropped", "WARNING", "Malformed session", reference_id=str(sid))
                    continue
                sessions[sid] = session

        if not sessions:
            sessions[today_id] = build_session(today_id)

        current = parsed.get("currentSessionId")
        if isinstance(current, str) and current in sessions:
            return Store(current_session_id=current, sessions=sessions)

        logger.info("currentSessionId %r not usable, falling back to %s", current, today_id)
        return ensure_session(Store(current_session_id=today_id, sessions=sessions), today_id)

    def check_capacity(self) -> bool:
        """True when usage/quota has reached the warning ratio. Advisory only."""
        try:
            estimate = self._kv.estimate()
        except StorageError as ex:
            logger.error("Failed to estimate storage: %s", ex)
            return False
        if estimate is None or estimate.quota <= 0:
            return False
        return estimate.ratio >= self._warning_ratio

    # --- Internal helpers ---------------------------------------------------

    @staticmethod
    def _parse_session(sid: Any, raw: Any) -> Optional[Session]:
        if not is_day_id(sid) or not isinstance(raw, dict):
            return None
        raw_entries = raw.get("entries")
        if not isinstance(raw_entries, list):
            return None

        entries = []
        seen_ids = set()
        for item in raw_entries:
            if not _is_valid_entry(item) or item["id"] in seen_ids:
                return None
            seen_ids.add(item["id"])
            entries.append(ContractionLogEntry.from_dict(item))
        return build_session(sid, entries)

    def _report(self, event: str, level: str, message: str, *, reference_id: Optional[str] = None) -> None:
        if self._event_log is not None:
            self._event_log.log(FEATURE, event, level=level, reference_id=reference_id, message=message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_timestamp(value: Any) -> bool:
    return _is_int(value) and 0 <= value <= _MAX_TIMESTAMP_MS


def _is_valid_entry(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    if not isinstance(item.get("id"), str) or not item["id"]:
        return False
    if not all(_is_timestamp(item.get(name)) for name in _ENTRY_INT_FIELDS):
        return False
    return item["end"] > item["start"]
