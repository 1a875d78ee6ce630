"""
Construction and invariants of entries, sessions and the store.

Every function returns new objects; callers never see a partially updated
session. Entries leave this module sorted by start.
"""

from __future__ import annotations

import uuid
from typing import Callable, Iterable, Tuple

from contractions.models.contraction_entry import ContractionLogEntry, Session, Store


def sort_chronologically(entries: Iterable[ContractionLogEntry]) -> Tuple[ContractionLogEntry, ...]:
    """Stable sort by start ascending. Idempotent."""
    return tuple(sorted(entries, key=lambda e: e.start))


def build_session(session_id: str, entries: Iterable[ContractionLogEntry] = ()) -> Session:
    """Builds a session, sorting the entries regardless of caller order."""
    return Session(id=session_id, entries=sort_chronologically(entries))


def generate_entry_id() -> str:
    return str(uuid.uuid4())


def new_entry(
    start: int,
    end: int,
    created_at: int,
    *,
    id_factory: Callable[[], str] = generate_entry_id,
) -> ContractionLogEntry:
    if end <= start:
        raise ValueError(f"Entry end ({end}) must be after start ({start}).")
    return ContractionLogEntry(id=id_factory(), start=start, end=end, created_at=created_at)


def empty_store(today_id: str) -> Store:
    return Store(current_session_id=today_id, sessions={today_id: build_session(today_id)})


def ensure_session(store: Store, session_id: str) -> Store:
    """Returns *store* with an (empty) session for *session_id* if it had none."""
    if session_id in store.sessions:
        return store
    return Store(
        current_session_id=store.current_session_id,
        sessions={**store.sessions, session_id: build_session(session_id)},
    )


def switch_session(store: Store, session_id: str) -> Store:
    """Points the store at *session_id*, creating that session if needed."""
    store = ensure_session(store, session_id)
    if store.current_session_id == session_id:
        return store
    return Store(current_session_id=session_id, sessions=store.sessions)


def replace_session_entries(
    store: Store, session_id: str, entries: Iterable[ContractionLogEntry]
) -> Store:
    return Store(
        current_session_id=store.current_session_id,
        sessions={**store.sessions, session_id: build_session(session_id, entries)},
    )


def append_entry(store: Store, session_id: str, entry: ContractionLogEntry) -> Store:
    existing = store.sessions.get(session_id) or build_session(session_id)
    return replace_session_entries(store, session_id, (*existing.entries, entry))
