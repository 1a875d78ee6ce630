"""Saving, loading and repairing the persisted session record."""
from __future__ import annotations

import json
from datetime import timezone
from typing import Optional

import pytest

from contractions.adapters.key_value_store import KeyValueStore, StorageEstimate
from contractions.adapters.memory_key_value_store import MemoryKeyValueStore
from contractions.exceptions.errors import StorageError, StorageQuotaExceededError
from contractions.logic.persistence_gateway import STORAGE_KEY, PersistenceGateway, SaveResult
from contractions.logic.session_model import build_session, empty_store
from contractions.logic.tracker_service import ContractionTracker
from contractions.models.contraction_entry import ContractionLogEntry, Store
from contractions.tests.conftest import DAY1, DAY2, T0

GOOD_ENTRY = {"id": "a", "start": T0, "end": T0 + 30_000, "createdAt": T0 + 30_000}


class BrokenStore(KeyValueStore):
    """Fails every operation."""

    def get(self, key: str) -> Optional[str]:
        raise StorageError("disk gone")

    def set(self, key: str, value: str) -> None:
        raise StorageQuotaExceededError("quota exceeded")

    def estimate(self) -> Optional[StorageEstimate]:
        raise StorageError("no estimate")


def _write(kv: MemoryKeyValueStore, payload) -> None:
    kv.set(STORAGE_KEY, payload if isinstance(payload, str) else json.dumps(payload))


def _store() -> Store:
    day1 = build_session(DAY1, [
        ContractionLogEntry("a", T0, T0 + 30_000, T0 + 30_000),
        ContractionLogEntry("b", T0 + 300_000, T0 + 345_000, T0 + 345_000),
    ])
    return Store(DAY2, {DAY1: day1, DAY2: build_session(DAY2)})


def test_missing_record_loads_nothing(gateway) -> None:
    assert gateway.load(DAY1) is None


def test_round_trip(gateway, kv) -> None:
    store = _store()
    assert gateway.save(store) == SaveResult(ok=True)
    assert gateway.load(DAY1) == store


def test_saved_record_uses_wire_names(gateway, kv) -> None:
    gateway.save(_store())
    record = json.loads(kv.get(STORAGE_KEY))
    assert record["currentSessionId"] == DAY2
    assert record["sessions"][DAY1]["id"] == DAY1
    assert record["sessions"][DAY1]["entries"][0] == GOOD_ENTRY


def test_unparseable_record_loads_nothing(gateway, kv, event_log) -> None:
    _write(kv, "{not json")
    assert gateway.load(DAY1) is None
    assert "hydrate_failed" in event_log.events()


def test_non_object_root_loads_nothing(gateway, kv) -> None:
    _write(kv, [1, 2, 3])
    assert gateway.load(DAY1) is None


@pytest.mark.parametrize(
    "bad_session",
    [
        "not an object",
        {"id": "x"},
        {"entries": "nope"},
        {"entries": [{"id": "b", "start": T0, "end": T0 + 1000}]},
        {"entries": [{**GOOD_ENTRY, "start": True}]},
        {"entries": [{**GOOD_ENTRY, "start": "1"}]},
        {"entries": [{**GOOD_ENTRY, "end": T0}]},
        {"entries": [GOOD_ENTRY, GOOD_ENTRY]},
        {"entries": [{**GOOD_ENTRY, "start": 10**17, "end": 10**17 + 10_000}]},
        {"entries": [{**GOOD_ENTRY, "start": -60_000, "end": -30_000}]},
        {"entries": [{**GOOD_ENTRY, "createdAt": 10**17}]},
        {"entries": ["entry"]},
    ],
)
def test_malformed_session_is_dropped_others_survive(gateway, kv, event_log, bad_session) -> None:
    _write(kv, {
        "currentSessionId": DAY1,
        "sessions": {DAY1: {"id": DAY1, "entries": [GOOD_ENTRY]}, DAY2: bad_session},
    })
    loaded = gateway.load(DAY1)
    assert set(loaded.sessions) == {DAY1}
    assert loaded.current_session_id == DAY1
    assert loaded.sessions[DAY1].entries[0].id == "a"
    assert ("contractions", "session_dropped", "WARNING", DAY2, "Malformed session") in event_log.records


def test_out_of_range_entry_never_reaches_the_tracker(kv, clock, event_log) -> None:
    _write(kv, {"currentSessionId": DAY1, "sessions": {
        DAY1: {"entries": [{"id": "far", "start": 10**17, "end": 10**17 + 10_000, "createdAt": 10**17}]},
    }})
    tracker = ContractionTracker(PersistenceGateway(kv, event_log=event_log), clock=clock, tz=timezone.utc)

    assert tracker.current_session_id == DAY1
    assert tracker.recent_entries == ()
    assert "session_dropped" in event_log.events()
    assert json.loads(kv.get(STORAGE_KEY))["sessions"][DAY1]["entries"] == []


def test_session_key_must_be_a_day_id(gateway, kv) -> None:
    _write(kv, {"currentSessionId": DAY1, "sessions": {
        DAY1: {"entries": []}, "yesterday": {"entries": []},
    }})
    assert set(gateway.load(DAY1).sessions) == {DAY1}


def test_no_valid_sessions_synthesizes_today(gateway, kv) -> None:
    _write(kv, {"currentSessionId": DAY1, "sessions": {DAY1: {"entries": None}}})
    assert gateway.load(DAY2) == empty_store(DAY2)


def test_missing_sessions_map_synthesizes_today(gateway, kv) -> None:
    _write(kv, {"currentSessionId": DAY1})
    assert gateway.load(DAY2) == empty_store(DAY2)


def test_dangling_current_falls_back_to_today(gateway, kv) -> None:
    _write(kv, {"currentSessionId": "2020-01-01", "sessions": {DAY1: {"entries": [GOOD_ENTRY]}}})
    loaded = gateway.load(DAY2)
    assert loaded.current_session_id == DAY2
    assert loaded.sessions[DAY2].entries == ()
    assert len(loaded.sessions[DAY1].entries) == 1


def test_existing_current_session_is_honored(gateway, kv) -> None:
    _write(kv, {"currentSessionId": DAY1, "sessions": {DAY1: {"entries": []}}})
    loaded = gateway.load(DAY2)
    assert loaded.current_session_id == DAY1
    assert DAY2 not in loaded.sessions


def test_unknown_fields_are_ignored_and_entries_sorted(gateway, kv) -> None:
    later = {"id": "z", "start": T0 + 600_000, "end": T0 + 630_000, "createdAt": T0, "note": "x"}
    _write(kv, {
        "version": 3,
        "currentSessionId": DAY1,
        "sessions": {DAY1: {"id": DAY1, "color": "red", "entries": [later, GOOD_ENTRY]}},
    })
    loaded = gateway.load(DAY1)
    assert [e.id for e in loaded.sessions[DAY1].entries] == ["a", "z"]


def test_save_failure_is_reported_not_raised(event_log) -> None:
    gateway = PersistenceGateway(BrokenStore(), event_log=event_log)
    result = gateway.save(_store())
    assert result.ok is False
    assert "quota exceeded" in result.error
    assert event_log.records[-1][:3] == ("contractions", "persist_failed", "ERROR")


def test_read_failure_loads_nothing(event_log) -> None:
    gateway = PersistenceGateway(BrokenStore(), event_log=event_log)
    assert gateway.load(DAY1) is None
    assert gateway.check_capacity() is False


def test_capacity_warning_threshold() -> None:
    kv = MemoryKeyValueStore(quota_bytes=100)
    gateway = PersistenceGateway(kv, key="k")
    kv.set("filler", "x" * 79)
    assert gateway.check_capacity() is False
    kv.set("filler", "x" * 80)
    assert gateway.check_capacity() is True


def test_capacity_unknown_means_no_warning(gateway) -> None:
    assert gateway.check_capacity() is False
