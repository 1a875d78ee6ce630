"""Shared fixtures: a controllable clock and ready-made stores."""
from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest

from contractions.adapters.memory_key_value_store import MemoryKeyValueStore
from contractions.logic.persistence_gateway import PersistenceGateway

UTC = timezone.utc
# 2026-10-19 08:00:00 UTC
T0 = int(datetime(2026, 10, 19, 8, 0, tzinfo=UTC).timestamp() * 1000)
DAY1 = "2026-10-19"
DAY2 = "2026-10-20"


class FakeClock:
    def __init__(self, now_ms: int = T0) -> None:
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int = 0, *, seconds: int = 0) -> None:
        self.now += ms + seconds * 1000

    def set(self, when: datetime) -> None:
        self.now = int(when.timestamp() * 1000)


class RecordingEventLog:
    def __init__(self) -> None:
        self.records: List[Tuple[str, str, str, Optional[str], Optional[str]]] = []

    def log(self, feature, event, *, level="INFO", reference_id=None, message=None) -> None:
        self.records.append((feature, event, level, reference_id, message))

    def events(self) -> List[str]:
        return [r[1] for r in self.records]


def next_midnight(ms: int) -> datetime:
    day = datetime.fromtimestamp(ms / 1000, UTC).date() + timedelta(days=1)
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_log() -> RecordingEventLog:
    return RecordingEventLog()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def gateway(kv, event_log) -> PersistenceGateway:
    return PersistenceGateway(kv, event_log=event_log)


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"e{next(counter)}"
