"""
Data model for logged contractions, day sessions and the session store.

All three are immutable; changes produce new instances (see
``contractions.logic.session_model``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True)
class ContractionLogEntry:
    """
    One recorded contraction.

    Attributes:
        id (str): Opaque identifier, unique within its session.
        start (int): Start timestamp, epoch milliseconds.
        end (int): End timestamp, epoch milliseconds. Always > start.
        created_at (int): When the entry was logged, epoch milliseconds.
    """
    id: str
    start: int
    end: int
    created_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "start": self.start, "end": self.end, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContractionLogEntry":
        return cls(
            id=data["id"],
            start=data["start"],
            end=data["end"],
            created_at=data["createdAt"],
        )


@dataclass(frozen=True)
class Session:
    """Entries attributed to one calendar day; ``entries`` sorted by start."""
    id: str
    entries: Tuple[ContractionLogEntry, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "entries": [e.to_dict() for e in self.entries]}


@dataclass(frozen=True)
class Store:
    """
    The full persisted state: all sessions plus the active session pointer.

    ``sessions[current_session_id]`` exists for every initialized store.
    ``sessions`` is a read-only view over a private copy of the mapping
    passed in; changes go through ``contractions.logic.session_model``.
    """
    current_session_id: str
    sessions: Mapping[str, Session] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sessions", MappingProxyType(dict(self.sessions)))

    @property
    def current_session(self) -> Session:
        return self.sessions.get(self.current_session_id) or Session(self.current_session_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentSessionId": self.current_session_id,
            "sessions": {sid: s.to_dict() for sid, s in self.sessions.items()},
        }
