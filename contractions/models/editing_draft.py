"""Transient state of an in-progress edit to one entry's timestamps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EditField = Literal["start", "end"]


@dataclass(frozen=True)
class EditingDraft:
    session_id: str
    entry_id: str
    draft_start: int
    draft_end: int
    original_start: int
    original_end: int

    @property
    def duration_ms(self) -> int:
        return self.draft_end - self.draft_start
