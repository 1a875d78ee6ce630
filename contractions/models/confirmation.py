"""A staged, not yet committed, user action awaiting acknowledgment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ConfirmAction = Literal["undo", "new_session", "save_edit"]


@dataclass(frozen=True)
class ConfirmationRequest:
    action: ConfirmAction
    title: str
    message: str
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"
    variant: Literal["default", "warning", "danger"] = "default"
