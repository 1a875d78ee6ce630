"""In-process key-value store with an optional byte quota."""

from __future__ import annotations

from typing import Dict, Optional

from contractions.adapters.key_value_store import KeyValueStore, StorageEstimate
from contractions.exceptions.errors import StorageQuotaExceededError


class MemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store. Used by tests and as the fallback when the file store
    cannot be opened; nothing survives the process.

    With ``quota_bytes`` > 0, usage is the UTF-8 size of all values and a
    write that would exceed the quota raises StorageQuotaExceededError.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None, *, quota_bytes: int = 0) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._quota = int(quota_bytes)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota > 0:
            others = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if others + len(value.encode("utf-8")) > self._quota:
                raise StorageQuotaExceededError(f"Quota of {self._quota} bytes exceeded.")
        self._data[key] = value

    def estimate(self) -> Optional[StorageEstimate]:
        if self._quota <= 0:
            return None
        usage = sum(len(v.encode("utf-8")) for v in self._data.values())
        return StorageEstimate(usage=usage, quota=self._quota)
