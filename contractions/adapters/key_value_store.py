"""Key-value storage abstraction.

Defines the surface the persistence gateway reads from and writes to.
Allows switching between a SQLite file, an in-memory dict, etc.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StorageEstimate:
    """Bytes used and bytes available to the store."""
    usage: int
    quota: int

    @property
    def ratio(self) -> float:
        return self.usage / self.quota if self.quota > 0 else 0.0


class KeyValueStore(ABC):
    """Abstract string-to-string store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: Record key

        Returns:
            Stored value or None if the key is absent

        Raises:
            StorageError: the backend could not be read
        """
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write (insert or replace) a value.

        Raises:
            StorageQuotaExceededError: the write would exceed capacity
            StorageError: any other write failure
        """
        raise NotImplementedError

    def estimate(self) -> Optional[StorageEstimate]:
        """Usage/quota if the backend can tell, else None."""
        return None

    def close(self) -> None:
        """Release backend resources (idempotent)."""
