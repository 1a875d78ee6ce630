"""Contractions feature exceptions."""
from __future__ import annotations


class ContractionsError(Exception):
    """Base exception for the contractions feature."""


class StorageError(ContractionsError):
    """Raised by a key-value store when a read or write fails."""


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the store's capacity."""
