"""
Abstract base class for key/value stores.

Values are whole strings stored and replaced as a unit; there are no
partial updates.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator


class KeyValueStore(ABC):
    """Abstract base class for synchronous key/value stores."""

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value stored under *key*, or *default* if missing."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if deleted, False if it didn't exist."""

    @abstractmethod
    def keys(self, prefix: str = "") -> Iterator[str]:
        """Iterate stored keys with optional prefix filter."""

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class StorageError(Exception):
    """Base exception for storage errors."""


class StorageKeyError(StorageError, KeyError):
    """Raised when a storage key doesn't exist."""


class StoragePermissionError(StorageError):
    """Raised when storage operation is not permitted."""


class StorageQuotaError(StorageError):
    """Raised when storage quota is exceeded."""
