"""
Key/value storage for dayleaf.

A synchronous blob store keyed by namespace strings, used by the local
diary backend and the password gate.
"""

from .base import (
    KeyValueStore,
    StorageError,
    StorageKeyError,
    StoragePermissionError,
    StorageQuotaError,
)
from .local import LocalKeyValueStore

__all__ = [
    "KeyValueStore",
    "LocalKeyValueStore",
    "StorageError",
    "StorageKeyError",
    "StoragePermissionError",
    "StorageQuotaError",
]
