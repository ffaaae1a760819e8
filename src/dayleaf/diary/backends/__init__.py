"""
Diary persistence backends.

``local`` keeps the collection as one JSON blob on disk; ``remote`` keeps
one Firestore document per entry in a per-user collection. Pick one with
``storage.backend`` and build it through :func:`create_backend`.
"""

from __future__ import annotations

import os

from ...core.config import Config
from ...core.exceptions import ConfigurationError
from ...core.storage import LocalKeyValueStore
from .base import EntryBackend, ErrorHandler, SnapshotHandler, Subscription
from .local import DEFAULT_ENTRIES_KEY, LocalEntryBackend
from .remote import DEFAULT_COLLECTION, RemoteEntryBackend


def create_backend(config: Config, user_id: str | None = None, client=None) -> EntryBackend:
    """Build the backend named by ``storage.backend``.

    Args:
        config: Loaded configuration.
        user_id: Overrides ``storage.user_id`` for the remote backend.
        client: Firestore client to use instead of a default one.

    Raises:
        ConfigurationError: Unknown backend name, or remote without a user id.
    """
    backend = str(config.get("storage.backend", "local")).lower()
    if backend == "local":
        kv = LocalKeyValueStore(base_path=os.path.join(config.get_data_dir(), "data"))
        return LocalEntryBackend(kv, key=config.get("storage.key", DEFAULT_ENTRIES_KEY))
    if backend == "remote":
        uid = user_id or config.get("storage.user_id", "")
        if not uid:
            raise ConfigurationError("storage.user_id is required for the remote backend")
        return RemoteEntryBackend(
            uid,
            client=client,
            collection_template=config.get("storage.collection", DEFAULT_COLLECTION),
        )
    raise ConfigurationError(f"Unknown storage backend: {backend!r} (expected 'local' or 'remote')")


__all__ = [
    "DEFAULT_COLLECTION",
    "DEFAULT_ENTRIES_KEY",
    "EntryBackend",
    "ErrorHandler",
    "LocalEntryBackend",
    "RemoteEntryBackend",
    "SnapshotHandler",
    "Subscription",
    "create_backend",
]
