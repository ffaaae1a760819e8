"""
Remote diary backend on Google Cloud Firestore.

Each entry is one document in a per-user collection
(``users/{user_id}/diaryEntries`` by default). The Firestore client is
blocking, so calls run in the default executor; snapshot listeners fire on
a Firestore worker thread and are handed back to the event loop.

Requires ``google-cloud-firestore`` and Application Default Credentials
(or an injected client).
"""

from __future__ import annotations

import asyncio
import functools
import secrets
import string
from collections.abc import Callable
from typing import Any

from google.api_core import exceptions as google_exceptions
from loguru import logger

from ...core.exceptions import ConfigurationError, PersistenceError, PersistencePermissionError
from ..models import DiaryEntry
from .base import EntryBackend, ErrorHandler, SnapshotHandler, Subscription

DEFAULT_COLLECTION = "users/{user_id}/diaryEntries"
_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_AUTO_ID_LENGTH = 20

_PERMISSION_ERRORS = (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)


def _translate(error: Exception, operation: str, path: str) -> PersistenceError:
    if isinstance(error, _PERMISSION_ERRORS):
        return PersistencePermissionError(
            f"Missing or insufficient permissions to {operation} {path}", operation=operation, path=path
        )
    return PersistenceError(f"Firestore {operation} on {path} failed: {error}", operation=operation, path=path)


def _entry_from_snapshot(snapshot: Any) -> DiaryEntry:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return DiaryEntry.from_dict(data)


class RemoteEntryBackend(EntryBackend):
    """Per-user Firestore collection of diary entries.

    Args:
        user_id: Authenticated user id; namespaces the collection.
        client: A ``google.cloud.firestore.Client``. Created lazily with
            default credentials when omitted.
        collection_template: Collection path with a ``{user_id}`` field.
    """

    supports_subscription = True

    def __init__(self, user_id: str, client: Any = None, collection_template: str = DEFAULT_COLLECTION):
        if not user_id:
            raise ConfigurationError("RemoteEntryBackend requires a user id")
        self.user_id = user_id
        self._client = client
        self.path = collection_template.format(user_id=user_id)

    @property
    def client(self) -> Any:
        if self._client is None:
            from google.cloud import firestore

            self._client = firestore.Client()
        return self._client

    def _collection(self) -> Any:
        return self.client.collection(self.path)

    async def _run(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
        except google_exceptions.GoogleAPIError as e:
            raise _translate(e, operation, self.path) from e

    # ------------------------------------------------------------------
    # EntryBackend
    # ------------------------------------------------------------------

    def new_id(self) -> str:
        # Same shape as Firestore auto-ids, generated without touching the client.
        return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(_AUTO_ID_LENGTH))

    async def load_all(self) -> list[DiaryEntry]:
        snapshots = await self._run("list", lambda: list(self._collection().stream()))
        entries = [_entry_from_snapshot(snapshot) for snapshot in snapshots]
        logger.debug(f"Loaded {len(entries)} entries from {self.path}")
        return entries

    async def add(self, entry: DiaryEntry) -> None:
        await self._run("write", self._collection().document(entry.id).set, entry.to_dict())

    async def set(self, entry: DiaryEntry, merge: bool = True) -> None:
        await self._run("write", self._collection().document(entry.id).set, entry.to_dict(), merge=merge)

    async def delete(self, entry_id: str) -> None:
        await self._run("write", self._collection().document(entry_id).delete)

    async def set_many(self, entries: list[DiaryEntry]) -> None:
        def commit() -> None:
            batch = self.client.batch()
            collection = self._collection()
            for entry in entries:
                batch.set(collection.document(entry.id), entry.to_dict())
            batch.commit()

        await self._run("write", commit)

    def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> Subscription:
        """Live subscription delivering the full collection on every change.

        Must be called from the event loop that owns the store; callbacks are
        always invoked on that loop. A listener refused by security rules is
        closed by the client without an error callback, so callers confirm
        access with :meth:`load_all` before subscribing.
        """
        loop = asyncio.get_running_loop()

        def handle_snapshot(snapshots: list[Any], _changes: Any, _read_time: Any) -> None:
            try:
                entries = [_entry_from_snapshot(snapshot) for snapshot in snapshots]
            except Exception as e:
                logger.warning(f"Could not decode snapshot from {self.path}: {e}")
                error = PersistenceError(f"Malformed snapshot from {self.path}: {e}", operation="list", path=self.path)
                loop.call_soon_threadsafe(on_error, error)
                return
            loop.call_soon_threadsafe(on_change, entries)

        def open_listener() -> Callable[[], None]:
            try:
                watch = self._collection().on_snapshot(handle_snapshot)
            except google_exceptions.GoogleAPIError as e:
                raise _translate(e, "list", self.path) from e
            return watch.unsubscribe

        return Subscription(open_listener, name=self.path)
