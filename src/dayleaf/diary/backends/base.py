"""
Abstract base class for diary backends.

The entry store talks to exactly one backend, chosen at construction time.
Every method is async so local and remote backends share one call site;
the local backend simply never suspends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from loguru import logger

from ...core.exceptions import PersistenceError
from ..models import DiaryEntry

SnapshotHandler = Callable[[list[DiaryEntry]], None]
ErrorHandler = Callable[[PersistenceError], None]


class Subscription:
    """Cancellable live-subscription handle.

    ``start`` opens the underlying listener and ``stop`` releases it; both
    are idempotent. Use as a context manager to guarantee release::

        with await store.initialize(live=True) as subscription:
            ...

    Args:
        opener: Zero-argument callable that starts listening and returns the
            function that stops it.
        name: Label used in logs (usually the collection path).
    """

    def __init__(self, opener: Callable[[], Callable[[], None]], name: str = ""):
        self._opener = opener
        self._closer: Callable[[], None] | None = None
        self.name = name

    @property
    def active(self) -> bool:
        return self._closer is not None

    def start(self) -> Subscription:
        if self._closer is None:
            self._closer = self._opener()
            logger.debug(f"Subscription started: {self.name}")
        return self

    def stop(self) -> None:
        closer, self._closer = self._closer, None
        if closer is None:
            return
        try:
            closer()
        finally:
            logger.debug(f"Subscription stopped: {self.name}")

    def __enter__(self) -> Subscription:
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"Subscription(name={self.name!r}, active={self.active})"


class EntryBackend(ABC):
    """Persistence contract used by :class:`~dayleaf.diary.store.EntryStore`.

    Implementations raise :class:`PersistenceError` (or its permission
    subclass) with ``operation`` set to ``"list"`` or ``"write"`` and
    ``path`` naming what was targeted.
    """

    #: Namespace string reported in errors (storage key or collection path).
    path: str = ""

    #: Whether :meth:`subscribe` is available.
    supports_subscription: bool = False

    @abstractmethod
    def new_id(self) -> str:
        """Return a fresh unique entry id."""

    @abstractmethod
    async def load_all(self) -> list[DiaryEntry]:
        """Read the whole entry collection."""

    @abstractmethod
    async def add(self, entry: DiaryEntry) -> None:
        """Persist a newly created entry."""

    @abstractmethod
    async def set(self, entry: DiaryEntry, merge: bool = True) -> None:
        """Write one entry. With *merge*, fields absent from *entry* are kept."""

    @abstractmethod
    async def delete(self, entry_id: str) -> None:
        """Remove one entry. Deleting a missing id is not an error."""

    @abstractmethod
    async def set_many(self, entries: list[DiaryEntry]) -> None:
        """Write a batch of entries in full, all or nothing."""

    def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> Subscription:
        """Return a (not yet started) live subscription to the collection.

        *on_change* receives the full current collection after every remote
        change; *on_error* receives listener failures.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support live subscriptions")
