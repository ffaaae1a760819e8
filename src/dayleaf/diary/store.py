"""Entry store: the single owner of diary entries and filter state.

The store applies every change to its in-memory collection first
(optimistic update) and then writes through to its backend. Backend
failures never propagate out of an action: they are logged, kept in
``last_error`` and emitted on the event bus as
``diary.persistence.permission_denied`` or ``diary.persistence.failed``.
The optimistic change is not rolled back.

Imports are the exception: the batch must be persisted before any of it
becomes visible.

Example::

    store = EntryStore(LocalEntryBackend(LocalKeyValueStore("~/.dayleaf/data")))
    await store.initialize()
    entry_id = await store.add_entry(EntryDraft(title="Monday", content="...", tags="work, gym"))
    store.set_search_term("gym")
    for entry in store.filtered():
        print(entry.title)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

from loguru import logger

from ..core.events import (
    ENTRIES_IMPORTED,
    ENTRIES_LOADED,
    ENTRIES_SYNCED,
    ENTRY_ADDED,
    ENTRY_DELETED,
    ENTRY_UPDATED,
    PERSISTENCE_FAILED,
    PERSISTENCE_PERMISSION_DENIED,
    Event,
    EventBus,
)
from ..core.exceptions import PersistenceError, PersistencePermissionError
from .backends.base import EntryBackend, Subscription
from .models import DiaryEntry, EntryDraft, ImportResult
from .tags import build_tag_index, parse_tags
from .transfer import is_importable
from .view import FilteredEntries, filter_entries

_SOURCE = "entry_store"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix for UTC."""
    text = moment.isoformat(timespec="milliseconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _normalized(entry: DiaryEntry) -> DiaryEntry:
    """A detached copy with text fields as strings and tags normalized."""
    return DiaryEntry.from_dict(entry.to_dict())


class EntryStore:
    """In-memory diary entries plus derived tag index and filter state.

    Args:
        backend: Where entries are persisted.
        bus: Event bus for outcome notifications. A private one is created
            when omitted.
        clock: Returns the current time; used to timestamp new entries.
    """

    def __init__(
        self,
        backend: EntryBackend,
        bus: EventBus | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.backend = backend
        self.bus = bus or EventBus()
        self._clock = clock or _utc_now
        self._entries: list[DiaryEntry] = []
        self._tags: list[str] = []
        self.search_term = ""
        self.selected_date: date | None = None
        self.initialized = False
        self.last_error: PersistenceError | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[DiaryEntry]:
        """Copies of all entries in storage order."""
        return [entry.copy() for entry in self._entries]

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, entry_id: str) -> DiaryEntry | None:
        index = self._index_of(entry_id)
        return None if index is None else self._entries[index].copy()

    def filtered(self) -> FilteredEntries:
        """View of entries matching the current search term and date, newest first."""
        return FilteredEntries(lambda: self.entries, self.search_term, self.selected_date)

    def recent_entries(self, limit: int = 5) -> list[DiaryEntry]:
        """The *limit* most recent entries, ignoring filters."""
        return filter_entries(self.entries)[:limit]

    # ------------------------------------------------------------------
    # Filter state
    # ------------------------------------------------------------------

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""

    def set_selected_date(self, selected: date | None) -> None:
        if isinstance(selected, datetime):
            selected = selected.date()
        self.selected_date = selected

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def initialize(self, live: bool = False) -> Subscription | None:
        """Load entries from the backend, once.

        With *live* and a backend that supports it, also start a live
        subscription after the initial load and return its handle. The
        caller owns the handle and must ``stop()`` it. The initial load
        doubles as the access check: a remote listener that is refused
        closes without calling back, so denial has to surface here.

        Returns None when already initialized, when loading once, or when
        the load/subscription failed (the failure is reported and a later
        call may retry).
        """
        if self.initialized:
            return None

        try:
            entries = await self.backend.load_all()
        except Exception as e:
            await self._report(self._as_persistence_error(e, "list"), "initialize")
            return None

        subscription = None
        if live and self.backend.supports_subscription:
            subscription = self.backend.subscribe(self.apply_snapshot, self._on_subscription_error)
            try:
                subscription.start()
            except Exception as e:
                await self._report(self._as_persistence_error(e, "list"), "initialize")
                return None

        self._entries = [_normalized(entry) for entry in entries]
        self._refresh_tags()
        self.initialized = True
        logger.info(f"Loaded {len(entries)} diary entries from {self.backend.path}")
        await self._emit(ENTRIES_LOADED, count=len(entries))
        return subscription

    async def add_entry(self, draft: EntryDraft) -> str:
        """Create an entry from *draft* and return its new id."""
        entry = DiaryEntry(
            id=self.backend.new_id(),
            date=_iso_timestamp(self._clock()),
            title=draft.title,
            content=draft.content or "",
            tags=parse_tags(draft.tags),
            image_url=_optional_str(draft.image_url),
            mood=_optional_str(draft.mood),
            weather=_optional_str(draft.weather),
        )
        self._entries.append(entry)
        self._refresh_tags()
        logger.debug(f"Added entry {entry.id} ({entry.title!r})")

        if await self._write_through("add", self.backend.add, entry.copy()):
            await self._emit(ENTRY_ADDED, id=entry.id)
        return entry.id

    async def update_entry(self, entry: DiaryEntry) -> bool:
        """Replace the stored entry with the same id.

        The creation ``date`` is kept from the stored record. Returns False
        (and changes nothing) when the id is unknown.
        """
        index = self._index_of(entry.id)
        if index is None:
            logger.debug(f"update_entry: no entry with id {entry.id}")
            return False

        updated = _normalized(entry)
        updated.date = self._entries[index].date
        self._entries[index] = updated
        self._refresh_tags()

        if await self._write_through("update", self.backend.set, updated.copy(), merge=True):
            await self._emit(ENTRY_UPDATED, id=updated.id)
        return True

    async def delete_entry(self, entry_id: str) -> bool:
        """Remove an entry. Returns False (no-op) when the id is unknown."""
        index = self._index_of(entry_id)
        if index is None:
            return False

        del self._entries[index]
        self._refresh_tags()

        if await self._write_through("delete", self.backend.delete, entry_id):
            await self._emit(ENTRY_DELETED, id=entry_id)
        return True

    async def import_entries(self, candidates: Any) -> ImportResult:
        """Merge imported records by id, persisting them as one batch.

        Records failing :func:`is_importable` are dropped. Within the batch
        and against existing entries, the later record with a given id wins.
        Memory is only touched after the batch write succeeds.
        """
        if not isinstance(candidates, (list, tuple)):
            logger.warning(f"Import expected a JSON array, got {type(candidates).__name__}")
            return ImportResult()

        batch: dict[str, DiaryEntry] = {}
        rejected = 0
        for record in candidates:
            if not is_importable(record):
                rejected += 1
                continue
            entry = DiaryEntry.from_dict(record)
            batch[entry.id] = entry

        if rejected:
            logger.info(f"Import dropped {rejected} invalid records")
        if not batch:
            return ImportResult(rejected=rejected)

        accepted = list(batch.values())
        try:
            await self.backend.set_many([entry.copy() for entry in accepted])
        except Exception as e:
            error = self._as_persistence_error(e, "write")
            await self._report(error, "import")
            return ImportResult(rejected=rejected, error=error)

        for entry in accepted:
            index = self._index_of(entry.id)
            if index is None:
                self._entries.append(entry)
            else:
                self._entries[index] = entry
        self._refresh_tags()

        ids = [entry.id for entry in accepted]
        logger.info(f"Imported {len(ids)} entries")
        await self._emit(ENTRIES_IMPORTED, ids=ids, rejected=rejected)
        return ImportResult(accepted=ids, rejected=rejected)

    def apply_snapshot(self, entries: list[DiaryEntry]) -> None:
        """Replace the collection with a confirmed snapshot from the backend."""
        self._entries = [_normalized(entry) for entry in entries]
        self._refresh_tags()
        self.initialized = True
        logger.debug(f"Synced {len(entries)} entries from {self.backend.path}")
        self.bus.emit_sync(Event(name=ENTRIES_SYNCED, payload={"count": len(entries)}, source=_SOURCE))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _index_of(self, entry_id: str) -> int | None:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        return None

    def _refresh_tags(self) -> None:
        self._tags = build_tag_index(self._entries)

    async def _write_through(self, action: str, write: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """Run a backend write; report failure instead of raising."""
        try:
            await write(*args, **kwargs)
        except Exception as e:
            await self._report(self._as_persistence_error(e, "write"), action)
            return False
        return True

    def _as_persistence_error(self, error: Exception, operation: str) -> PersistenceError:
        if isinstance(error, PersistenceError):
            return error
        return PersistenceError(
            f"{type(error).__name__}: {error}", operation=operation, path=self.backend.path
        )

    def _failure_event(self, error: PersistenceError, action: str) -> Event:
        self.last_error = error
        if isinstance(error, PersistencePermissionError):
            name = PERSISTENCE_PERMISSION_DENIED
            logger.warning(f"Permission denied during {action}: {error.operation} {error.path}")
        else:
            name = PERSISTENCE_FAILED
            logger.error(f"Persistence failure during {action}: {error}")
        payload = {"action": action, "operation": error.operation, "path": error.path, "message": str(error)}
        return Event(name=name, payload=payload, source=_SOURCE)

    async def _report(self, error: PersistenceError, action: str) -> None:
        await self.bus.emit(self._failure_event(error, action))

    def _on_subscription_error(self, error: PersistenceError) -> None:
        self.bus.emit_sync(self._failure_event(error, "subscribe"))

    async def _emit(self, name: str, **payload: Any) -> None:
        await self.bus.emit(Event(name=name, payload=payload, source=_SOURCE))
