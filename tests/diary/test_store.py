"""Tests for EntryStore: optimistic updates, tag index, import and failure reporting."""

import json
from datetime import date, datetime, timezone

import pytest

from dayleaf.core.events import (
    ENTRIES_IMPORTED,
    ENTRIES_LOADED,
    ENTRIES_SYNCED,
    ENTRY_ADDED,
    ENTRY_DELETED,
    ENTRY_UPDATED,
    PERSISTENCE_FAILED,
    PERSISTENCE_PERMISSION_DENIED,
    EventBus,
)
from dayleaf.core.exceptions import PersistenceError, PersistencePermissionError
from dayleaf.core.storage import LocalKeyValueStore
from dayleaf.diary.backends import LocalEntryBackend, RemoteEntryBackend
from dayleaf.diary.models import EntryDraft, Mood
from dayleaf.diary.store import EntryStore
from dayleaf.diary.tags import build_tag_index
from dayleaf.diary.transfer import export_entries, parse_import

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


class FlakyBackend(LocalEntryBackend):
    """Local backend whose operations can be made to fail."""

    def __init__(self, kv):
        super().__init__(kv)
        self.fail_with: Exception | None = None
        self.writes = 0

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def load_all(self):
        self._check()
        return await super().load_all()

    async def add(self, entry):
        self._check()
        self.writes += 1
        await super().add(entry)

    async def set(self, entry, merge=True):
        self._check()
        self.writes += 1
        await super().set(entry, merge=merge)

    async def delete(self, entry_id):
        self._check()
        self.writes += 1
        await super().delete(entry_id)

    async def set_many(self, entries):
        self._check()
        self.writes += 1
        await super().set_many(entries)


@pytest.fixture
def backend(kv):
    return FlakyBackend(kv)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def events(bus):
    received = []
    bus.on_all(received.append)
    return received


@pytest.fixture
async def store(backend, bus):
    store = EntryStore(backend, bus=bus, clock=lambda: FIXED_NOW)
    await store.initialize()
    return store


def _names(events):
    return [event.name for event in events]


class TestInitialize:
    async def test_loads_persisted_entries(self, backend, bus, make_entry):
        await backend.set_many([make_entry("a", tags=["work"]), make_entry("b", tags=["gym"])])
        store = EntryStore(backend, bus=bus)
        await store.initialize()

        assert store.initialized
        assert len(store) == 2
        assert store.tags == ["gym", "work"]

    async def test_second_call_is_noop(self, backend, bus, events):
        store = EntryStore(backend, bus=bus)
        await store.initialize()
        assert await store.initialize() is None
        assert _names(events) == [ENTRIES_LOADED]

    async def test_load_failure_reported_and_retryable(self, backend, bus, events):
        backend.fail_with = PersistencePermissionError("denied", operation="list", path="dayleaf-entries")
        store = EntryStore(backend, bus=bus)
        await store.initialize()

        assert not store.initialized
        assert _names(events) == [PERSISTENCE_PERMISSION_DENIED]
        assert events[0].payload["operation"] == "list"
        assert events[0].payload["action"] == "initialize"

        backend.fail_with = None
        await store.initialize()
        assert store.initialized

    async def test_live_falls_back_to_load_without_subscription_support(self, backend, bus):
        store = EntryStore(backend, bus=bus)
        assert await store.initialize(live=True) is None
        assert store.initialized

    async def test_mistyped_stored_values_normalized(self, kv, backend, bus):
        kv.set(
            backend.key,
            json.dumps([{"id": "a", "date": "2024-01-01T00:00:00Z", "title": 2024, "content": None, "tags": [1, "x"]}]),
        )
        store = EntryStore(backend, bus=bus)
        await store.initialize()

        assert store.initialized
        assert store.tags == ["1", "x"]
        store.set_search_term("2024")
        assert [e.title for e in store.filtered()] == ["2024"]


class TestAddEntry:
    async def test_returns_unique_ids(self, store):
        ids = [await store.add_entry(EntryDraft(title=f"Entry {i}")) for i in range(10)]
        assert len(store) == 10
        assert len(set(ids)) == 10

    async def test_builds_entry_from_draft(self, store, backend):
        entry_id = await store.add_entry(
            EntryDraft(title="Run", content="5k", tags=" fitness, ,morning,fitness", mood=Mood.HAPPY)
        )
        entry = store.get_entry(entry_id)
        assert entry.date == "2024-05-01T12:30:45.123Z"
        assert entry.tags == ["fitness", "morning"]
        assert entry.mood == "happy"
        assert entry.image_url is None
        assert [e.id for e in await backend.load_all()] == [entry_id]

    async def test_emits_added(self, store, events):
        entry_id = await store.add_entry(EntryDraft(title="x"))
        assert events[-1].name == ENTRY_ADDED
        assert events[-1].payload == {"id": entry_id}

    async def test_write_failure_keeps_optimistic_entry(self, store, backend, events):
        backend.fail_with = PersistenceError("disk full", operation="write", path="dayleaf-entries")
        entry_id = await store.add_entry(EntryDraft(title="Unsaved", tags="draft"))

        assert store.get_entry(entry_id) is not None
        assert store.tags == ["draft"]
        assert _names(events)[-1] == PERSISTENCE_FAILED
        assert store.last_error is backend.fail_with

    async def test_permission_failure_emits_one_event(self, store, backend, events):
        backend.fail_with = PersistencePermissionError("denied", operation="write", path="users/u1/diaryEntries")
        events.clear()
        await store.add_entry(EntryDraft(title="x"))

        assert _names(events) == [PERSISTENCE_PERMISSION_DENIED]
        payload = events[0].payload
        assert payload["operation"] == "write"
        assert payload["path"] == "users/u1/diaryEntries"
        assert payload["action"] == "add"

    async def test_unexpected_backend_error_wrapped(self, store, backend):
        backend.fail_with = RuntimeError("socket closed")
        await store.add_entry(EntryDraft(title="x"))
        assert isinstance(store.last_error, PersistenceError)
        assert "socket closed" in str(store.last_error)
        assert store.last_error.path == backend.path


class TestUpdateEntry:
    async def test_unknown_id_changes_nothing(self, store, backend, make_entry):
        await store.add_entry(EntryDraft(title="keep"))
        before = store.entries
        writes = backend.writes

        assert await store.update_entry(make_entry("missing", title="ghost")) is False
        assert store.entries == before
        assert backend.writes == writes

    async def test_replaces_fields_and_keeps_date(self, store, backend):
        entry_id = await store.add_entry(EntryDraft(title="Old", tags="a"))
        entry = store.get_entry(entry_id)
        entry.title = "New"
        entry.date = "1999-01-01T00:00:00Z"
        entry.tags = "b, c"

        assert await store.update_entry(entry) is True
        updated = store.get_entry(entry_id)
        assert updated.title == "New"
        assert updated.date == "2024-05-01T12:30:45.123Z"
        assert updated.tags == ["b", "c"]
        assert store.tags == ["b", "c"]
        assert (await backend.load_all())[0].title == "New"

    async def test_emits_updated(self, store, events):
        entry_id = await store.add_entry(EntryDraft(title="x"))
        await store.update_entry(store.get_entry(entry_id))
        assert events[-1].name == ENTRY_UPDATED


class TestDeleteEntry:
    async def test_delete_twice_is_idempotent(self, store, backend, events):
        entry_id = await store.add_entry(EntryDraft(title="x", tags="solo"))

        assert await store.delete_entry(entry_id) is True
        writes = backend.writes
        assert await store.delete_entry(entry_id) is False

        assert len(store) == 0
        assert store.tags == []
        assert backend.writes == writes
        assert _names(events).count(ENTRY_DELETED) == 1


class TestTagIndex:
    async def test_index_matches_union_after_every_mutation(self, store):
        ids = []
        for tags in ("work, gym", "gym", "family,work", ""):
            ids.append(await store.add_entry(EntryDraft(title="t", tags=tags)))
            assert store.tags == build_tag_index(store.entries)

        entry = store.get_entry(ids[0])
        entry.tags = ["travel"]
        await store.update_entry(entry)
        assert store.tags == build_tag_index(store.entries) == ["family", "gym", "travel", "work"]

        await store.delete_entry(ids[2])
        assert store.tags == build_tag_index(store.entries) == ["gym", "travel"]


class TestImport:
    RECORD = {"id": "a", "date": "2024-01-01T00:00:00Z", "title": "T", "content": "C", "tags": []}

    async def test_single_record_into_empty_store(self, store):
        result = await store.import_entries([dict(self.RECORD)])
        assert result.ok
        assert result.accepted == ["a"]
        assert [e.id for e in store.entries] == ["a"]

    async def test_reimport_replaces_instead_of_duplicating(self, store):
        await store.import_entries([dict(self.RECORD)])
        await store.import_entries([{**self.RECORD, "title": "Renamed"}])

        assert len(store) == 1
        assert store.get_entry("a").title == "Renamed"

    async def test_non_array_accepts_nothing(self, store, backend):
        writes = backend.writes
        result = await store.import_entries({"id": "a"})
        assert result.accepted == []
        assert len(store) == 0
        assert backend.writes == writes

    async def test_invalid_elements_dropped(self, store, backend):
        candidates = [
            dict(self.RECORD),
            {"id": "b", "date": "2024-01-02T00:00:00Z", "content": "no title"},
            {"id": "c", "date": "2024-01-03T00:00:00Z", "title": "", "content": ""},
            {"id": "d", "date": "2024-01-04T00:00:00Z", "title": "no content"},
            "not an object",
            {"id": "e", "date": "2024-01-05T00:00:00Z", "title": "Empty body", "content": ""},
        ]
        result = await store.import_entries(candidates)

        assert result.accepted == ["a", "e"]
        assert result.rejected == 4
        assert sorted(e.id for e in await backend.load_all()) == ["a", "e"]

    async def test_later_duplicate_in_batch_wins(self, store):
        result = await store.import_entries([dict(self.RECORD), {**self.RECORD, "title": "Second"}])
        assert result.accepted == ["a"]
        assert store.get_entry("a").title == "Second"

    async def test_non_string_fields_searchable(self, store):
        await store.import_entries([{**self.RECORD, "title": 2024, "content": 42, "tags": [7, "work"]}])

        store.set_search_term("work")
        assert [e.title for e in store.filtered()] == ["2024"]
        store.set_search_term("42")
        assert len(store.filtered()) == 1
        assert store.tags == ["7", "work"]

    async def test_comma_separated_tag_string_split(self, store):
        await store.import_entries([{**self.RECORD, "tags": "a, b"}])
        assert store.get_entry("a").tags == ["a", "b"]
        assert store.tags == ["a", "b"]

    async def test_tags_normalized_and_extra_fields_kept(self, store):
        await store.import_entries([{**self.RECORD, "tags": [" work ", "", "work"], "location": "Rome"}])
        entry = store.get_entry("a")
        assert entry.tags == ["work"]
        assert entry.extra == {"location": "Rome"}
        assert store.tags == ["work"]

    async def test_failed_batch_leaves_store_untouched(self, store, backend, events):
        await store.import_entries([dict(self.RECORD)])
        before = store.entries
        backend.fail_with = PersistenceError("quota exceeded", operation="write", path="dayleaf-entries")

        result = await store.import_entries([{**self.RECORD, "title": "Changed"}, {**self.RECORD, "id": "b"}])

        assert not result.ok
        assert result.error is backend.fail_with
        assert store.entries == before
        assert _names(events)[-1] == PERSISTENCE_FAILED
        assert events[-1].payload["action"] == "import"

    async def test_emits_imported(self, store, events):
        await store.import_entries([dict(self.RECORD), "junk"])
        assert events[-1].name == ENTRIES_IMPORTED
        assert events[-1].payload == {"ids": ["a"], "rejected": 1}

    async def test_export_import_round_trip(self, store, bus, tmp_path):
        await store.add_entry(EntryDraft(title="One", content="first", tags="a,b", mood="happy"))
        await store.add_entry(EntryDraft(title="Two", content="", weather="snowy", image_url="pic.png"))
        exported = export_entries(store.entries)

        other = EntryStore(LocalEntryBackend(LocalKeyValueStore(str(tmp_path / "restore"))), bus=bus)
        await other.initialize()
        result = await other.import_entries(parse_import(exported))

        assert result.rejected == 0
        assert {e.id: e for e in other.entries} == {e.id: e for e in store.entries}


class TestFilters:
    async def test_default_view_sorted_newest_first(self, backend, bus):
        clock_values = iter(
            [
                datetime(2024, 1, 2, tzinfo=timezone.utc),
                datetime(2024, 1, 3, tzinfo=timezone.utc),
                datetime(2024, 1, 1, tzinfo=timezone.utc),
            ]
        )
        store = EntryStore(backend, bus=bus, clock=lambda: next(clock_values))
        await store.initialize()
        for title in ("middle", "newest", "oldest"):
            await store.add_entry(EntryDraft(title=title))

        assert [e.title for e in store.filtered()] == ["newest", "middle", "oldest"]
        assert [e.title for e in store.recent_entries(2)] == ["newest", "middle"]

    async def test_search_matches_tag_only(self, store):
        await store.add_entry(EntryDraft(title="Monday", content="Long day", tags="work"))
        await store.add_entry(EntryDraft(title="Tuesday", content="Gym"))

        store.set_search_term("work")
        assert [e.title for e in store.filtered()] == ["Monday"]

    async def test_view_reflects_later_changes(self, store):
        view = store.filtered()
        assert list(view) == []
        await store.add_entry(EntryDraft(title="x"))
        assert len(list(view)) == 1

    async def test_selected_date(self, store):
        await store.add_entry(EntryDraft(title="x"))
        store.set_selected_date(datetime(2024, 5, 1, 18, 0))
        assert store.selected_date == date(2024, 5, 1)
        assert len(store.filtered()) == 1

        store.set_selected_date(date(2024, 5, 2))
        assert len(store.filtered()) == 0

        store.set_selected_date(None)
        assert len(store.filtered()) == 1

    async def test_returned_entries_are_copies(self, store):
        entry_id = await store.add_entry(EntryDraft(title="x", tags="a"))
        store.get_entry(entry_id).tags.append("mutated")
        store.entries[0].title = "mutated"
        assert store.get_entry(entry_id).tags == ["a"]
        assert store.get_entry(entry_id).title == "x"


class TestLiveSubscription:
    @pytest.fixture
    def remote(self, firestore_client):
        return RemoteEntryBackend("u1", client=firestore_client)

    async def test_snapshot_replaces_collection(self, remote, firestore_client, bus, events, make_entry):
        store = EntryStore(remote, bus=bus)
        subscription = await store.initialize(live=True)
        assert subscription.active
        assert store.initialized

        firestore_client.data["users/u1/diaryEntries"] = {
            "a": make_entry("a", tags=["x"]).to_dict(),
            "b": make_entry("b", tags=["y"]).to_dict(),
        }
        firestore_client.watches[0].fire()
        await _drain()

        assert sorted(e.id for e in store.entries) == ["a", "b"]
        assert store.tags == ["x", "y"]
        assert events[-1].name == ENTRIES_SYNCED
        assert events[-1].payload == {"count": 2}

        subscription.stop()
        subscription.stop()
        assert firestore_client.watches[0].unsubscribed == 1

    async def test_denied_access_reported_before_listening(self, remote, firestore_client, bus, events):
        from google.api_core.exceptions import PermissionDenied

        firestore_client.fail_with = PermissionDenied("denied")
        store = EntryStore(remote, bus=bus)

        assert await store.initialize(live=True) is None
        assert not store.initialized
        assert _names(events) == [PERSISTENCE_PERMISSION_DENIED]
        assert events[0].payload["path"] == "users/u1/diaryEntries"
        assert firestore_client.watches == []

    async def test_live_start_loads_existing_entries(self, remote, firestore_client, bus, events, make_entry):
        firestore_client.data["users/u1/diaryEntries"] = {"a": make_entry("a", tags=["x"]).to_dict()}
        store = EntryStore(remote, bus=bus)

        with await store.initialize(live=True):
            assert [e.id for e in store.entries] == ["a"]
            assert store.tags == ["x"]
            assert _names(events) == [ENTRIES_LOADED]

    async def test_optimistic_add_then_confirmed(self, remote, firestore_client, bus):
        store = EntryStore(remote, bus=bus)
        with await store.initialize(live=True):
            entry_id = await store.add_entry(EntryDraft(title="Hello"))
            assert [e.id for e in store.entries] == [entry_id]

            firestore_client.watches[0].fire()
            await _drain()
            assert [e.title for e in store.entries] == ["Hello"]


async def _drain():
    import asyncio

    for _ in range(3):
        await asyncio.sleep(0)
