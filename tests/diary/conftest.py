"""Diary test fixtures: an in-memory stand-in for a Firestore client.

Only the calls the remote backend makes are modelled. Set ``fail_with``
on the client to make every call raise that exception, except
``on_snapshot``, which returns a listener that never delivers.
"""

from __future__ import annotations

import copy
import threading

import pytest


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeWatch:
    def __init__(self, collection, callback, closed=False):
        self.collection = collection
        self.callback = callback
        self.closed = closed
        self.unsubscribed = 0

    def unsubscribe(self):
        self.unsubscribed += 1

    def fire(self):
        """Deliver the current collection from a worker thread, like Firestore does."""
        if self.closed:
            return
        thread = threading.Thread(target=self.callback, args=(self.collection.snapshots(), [], None))
        thread.start()
        thread.join()


class FakeDocumentReference:
    def __init__(self, client, path, doc_id):
        self.client = client
        self.path = path
        self.id = doc_id

    def set(self, data, merge=False):
        self.client.check()
        docs = self.client.data.setdefault(self.path, {})
        if merge and self.id in docs:
            docs[self.id].update(copy.deepcopy(data))
        else:
            docs[self.id] = copy.deepcopy(data)
        self.client.calls.append(("set", self.id, merge))

    def delete(self):
        self.client.check()
        self.client.data.get(self.path, {}).pop(self.id, None)
        self.client.calls.append(("delete", self.id))


class FakeCollection:
    def __init__(self, client, path):
        self.client = client
        self.path = path

    def document(self, doc_id):
        return FakeDocumentReference(self.client, self.path, doc_id)

    def snapshots(self):
        return [FakeSnapshot(doc_id, data) for doc_id, data in self.client.data.get(self.path, {}).items()]

    def stream(self):
        self.client.check()
        return iter(self.snapshots())

    def on_snapshot(self, callback):
        # A refused listener is closed in the background; nothing is raised here.
        watch = FakeWatch(self, callback, closed=self.client.fail_with is not None)
        self.client.watches.append(watch)
        return watch


class FakeBatch:
    def __init__(self, client):
        self.client = client
        self.writes = []

    def set(self, ref, data):
        self.writes.append((ref, data))

    def commit(self):
        self.client.check()
        for ref, data in self.writes:
            self.client.data.setdefault(ref.path, {})[ref.id] = copy.deepcopy(data)
        self.client.calls.append(("commit", len(self.writes)))


class FakeFirestoreClient:
    def __init__(self):
        self.data: dict[str, dict[str, dict]] = {}
        self.calls: list[tuple] = []
        self.watches: list[FakeWatch] = []
        self.fail_with: Exception | None = None

    def check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def collection(self, path):
        return FakeCollection(self, path)

    def batch(self):
        return FakeBatch(self)


@pytest.fixture
def firestore_client():
    return FakeFirestoreClient()
