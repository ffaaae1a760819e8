"""
Local diary backend.

The whole collection is one JSON array stored under a fixed key in a
synchronous key/value store. Every write rewrites the array.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from loguru import logger

from ...core.exceptions import PersistenceError, PersistencePermissionError
from ...core.storage import KeyValueStore, StorageError, StoragePermissionError
from ..models import DiaryEntry
from .base import EntryBackend

DEFAULT_ENTRIES_KEY = "dayleaf-entries"


class LocalEntryBackend(EntryBackend):
    """Entry collection kept as a single blob in a :class:`KeyValueStore`."""

    supports_subscription = False

    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_ENTRIES_KEY):
        self.kv = kv
        self.key = key
        self.path = key

    def new_id(self) -> str:
        return uuid.uuid4().hex

    # ------------------------------------------------------------------
    # Blob access
    # ------------------------------------------------------------------

    def _read(self) -> list[dict[str, Any]]:
        try:
            raw = self.kv.get(self.key)
        except StoragePermissionError as e:
            raise PersistencePermissionError(str(e), operation="list", path=self.path) from e
        except StorageError as e:
            raise PersistenceError(str(e), operation="list", path=self.path) from e

        if raw is None or not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                f"Stored entries under '{self.key}' are not valid JSON: {e}", operation="list", path=self.path
            ) from e
        if not isinstance(data, list):
            raise PersistenceError(
                f"Stored entries under '{self.key}' are not a JSON array", operation="list", path=self.path
            )

        records = [record for record in data if isinstance(record, dict) and record.get("id")]
        if len(records) != len(data):
            logger.warning(f"Ignoring {len(data) - len(records)} malformed records under '{self.key}'")
        return records

    def _write(self, records: list[dict[str, Any]]) -> None:
        try:
            self.kv.set(self.key, json.dumps(records, ensure_ascii=False))
        except StoragePermissionError as e:
            raise PersistencePermissionError(str(e), operation="write", path=self.path) from e
        except StorageError as e:
            raise PersistenceError(str(e), operation="write", path=self.path) from e

    def _upsert(self, entries: list[DiaryEntry], merge: bool) -> None:
        records = self._read()
        positions = {record["id"]: i for i, record in enumerate(records)}
        for entry in entries:
            data = entry.to_dict()
            index = positions.get(entry.id)
            if index is None:
                positions[entry.id] = len(records)
                records.append(data)
            elif merge:
                records[index].update(data)
            else:
                records[index] = data
        self._write(records)

    # ------------------------------------------------------------------
    # EntryBackend
    # ------------------------------------------------------------------

    async def load_all(self) -> list[DiaryEntry]:
        entries = [DiaryEntry.from_dict(record) for record in self._read()]
        logger.debug(f"Loaded {len(entries)} entries from '{self.key}'")
        return entries

    async def add(self, entry: DiaryEntry) -> None:
        self._upsert([entry], merge=False)

    async def set(self, entry: DiaryEntry, merge: bool = True) -> None:
        self._upsert([entry], merge=merge)

    async def delete(self, entry_id: str) -> None:
        records = self._read()
        remaining = [record for record in records if record.get("id") != entry_id]
        if len(remaining) != len(records):
            self._write(remaining)

    async def set_many(self, entries: list[DiaryEntry]) -> None:
        # One read-modify-write: either the whole batch lands or nothing does.
        self._upsert(entries, merge=False)
