"""JSON import/export of diary entries.

Export writes the full collection as a pretty-printed array; import parses a
previously exported file. Parsing is the only step that can fail outright:
element-level validation happens in :meth:`EntryStore.import_entries`,
which drops records that fail :func:`is_importable`.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from ..core.exceptions import ImportFormatError
from .models import DiaryEntry

EXPORT_FILENAME_PREFIX = "dayleaf-backup"
_REQUIRED_NON_EMPTY = ("id", "date", "title")


def is_importable(record: Any) -> bool:
    """Structural check for one imported record.

    Requires non-empty ``id``, ``date`` and ``title`` and a present
    ``content`` key (an empty string is fine). Value types are coerced
    later by :meth:`DiaryEntry.from_dict`.
    """
    if not isinstance(record, Mapping):
        return False
    if any(not record.get(key) for key in _REQUIRED_NON_EMPTY):
        return False
    return "content" in record and record["content"] is not None


def export_entries(entries: Iterable[DiaryEntry]) -> str:
    """Serialize entries as a pretty-printed JSON array."""
    return json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False)


def export_filename(today: date | None = None) -> str:
    """Date-stamped backup filename, e.g. ``dayleaf-backup-2024-01-31.json``."""
    today = today or date.today()
    return f"{EXPORT_FILENAME_PREFIX}-{today.isoformat()}.json"


def parse_import(text: str | bytes) -> Any:
    """Parse the contents of an import file.

    Returns whatever JSON value the file holds; a non-array simply yields
    no importable records later on.

    Raises:
        ImportFormatError: If the text is not valid JSON.
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Import file is not valid JSON: {e}") from e
