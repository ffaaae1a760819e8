"""Tag parsing and the derived tag index."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import DiaryEntry


def parse_tags(raw: Any) -> list[str]:
    """Normalize freeform tag input.

    Accepts the comma-separated string from an entry form or an existing
    list of tags. Each tag is trimmed, empties are dropped and duplicates
    removed, keeping first-seen order. Non-string values (numbers in an
    imported file, say) are converted with ``str``.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        parts: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple, set, frozenset)):
        parts = raw
    else:
        parts = [raw]

    tags: list[str] = []
    for part in parts:
        if part is None:
            continue
        tag = str(part).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def build_tag_index(entries: Iterable[DiaryEntry]) -> list[str]:
    """Sorted, deduplicated union of every entry's tags.

    Rebuilt from scratch after each mutation; diary-sized collections make
    an incremental index unnecessary.
    """
    return sorted({str(tag) for entry in entries for tag in entry.tags})
