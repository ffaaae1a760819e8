"""Core data models for the diary.

Entries travel as camelCase JSON objects (``imageUrl``) in files and remote
documents; in Python they are plain dataclasses with snake_case fields.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Mood(StrEnum):
    HAPPY = "happy"
    SAD = "sad"
    NEUTRAL = "neutral"
    EXCITED = "excited"
    TIRED = "tired"


class Weather(StrEnum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"


# Wire name -> attribute name for the fields DiaryEntry models explicitly.
_FIELD_MAP = {
    "id": "id",
    "date": "date",
    "title": "title",
    "content": "content",
    "tags": "tags",
    "imageUrl": "image_url",
    "mood": "mood",
    "weather": "weather",
}
_OPTIONAL_FIELDS = ("imageUrl", "mood", "weather")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class DiaryEntry:
    """One diary record.

    Attributes:
        id: Opaque identifier, stable for the entry's lifetime.
        date: Creation timestamp as an ISO-8601 string.
        title: Display title.
        content: Free-form body text.
        tags: Normalized tags (see :func:`dayleaf.diary.tags.parse_tags`).
        image_url: Optional image reference.
        mood: Optional mood value, kept as text even when outside :class:`Mood`.
        weather: Optional weather value, kept as text even when outside :class:`Weather`.
        extra: Unrecognized fields from imported or remote records.
    """

    id: str
    date: str
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    mood: str | None = None
    weather: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire format, omitting unset optional fields."""
        data: dict[str, Any] = copy.deepcopy(self.extra)
        for wire_name, attr in _FIELD_MAP.items():
            value = getattr(self, attr)
            if wire_name in _OPTIONAL_FIELDS and value is None:
                continue
            data[wire_name] = list(value) if isinstance(value, (list, tuple)) else value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DiaryEntry:
        """Build an entry from a wire-format mapping.

        Text fields are coerced to ``str`` and tags go through
        :func:`~dayleaf.diary.tags.parse_tags`, so a record from a file or a
        remote document always yields a well-typed entry. Structural checks
        live with the callers (see :func:`dayleaf.diary.transfer.is_importable`).
        """
        from .tags import parse_tags

        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            attr = _FIELD_MAP.get(key)
            if attr is None:
                extra[key] = copy.deepcopy(value)
            else:
                kwargs[attr] = value
        for attr in ("id", "date", "title", "content"):
            kwargs[attr] = _text(kwargs.get(attr))
        for attr in ("image_url", "mood", "weather"):
            if kwargs.get(attr) is not None:
                kwargs[attr] = str(kwargs[attr])
        kwargs["tags"] = parse_tags(kwargs.get("tags"))
        return cls(**kwargs, extra=extra)

    def copy(self) -> DiaryEntry:
        return copy.deepcopy(self)


@dataclass
class EntryDraft:
    """User input for a new entry.

    ``tags`` is the raw comma-separated string from the entry form.
    """

    title: str
    content: str = ""
    tags: str = ""
    image_url: str | None = None
    mood: Mood | str | None = None
    weather: Weather | str | None = None


@dataclass
class ImportResult:
    """Outcome of :meth:`EntryStore.import_entries`.

    Attributes:
        accepted: Ids of records that were written and merged.
        rejected: Number of candidates dropped by structural validation.
        error: The persistence error when the batch failed; nothing was merged.
    """

    accepted: list[str] = field(default_factory=list)
    rejected: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
