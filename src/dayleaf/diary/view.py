"""Filtered, newest-first view over diary entries.

Example::

    view = FilteredEntries(store.entries, search_term="work")
    for entry in view:          # recomputed on every iteration
        print(entry.title)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, timezone

from .models import DiaryEntry

EntrySource = Iterable[DiaryEntry] | Callable[[], Iterable[DiaryEntry]]


def parse_entry_date(value: str) -> datetime | None:
    """Parse an ISO-8601 entry timestamp, or return None if it is malformed.

    The timezone is kept as written; day comparisons use the date portion
    of the stored timestamp without converting zones.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def matches(entry: DiaryEntry, search_term: str = "", selected_date: date | None = None) -> bool:
    """Whether *entry* passes the keyword and calendar-day filters."""
    if search_term:
        needle = search_term.lower()
        text_match = needle in str(entry.title or "").lower() or needle in str(entry.content or "").lower()
        if not text_match and not any(needle in str(tag).lower() for tag in entry.tags):
            return False

    if selected_date is not None:
        if isinstance(selected_date, datetime):
            selected_date = selected_date.date()
        parsed = parse_entry_date(entry.date)
        if parsed is None or parsed.date() != selected_date:
            return False

    return True


def _sort_key(entry: DiaryEntry) -> tuple[int, float, str]:
    parsed = parse_entry_date(entry.date)
    if parsed is None:
        return (1, 0.0, str(entry.id))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    # Newest first; ties by id ascending.
    return (0, -parsed.timestamp(), str(entry.id))


def filter_entries(
    entries: Iterable[DiaryEntry],
    search_term: str = "",
    selected_date: date | None = None,
) -> list[DiaryEntry]:
    """Entries matching the filters, newest first.

    Entries whose date cannot be parsed sort after all others.
    """
    selected = [entry for entry in entries if matches(entry, search_term, selected_date)]
    return sorted(selected, key=_sort_key)


class FilteredEntries:
    """Lazy, restartable filtered view.

    Nothing is cached: every iteration re-reads *source* and re-applies the
    filters, so the view always reflects the current store contents.

    Args:
        source: An iterable of entries, or a zero-argument callable returning
            one (used by the store to expose its live collection).
        search_term: Case-insensitive keyword matched against title,
            content and tags. Empty matches everything.
        selected_date: Calendar day filter, or None for no date filter.
    """

    def __init__(self, source: EntrySource, search_term: str = "", selected_date: date | None = None):
        self._source = source
        self.search_term = search_term
        self.selected_date = selected_date

    def _entries(self) -> Iterable[DiaryEntry]:
        return self._source() if callable(self._source) else self._source

    def __iter__(self) -> Iterator[DiaryEntry]:
        return iter(filter_entries(self._entries(), self.search_term, self.selected_date))

    def __len__(self) -> int:
        return sum(1 for entry in self._entries() if matches(entry, self.search_term, self.selected_date))

    def __bool__(self) -> bool:
        return any(matches(entry, self.search_term, self.selected_date) for entry in self._entries())

    def __repr__(self) -> str:
        return f"FilteredEntries(search_term={self.search_term!r}, selected_date={self.selected_date!r})"
