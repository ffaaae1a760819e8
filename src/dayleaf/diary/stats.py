"""Journaling statistics."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from .models import DiaryEntry
from .view import parse_entry_date


@dataclass
class DiaryStats:
    total_entries: int = 0
    unique_tags: int = 0
    streak_days: int = 0
    moods: dict[str, int] = field(default_factory=dict)


def journaling_streak(entries: Iterable[DiaryEntry], today: date | None = None) -> int:
    """Number of consecutive calendar days with at least one entry.

    The streak must reach today or yesterday; otherwise it is broken and
    the result is 0. Several entries on one day count once.
    """
    days = sorted(
        {parsed.date() for parsed in (parse_entry_date(entry.date) for entry in entries) if parsed is not None},
        reverse=True,
    )
    if not days:
        return 0

    today = today or date.today()
    if (today - days[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if (previous - current).days != 1:
            break
        streak += 1
    return streak


def mood_distribution(entries: Iterable[DiaryEntry]) -> dict[str, int]:
    """Count of entries per recorded mood; entries without a mood are skipped."""
    return dict(Counter(entry.mood for entry in entries if entry.mood))


def summarize(entries: Iterable[DiaryEntry], today: date | None = None) -> DiaryStats:
    entries = list(entries)
    return DiaryStats(
        total_entries=len(entries),
        unique_tags=len({tag for entry in entries for tag in entry.tags}),
        streak_days=journaling_streak(entries, today=today),
        moods=mood_distribution(entries),
    )
