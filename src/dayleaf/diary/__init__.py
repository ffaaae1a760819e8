"""Diary entries, their store, and the features built on top.

Provides the entry model, an :class:`EntryStore` that owns entries and
writes through to a pluggable backend, a filtered view, tag index,
import/export, statistics, a password gate and an AI writing-prompt helper.
"""

from .backends import EntryBackend, LocalEntryBackend, RemoteEntryBackend, Subscription, create_backend
from .gate import PasswordGate
from .models import DiaryEntry, EntryDraft, ImportResult, Mood, Weather
from .prompts import GENERIC_PROMPTS, PromptResult, WritingPromptGenerator, build_prompt_context
from .stats import DiaryStats, journaling_streak, mood_distribution, summarize
from .store import EntryStore
from .tags import build_tag_index, parse_tags
from .transfer import export_entries, export_filename, is_importable, parse_import
from .view import FilteredEntries, filter_entries

__all__ = [
    "GENERIC_PROMPTS",
    "DiaryEntry",
    "DiaryStats",
    "EntryBackend",
    "EntryDraft",
    "EntryStore",
    "FilteredEntries",
    "ImportResult",
    "LocalEntryBackend",
    "Mood",
    "PasswordGate",
    "PromptResult",
    "RemoteEntryBackend",
    "Subscription",
    "Weather",
    "WritingPromptGenerator",
    "build_prompt_context",
    "build_tag_index",
    "create_backend",
    "export_entries",
    "export_filename",
    "filter_entries",
    "is_importable",
    "journaling_streak",
    "mood_distribution",
    "parse_import",
    "parse_tags",
    "summarize",
]
