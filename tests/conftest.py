"""Shared test fixtures for dayleaf."""

import os
import tempfile

import pytest

from dayleaf.core.storage import LocalKeyValueStore
from dayleaf.diary.backends import LocalEntryBackend
from dayleaf.diary.models import DiaryEntry


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "log_dir": os.path.join(tmp_dir, "logs"),
        },
        "storage": {"backend": "local"},
        "llm": {"model": "gpt-4o-mini"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def kv(tmp_path):
    return LocalKeyValueStore(base_path=str(tmp_path / "data"))


@pytest.fixture
def local_backend(kv):
    return LocalEntryBackend(kv)


@pytest.fixture
def make_entry():
    """Factory for DiaryEntry objects with sensible defaults."""
    return _make_entry


def _make_entry(entry_id="e1", date="2024-01-01T09:00:00.000Z", title="Title", content="", tags=None, **kwargs):
    return DiaryEntry(id=entry_id, date=date, title=title, content=content, tags=list(tags or []), **kwargs)
