"""Shared setup logic for CLI commands."""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click

DAYLEAF_DIR = Path.home() / ".dayleaf"
CONFIG_PATH = DAYLEAF_DIR / "config.yaml"

T = TypeVar("T")


def load_config(config_file: str | None = None, data_dir: str | None = None):
    """Load and validate config from ~/.dayleaf/config.yaml (or *config_file*).

    Returns the raw :class:`Config` and its validated :class:`DayleafConfig`.

    Raises:
        ConfigurationError: If the file is unreadable or a value fails validation.
    """
    from dayleaf.core.config import Config

    config = Config(config_file=config_file or str(CONFIG_PATH), data_dir=data_dir or str(DAYLEAF_DIR))
    return config, config.validated()


def configure_logging(settings, verbose: bool = False) -> None:
    """Route loguru to stderr and, when a log directory is configured, to a file there."""
    from dayleaf.core.utils.logging import setup_logging

    level = "DEBUG" if verbose else settings.logging.level
    log_file = str(settings.paths.log_dir / "dayleaf.log") if settings.paths.log_dir else None
    setup_logging(level=level, log_file=log_file)


def key_value_store(config):
    """The local key/value store shared by the local backend and the password gate."""
    from dayleaf.core.storage import LocalKeyValueStore

    return LocalKeyValueStore(base_path=os.path.join(config.get_data_dir(), "data"))


def ensure_unlocked(config) -> None:
    """Exit unless the password gate is open."""
    from dayleaf.diary.gate import PasswordGate

    if not PasswordGate(key_value_store(config)).is_unlocked:
        click.echo("Diary is locked. Run 'dayleaf unlock' first.", err=True)
        sys.exit(1)


def _echo_failure(event) -> None:
    payload = event.payload
    if event.name.endswith("permission_denied"):
        click.echo(f"Permission denied: cannot {payload['operation']} {payload['path']}", err=True)
    else:
        click.echo(f"Could not save changes: {payload['message']}", err=True)


def create_store(config):
    """Build an EntryStore on the configured backend, reporting failures to stderr."""
    from dayleaf.core.events import PERSISTENCE_FAILED, PERSISTENCE_PERMISSION_DENIED, EventBus
    from dayleaf.diary.backends import create_backend
    from dayleaf.diary.store import EntryStore

    bus = EventBus()
    bus.on(PERSISTENCE_PERMISSION_DENIED, _echo_failure)
    bus.on(PERSISTENCE_FAILED, _echo_failure)
    return EntryStore(create_backend(config), bus=bus)


def run_with_store(ctx: click.Context, action: Callable[[Any], Awaitable[T]]) -> T:
    """Initialize a store for the current config and run *action* on it."""
    from dayleaf.core.exceptions import ConfigurationError

    config = ctx.obj["config"]
    ensure_unlocked(config)

    async def _run() -> T:
        try:
            store = create_store(config)
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e
        await store.initialize()
        if not store.initialized:
            raise click.ClickException("Could not load diary entries.")
        return await action(store)

    return asyncio.run(_run())


def format_entry_line(entry) -> str:
    stamp = entry.date[:16].replace("T", " ")
    tags = f"  [{', '.join(entry.tags)}]" if entry.tags else ""
    return f"{entry.id}  {stamp}  {entry.title}{tags}"
