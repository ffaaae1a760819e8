"""dayleaf export / import / stats / prompt."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import click

from .common import run_with_store


@click.command(name="export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Defaults to a dated file.")
@click.pass_context
def export_cmd(ctx, output) -> None:
    """Export all entries to a JSON backup file."""
    from dayleaf.diary.transfer import export_entries, export_filename

    async def _entries(store):
        return store.entries

    entries = run_with_store(ctx, _entries)
    path = Path(output or export_filename())
    path.write_text(export_entries(entries) + "\n", encoding="utf-8")
    click.echo(f"Exported {len(entries)} entries to {path}")


@click.command(name="import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_cmd(ctx, file) -> None:
    """Import entries from a JSON backup, merging by id."""
    from dayleaf.core.exceptions import ImportFormatError
    from dayleaf.diary.transfer import parse_import

    try:
        candidates = parse_import(Path(file).read_bytes())
    except ImportFormatError as e:
        raise click.ClickException(str(e)) from e

    result = run_with_store(ctx, lambda store: store.import_entries(candidates))
    if not result.ok:
        raise click.ClickException(f"Import failed: {result.error}")
    click.echo(f"Imported {len(result.accepted)} entries ({result.rejected} skipped)")


@click.command()
@click.pass_context
def stats(ctx) -> None:
    """Show journaling statistics."""
    from dayleaf.diary.stats import summarize

    async def _summary(store):
        return summarize(store.entries)

    summary = run_with_store(ctx, _summary)
    click.echo(f"Total entries:   {summary.total_entries}")
    click.echo(f"Journaling streak: {summary.streak_days} days")
    click.echo(f"Unique tags:     {summary.unique_tags}")
    if summary.moods:
        click.echo("Moods:")
        for mood, count in sorted(summary.moods.items(), key=lambda item: (-item[1], item[0])):
            click.echo(f"  {mood}: {count}")
    else:
        click.echo("No mood data recorded yet.")


@click.command()
@click.option("--context", "-n", "context_entries", type=int, default=None, help="Recent entries to use.")
@click.pass_context
def prompt(ctx, context_entries) -> None:
    """Suggest something to write about."""
    from dayleaf.core.llm import PROVIDER_ENV_MAP, LLMClient
    from dayleaf.diary.prompts import WritingPromptGenerator, build_prompt_context

    config = ctx.obj["config"]
    settings = ctx.obj["settings"]
    limit = context_entries or settings.prompt.context_entries

    async def _context(store):
        return build_prompt_context(store.entries, limit=limit)

    past_entries = run_with_store(ctx, _context)

    for provider, key in (config.get("llm.api_keys", {}) or {}).items():
        env_var = PROVIDER_ENV_MAP.get(provider)
        if env_var and key and env_var not in os.environ:
            os.environ[env_var] = key

    client = LLMClient(
        model=settings.llm.model or None,
        temperature=settings.llm.temperature,
        timeout=settings.llm.timeout,
        fallback_model=settings.llm.fallback_model or None,
    )
    result = asyncio.run(WritingPromptGenerator(client).generate(past_entries))
    if not result.ok:
        raise click.ClickException(result.error)
    click.echo(result.prompt)
