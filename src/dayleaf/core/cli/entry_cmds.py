"""dayleaf add / list / show / edit / delete / tags."""

from __future__ import annotations

import click

from dayleaf.diary.models import Mood, Weather

from .common import format_entry_line, run_with_store

_MOODS = click.Choice([m.value for m in Mood])
_WEATHER = click.Choice([w.value for w in Weather])


@click.command()
@click.argument("title")
@click.option("--content", "-c", default="", help="Entry text. Use '-' to read from stdin.")
@click.option("--tags", "-t", default="", help="Comma-separated tags.")
@click.option("--mood", type=_MOODS, default=None)
@click.option("--weather", type=_WEATHER, default=None)
@click.option("--image-url", default=None, help="Image to attach to the entry.")
@click.pass_context
def add(ctx, title, content, tags, mood, weather, image_url) -> None:
    """Write a new diary entry."""
    from dayleaf.diary.models import EntryDraft

    if not title.strip():
        raise click.BadParameter("Title cannot be empty.", param_hint="TITLE")
    if content == "-":
        content = click.get_text_stream("stdin").read()

    draft = EntryDraft(title=title, content=content, tags=tags, image_url=image_url, mood=mood, weather=weather)
    entry_id = run_with_store(ctx, lambda store: store.add_entry(draft))
    click.echo(entry_id)


@click.command(name="list")
@click.option("--search", "-s", default="", help="Match title, content or tags (case-insensitive).")
@click.option("--date", "-d", "on_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--limit", "-n", type=int, default=None, help="Show at most N entries.")
@click.pass_context
def list_entries(ctx, search, on_date, limit) -> None:
    """List entries, newest first."""

    async def _list(store):
        store.set_search_term(search)
        store.set_selected_date(on_date.date() if on_date else None)
        return list(store.filtered())

    entries = run_with_store(ctx, _list)
    if limit is not None:
        entries = entries[:limit]
    if not entries:
        click.echo("No entries found.")
        return
    for entry in entries:
        click.echo(format_entry_line(entry))


@click.command()
@click.argument("entry_id")
@click.pass_context
def show(ctx, entry_id) -> None:
    """Print one entry in full."""

    async def _get(store):
        return store.get_entry(entry_id)

    entry = run_with_store(ctx, _get)
    if entry is None:
        raise click.ClickException(f"No entry with id {entry_id}")

    click.echo(entry.title)
    click.echo(entry.date)
    details = [f"{label}: {value}" for label, value in (("mood", entry.mood), ("weather", entry.weather)) if value]
    if entry.tags:
        details.append(f"tags: {', '.join(entry.tags)}")
    if details:
        click.echo("  ".join(details))
    click.echo("")
    click.echo(entry.content)


@click.command()
@click.argument("entry_id")
@click.option("--title", default=None)
@click.option("--content", "-c", default=None, help="Replacement text. Use '-' to read from stdin.")
@click.option("--tags", "-t", default=None, help="Replacement comma-separated tags.")
@click.option("--mood", type=_MOODS, default=None)
@click.option("--weather", type=_WEATHER, default=None)
@click.pass_context
def edit(ctx, entry_id, title, content, tags, mood, weather) -> None:
    """Change an existing entry."""
    if content == "-":
        content = click.get_text_stream("stdin").read()

    async def _edit(store):
        entry = store.get_entry(entry_id)
        if entry is None:
            return False
        if title is not None:
            entry.title = title
        if content is not None:
            entry.content = content
        if tags is not None:
            entry.tags = tags
        if mood is not None:
            entry.mood = mood
        if weather is not None:
            entry.weather = weather
        return await store.update_entry(entry)

    if not run_with_store(ctx, _edit):
        raise click.ClickException(f"No entry with id {entry_id}")
    click.echo(f"Updated {entry_id}")


@click.command()
@click.argument("entry_id")
@click.pass_context
def delete(ctx, entry_id) -> None:
    """Delete an entry."""
    if not run_with_store(ctx, lambda store: store.delete_entry(entry_id)):
        raise click.ClickException(f"No entry with id {entry_id}")
    click.echo(f"Deleted {entry_id}")


@click.command()
@click.pass_context
def tags(ctx) -> None:
    """List every tag in use."""

    async def _tags(store):
        return store.tags

    for tag in run_with_store(ctx, _tags):
        click.echo(tag)
