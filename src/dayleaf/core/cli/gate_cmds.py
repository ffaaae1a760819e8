"""dayleaf set-password / unlock / lock."""

from __future__ import annotations

import click

from .common import key_value_store


def _gate(ctx):
    from dayleaf.diary.gate import PasswordGate

    return PasswordGate(key_value_store(ctx.obj["config"]))


@click.command(name="set-password")
@click.password_option(help="New diary password (at least 6 characters).")
@click.pass_context
def set_password(ctx, password) -> None:
    """Protect the diary with a password."""
    from dayleaf.core.exceptions import AuthenticationError

    gate = _gate(ctx)
    if gate.has_password and not gate.is_unlocked:
        raise click.ClickException("Unlock the diary before changing its password.")
    try:
        gate.set_password(password)
    except AuthenticationError as e:
        raise click.ClickException(str(e)) from e
    click.echo("Password set. The diary is now locked.")


@click.command()
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def unlock(ctx, password) -> None:
    """Unlock the diary."""
    if not _gate(ctx).unlock(password):
        raise click.ClickException("Incorrect password.")
    click.echo("Diary unlocked.")


@click.command()
@click.pass_context
def lock(ctx) -> None:
    """Lock the diary."""
    _gate(ctx).lock()
    click.echo("Diary locked.")
