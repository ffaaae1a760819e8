"""Dayleaf CLI: entry point for diary commands."""

import click

from dayleaf import __version__


@click.group()
@click.version_option(version=__version__, package_name="dayleaf")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML or JSON config.")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Where diary data is kept.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx, config_file, data_dir, verbose) -> None:
    """Dayleaf, your personal diary."""
    from dayleaf.core.exceptions import ConfigurationError

    from .common import configure_logging, load_config

    try:
        config, settings = load_config(config_file, data_dir)
        config.ensure_directories()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Cannot create data directories: {e}") from e
    configure_logging(settings, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["settings"] = settings


# Register subcommands
from .data_cmds import export_cmd, import_cmd, prompt, stats
from .entry_cmds import add, delete, edit, list_entries, show, tags
from .gate_cmds import lock, set_password, unlock

for _command in (add, list_entries, show, edit, delete, tags, export_cmd, import_cmd, stats, prompt):
    main.add_command(_command)
for _command in (set_password, unlock, lock):
    main.add_command(_command)
