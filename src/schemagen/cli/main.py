"""schemagen CLI - schema inference for platform plugins."""

from pathlib import Path

import click

from schemagen.cli.generate import generate_command
from schemagen.cli.list import list_command
from schemagen.cli.migrate import migrate_legacy_command
from schemagen.config.loader import load_config
from schemagen.core.errors import ConfigError
from schemagen.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="schemagen")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project directory holding schemagen.yaml (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path | None) -> None:
    """schemagen - infer relational schemas from plugin source code."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    ctx.obj["config"] = config


cli.add_command(generate_command, name="generate")
cli.add_command(list_command, name="list")
cli.add_command(migrate_legacy_command, name="migrate-legacy")


if __name__ == "__main__":
    cli()
