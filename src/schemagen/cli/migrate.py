"""schemagen migrate-legacy command - fold flat legacy files into decision memory."""

from pathlib import Path

import click

from schemagen.config.models import SchemaGenConfig
from schemagen.core.errors import StoreError
from schemagen.core.progress import status
from schemagen.memory.legacy import migrate_legacy_data


@click.command()
@click.pass_context
def migrate_legacy_command(ctx: click.Context) -> None:
    """Migrate legacy decision files in the data directory."""
    config: SchemaGenConfig = ctx.obj["config"]
    data_dir = Path(config.paths.data_dir)
    try:
        migrated = migrate_legacy_data(data_dir)
    except StoreError as e:
        raise click.ClickException(str(e)) from e

    if migrated:
        status(f"Migrated {migrated} legacy entries in {data_dir}", style="success")
    else:
        status(f"No legacy files in {data_dir}", style="info")
