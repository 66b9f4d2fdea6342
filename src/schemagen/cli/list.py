"""schemagen list command - show stored schema versions."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from schemagen.config.models import SchemaGenConfig
from schemagen.core.errors import StoreError
from schemagen.generator import slug_from_filename
from schemagen.schema.store import PLATFORM_TYPE, SchemaStore


@click.command()
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List stored schemas with their versions."""
    config: SchemaGenConfig = ctx.obj["config"]
    store = SchemaStore(Path(config.paths.schema_dir))
    data_dir = Path(config.paths.data_dir)
    platform_slug = config.inference.platform_slug

    table = Table(title="Schemas", show_lines=False)
    table.add_column("Type", style="dim")
    table.add_column("Slug", style="cyan")
    table.add_column("Basename")
    table.add_column("Versions")

    rows = 0
    for subject_type in (PLATFORM_TYPE, "plugin"):
        for basename, versions in sorted(store.all_schemas(subject_type).items()):
            try:
                slug = slug_from_filename(f"{basename}-{versions[0]}.json", data_dir, platform_slug)
            except StoreError as e:
                raise click.ClickException(str(e)) from e
            ordered = store.versions(basename, subject_type)
            table.add_row(subject_type, slug, basename, ", ".join(ordered))
            rows += 1

    console = Console()
    if not rows:
        console.print("[yellow]No schemas found[/yellow] in " + config.paths.schema_dir)
        return
    console.print(table)
