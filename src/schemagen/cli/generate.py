"""schemagen generate command - build or update subject schemas."""

from pathlib import Path

import click
import structlog

from schemagen.cli.utils import detect_version
from schemagen.config.models import SchemaGenConfig
from schemagen.core.errors import SchemaGenError
from schemagen.core.progress import pluralize, status
from schemagen.corpus.catalog import Catalog
from schemagen.generator import Generator, Subject
from schemagen.oracle.console import QuestionaryOracle
from schemagen.oracle.models import Oracle, OraclePolicy
from schemagen.oracle.scripted import ScriptedOracle
from schemagen.schema.store import PLATFORM_TYPE

log = structlog.get_logger(__name__)


def _subject(
    root: Path,
    *,
    subject_type: str,
    slug: str | None,
    version: str | None,
    basename: str | None,
    config: SchemaGenConfig,
) -> Subject | None:
    if subject_type == PLATFORM_TYPE:
        slug = config.inference.platform_slug
    version = version or detect_version(root, subject_type)
    if not version:
        return None
    return Subject(
        slug=slug or root.name,
        version=version,
        root=root,
        type=subject_type,
        basename=basename,
    )


@click.command()
@click.argument(
    "roots",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--catalog",
    "catalog_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON/YAML description of the live database and platform registry",
)
@click.option("--slug", default=None, help="Subject slug (default: directory name)")
@click.option("--version", "version", default=None, help="Subject version (default: header)")
@click.option("--basename", default=None, help="Installed directory name, when not the slug")
@click.option(
    "--type",
    "subject_type",
    type=click.Choice(["plugin", PLATFORM_TYPE]),
    default="plugin",
    show_default=True,
)
@click.option("--scratch", is_flag=True, help="Ignore the existing schema and start over")
@click.option("--headless", is_flag=True, help="Fail instead of asking any question")
@click.option("--skip-all", is_flag=True, help="Never ask; defer new items, keep existing ones")
@click.option(
    "--answers",
    "answers_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Answer questions from a YAML script instead of prompting",
)
@click.pass_context
def generate_command(
    ctx: click.Context,
    roots: tuple[Path, ...],
    catalog_path: Path,
    slug: str | None,
    version: str | None,
    basename: str | None,
    subject_type: str,
    scratch: bool,
    headless: bool,
    skip_all: bool,
    answers_path: Path | None,
) -> None:
    """Generate schemas for one or more subject source trees.

    A failing subject is reported and the next one is processed; the
    command exits non-zero when any subject failed.
    """
    if len(roots) > 1 and (slug or version or basename):
        raise click.UsageError("--slug, --version and --basename need a single SUBJECT_ROOT")

    config: SchemaGenConfig = ctx.obj["config"]
    try:
        catalog = Catalog.load(catalog_path)
        oracle: Oracle = (
            ScriptedOracle.load(answers_path) if answers_path else QuestionaryOracle()
        )
    except SchemaGenError as e:
        raise click.ClickException(str(e)) from e
    policy = OraclePolicy(headless=headless, skip_all=skip_all)

    failed = 0
    for root in roots:
        subject = _subject(
            root,
            subject_type=subject_type,
            slug=slug,
            version=version,
            basename=basename,
            config=config,
        )
        if subject is None:
            failed += 1
            log.error("version_not_found", root=str(root))
            status(f"No version found for {root}; pass --version", style="error")
            continue
        status(f"Generating {subject.key} {subject.version}...")
        try:
            result = Generator(subject, catalog, oracle, policy=policy, config=config).generate(
                from_scratch=scratch
            )
        except SchemaGenError as e:
            failed += 1
            log.error("generation_failed", key=subject.key, version=subject.version, **e.to_dict())
            status(f"{subject.key} {subject.version}: {e}", style="error")
            continue

        if result.collapsed_into:
            status(
                f"{result.key} {result.version} matches {result.collapsed_into}, "
                f"kept {result.path.name}",
                style="success",
            )
        else:
            status(
                f"{result.key} {result.version} {result.mode}: {result.path} "
                f"({pluralize(result.questions, 'question')} asked)",
                style="success",
            )

    if failed:
        ctx.exit(1)
