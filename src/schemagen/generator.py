"""Schema generation for one subject version.

Picks the starting point (new, existing, or copied forward from the nearest
older version), runs discovery and resolution, saves the result and collapses
it into the previous version when nothing changed.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from schemagen.config.constants import PLATFORM_TABLES
from schemagen.config.models import SchemaGenConfig
from schemagen.core.logging import clear_run_id, set_run_id
from schemagen.corpus.catalog import Catalog
from schemagen.corpus.files import list_source_files
from schemagen.corpus.models import SourceFile, TableMap
from schemagen.inference.expressions import ArgumentSplitter
from schemagen.inference.foreign_keys import resolve_foreign_keys
from schemagen.inference.primary_keys import infer_primary_keys
from schemagen.inference.relationships import (
    MetaResolution,
    MetaResolver,
    MetaTable,
    discover_meta_candidates,
    find_meta_tables,
)
from schemagen.inference.shortcodes import (
    ShortcodeResolution,
    ShortcodeResolver,
    discover_shortcode_candidates,
)
from schemagen.inference.tables import discover_tables
from schemagen.memory.store import DecisionMemory
from schemagen.oracle.models import Oracle, OraclePolicy, Question, QuestionKind
from schemagen.oracle.session import OracleSession
from schemagen.schema.merge import (
    collapse_versions,
    drop_relationships,
    merge_relationships,
    relationship_ref,
    review_removed,
)
from schemagen.schema.models import Schema
from schemagen.schema.store import PLATFORM_TYPE, SchemaStore
from schemagen.schema.versions import split_schema_filename

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Subject:
    """The application being analyzed, at one version.

    ``basename`` names the schema and decision memory files when it differs
    from the slug (a plugin installed under another directory name).
    """

    slug: str
    version: str
    root: Path
    type: str = "plugin"
    basename: str | None = None

    @property
    def is_platform(self) -> bool:
        return self.type == PLATFORM_TYPE

    @property
    def key(self) -> str:
        if self.is_platform:
            return self.slug
        return self.basename or self.slug


@dataclass
class GenerateResult:
    key: str
    version: str
    mode: str
    path: Path
    collapsed_into: str | None = None
    questions: int = 0


def slug_from_filename(filename: str, data_dir: Path, platform_slug: str = "wordpress") -> str:
    """Recover a subject's slug from a schema filename.

    Decision memory maps basenames to slugs; without an entry the basename is
    the slug.
    """
    basename, _ = split_schema_filename(filename)
    if basename == platform_slug:
        return platform_slug
    return DecisionMemory.load(data_dir, basename).slug or basename


class Generator:
    """Builds and saves the schema of one subject version."""

    def __init__(
        self,
        subject: Subject,
        catalog: Catalog,
        oracle: Oracle,
        *,
        policy: OraclePolicy | None = None,
        config: SchemaGenConfig | None = None,
        splitter: ArgumentSplitter | None = None,
    ) -> None:
        self.subject = subject
        self.catalog = catalog
        self.config = config or SchemaGenConfig()
        self.splitter = splitter
        self.session = OracleSession(oracle, policy)
        self.store = SchemaStore(Path(self.config.paths.schema_dir))
        self.memory = DecisionMemory.load(Path(self.config.paths.data_dir), subject.key)

    # --- entry point ------------------------------------------------------------

    def generate(self, from_scratch: bool = False) -> GenerateResult:
        """Create or update the schema, save it, and collapse unchanged versions.

        Raises:
            OracleError: A question came up under a headless policy.
            StoreError: A schema or decision memory file could not be read or written.
            CorpusError: The subject root does not exist.
        """
        subject = self.subject
        set_run_id()
        log.info(
            "generation_started",
            key=subject.key,
            version=subject.version,
            type=subject.type,
            from_scratch=from_scratch,
        )
        try:
            prior_version = self.store.nearest_prior(subject.key, subject.version, subject.type)
            schema, mode = self._starting_schema(from_scratch, prior_version)

            self._build(schema, from_scratch)
            path = self.store.save(schema)
            if not subject.is_platform:
                self.memory.remember_slug(subject.slug)

            collapsed_into = None
            if prior_version and collapse_versions(self.store, schema, prior_version):
                collapsed_into = prior_version
                path = self.store.path(subject.key, collapsed_into, subject.type)
            log.info(
                "generation_finished",
                key=subject.key,
                version=subject.version,
                mode=mode,
                collapsed_into=collapsed_into,
                questions=self.session.asked,
            )
            return GenerateResult(
                key=subject.key,
                version=subject.version,
                mode=mode,
                path=path,
                collapsed_into=collapsed_into,
                questions=self.session.asked,
            )
        finally:
            clear_run_id()

    def _starting_schema(self, from_scratch: bool, prior_version: str | None) -> tuple[Schema, str]:
        subject = self.subject
        if from_scratch:
            return self._new_schema(), "created"
        if self.store.exists(subject.key, subject.version, subject.type):
            return self.store.load(subject.key, subject.version, subject.type), "updated"
        if prior_version is None:
            return self._new_schema(), "created"

        self.store.duplicate(subject.key, prior_version, subject.version, subject.type)
        return self.store.load(subject.key, subject.version, subject.type), "duplicated"

    def _new_schema(self) -> Schema:
        subject = self.subject
        basename = subject.basename if subject.basename not in (None, subject.slug) else None
        return Schema(
            slug=subject.key, version=subject.version, type=subject.type, basename=basename
        )

    # --- pipeline ----------------------------------------------------------------

    def _source_files(self) -> list[SourceFile]:
        corpus = self.config.corpus
        excluded = list(corpus.excluded_dirs)
        if self.subject.is_platform:
            excluded += corpus.platform_excluded_dirs
        return list_source_files(
            self.subject.root,
            extensions=corpus.extensions,
            excluded_dirs=excluded,
            max_file_size_mb=corpus.max_file_size_mb,
        )

    def _build(self, schema: Schema, from_scratch: bool) -> None:
        inference = self.config.inference
        workers = inference.max_workers
        files = self._source_files()
        platform_tables = self.catalog.tables(list(PLATFORM_TABLES))
        platform_keys = infer_primary_keys(platform_tables)

        discovery = discover_tables(
            files,
            self.catalog,
            self.memory,
            self.session,
            subject=self.subject.key,
            ignored=schema.ignore.get("tables", []),
            workers=workers,
        )
        schema.table_prefixes = sorted(set(schema.table_prefixes) | set(discovery.prefixes))

        primary_keys = infer_primary_keys(discovery.tables)
        schema.primary_keys.update(primary_keys)
        schema.foreign_keys.update(
            resolve_foreign_keys(
                discovery.tables,
                primary_keys,
                platform_tables=list(platform_tables),
                platform_keys=platform_keys,
                post_types=self.catalog.post_types,
                memory=self.memory,
            )
        )

        meta_tables = find_meta_tables(
            {**platform_tables, **discovery.tables},
            meta_suffix=inference.meta_suffix,
            options_table=inference.options_table,
        )
        schema.meta_tables.update(self._own_meta_tables(meta_tables, discovery.tables))
        candidates = discover_meta_candidates(
            files,
            meta_tables,
            options_table=inference.options_table,
            workers=workers,
            splitter=self.splitter,
        )
        resolver = MetaResolver(
            schema, meta_tables, self.memory, self.session, from_scratch=from_scratch
        )
        self._merge_meta(schema, resolver.resolve(candidates))

        shortcodes = discover_shortcode_candidates(files, self.catalog.shortcodes, workers=workers)
        shortcode_resolver = ShortcodeResolver(
            schema, self.memory, self.session, from_scratch=from_scratch
        )
        self._merge_shortcodes(schema, shortcode_resolver.resolve(shortcodes))

        self._ask_info(schema)

    @staticmethod
    def _own_meta_tables(
        meta_tables: dict[str, MetaTable], tables: TableMap
    ) -> dict[str, dict[str, str]]:
        return {
            name: {"entity": meta.entity, "key": meta.key_column, "value": meta.value_column}
            for name, meta in meta_tables.items()
            if name in tables
        }

    def _merge_meta(self, schema: Schema, resolution: MetaResolution) -> None:
        recorded = [
            relationship_ref(entity, key)
            for entity in sorted(schema.relationships)
            for key in sorted(schema.relationships[entity])
        ]
        dropped = review_removed(
            self.session, recorded, resolution.discovered, label="meta relationship"
        )
        drop_relationships(schema, dropped)
        merge_relationships(schema.relationships, resolution.relationships)
        merge_relationships(schema.relationships, resolution.edited)

    def _merge_shortcodes(self, schema: Schema, resolution: ShortcodeResolution) -> None:
        dropped = review_removed(
            self.session, sorted(schema.shortcodes), resolution.discovered, label="shortcode"
        )
        for tag in dropped | resolution.dropped:
            schema.shortcodes.pop(tag, None)
        schema.shortcodes.update(resolution.shortcodes)

    def _ask_info(self, schema: Schema) -> None:
        """Name and URL of a plugin, asked once when missing."""
        if self.subject.is_platform or not self.session.policy.interactive:
            return
        if not schema.name:
            schema.name = self._ask_text(QuestionKind.INFO, "Plugin name", "name") or None
        if not schema.url:
            schema.url = self._ask_text(QuestionKind.INFO, "Plugin URL", "url") or None

    def _ask_text(self, kind: QuestionKind, text: str, ref: str) -> str:
        return self.session.ask(Question(kind=kind, text=text, ref=ref))
