"""Meta relationships: meta keys whose values reference other tables.

Discovery finds every ``add_<entity>_meta``/``update_<entity>_meta`` (and
option) write in the corpus and keeps one candidate per (table, key).
Resolution then walks the candidates in order and lets the oracle classify
the ones no earlier run has settled.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from schemagen.config.constants import NON_ID_VALUES, PLACEHOLDER_MARKERS
from schemagen.corpus.models import Column, SourceFile, TableMap, line_of
from schemagen.inference.expressions import (
    ArgumentSplitter,
    extract_call_arguments,
    is_definition,
    is_numeric_literal,
    is_string_literal,
    split_arguments,
    unquote,
)
from schemagen.inference.scan import first_wins, scan_files
from schemagen.memory.store import DecisionMemory
from schemagen.oracle.models import (
    HAS_IDS_CHOICES,
    KEEP_EXISTING_CHOICES,
    VALUE_KIND_CHOICES,
    Answer,
    Question,
    QuestionKind,
)
from schemagen.oracle.session import OracleSession
from schemagen.schema.merge import merge_relationship, relationship_ref
from schemagen.schema.models import MetaRelationship, Schema, SerializedMapping

log = structlog.get_logger(__name__)

IGNORE = "ignore"


@dataclass(frozen=True, slots=True)
class MetaTable:
    """A key/value side table and the columns holding the key and value."""

    table: str
    entity: str
    key_column: str
    value_column: str


@dataclass(frozen=True, slots=True)
class MetaWriter:
    """A function that writes one meta table.

    ``type_arg`` is set for the generic ``add_metadata($type, ...)`` family,
    whose first argument names the entity.
    """

    name: str
    table: str
    key_pos: int
    value_pos: int
    type_arg: str | None = None


@dataclass(frozen=True, slots=True)
class MetaCandidate:
    """First call site writing a given (table, key)."""

    table: str
    key: str
    value: str
    file: str
    line: int
    code: str

    @property
    def ref(self) -> str:
        return relationship_ref(self.table, self.key)

    @property
    def context(self) -> dict[str, object]:
        return {"file": self.file, "line": self.line, "code": self.code}


@dataclass
class MetaResolution:
    """Outcome of one resolution pass.

    ``relationships`` are new findings, merged with the serialized rule.
    ``edited`` replace the recorded relationship outright. ``discovered``
    holds the translated refs of every candidate, for the removed-element
    check.
    """

    relationships: dict[str, dict[str, MetaRelationship]] = field(default_factory=dict)
    edited: dict[str, dict[str, MetaRelationship]] = field(default_factory=dict)
    discovered: set[str] = field(default_factory=set)


# --- meta tables and writers ---------------------------------------------------


def meta_columns(columns: Sequence[Column]) -> tuple[str, str] | None:
    """Key and value columns: the first two non-integer columns."""
    names = [c.name for c in columns if not c.is_integer]
    if len(names) < 2:
        return None
    return names[0], names[1]


def find_meta_tables(
    tables: TableMap, *, meta_suffix: str = "meta", options_table: str = "options"
) -> dict[str, MetaTable]:
    """Meta tables among ``tables``, keyed by table name."""
    found: dict[str, MetaTable] = {}
    for table, columns in tables.items():
        if table != options_table and not table.endswith(meta_suffix):
            continue
        cols = meta_columns(columns)
        if cols is None:
            log.debug("meta_table_without_columns", table=table)
            continue
        entity = table if table == options_table else table.removesuffix(meta_suffix).rstrip("_")
        if not entity:
            continue
        found[table] = MetaTable(
            table=table, entity=entity, key_column=cols[0], value_column=cols[1]
        )
    return found


def meta_writers(meta: MetaTable, *, options_table: str = "options") -> list[MetaWriter]:
    if meta.table == options_table:
        return [
            MetaWriter("add_option", meta.table, 0, 1),
            MetaWriter("update_option", meta.table, 0, 1),
        ]
    return [
        MetaWriter(f"add_{meta.entity}_meta", meta.table, 1, 2),
        MetaWriter(f"update_{meta.entity}_meta", meta.table, 1, 2),
        MetaWriter("add_metadata", meta.table, 2, 3, type_arg=meta.entity),
        MetaWriter("update_metadata", meta.table, 2, 3, type_arg=meta.entity),
    ]


def is_ignored_value(value: str) -> bool:
    """Values that can never hold an identifier."""
    if not value or value.lower() in NON_ID_VALUES:
        return True
    if is_numeric_literal(value):
        return True
    return is_string_literal(value) and "$" not in value


def has_placeholder(key: str) -> bool:
    return any(marker in key for marker in PLACEHOLDER_MARKERS)


# --- discovery -------------------------------------------------------------------


class MetaCallScanner:
    """Finds meta writes in one file. Safe to share between threads."""

    def __init__(
        self, writers: Sequence[MetaWriter], splitter: ArgumentSplitter | None = None
    ) -> None:
        self.splitter = splitter
        self._by_name: dict[str, list[MetaWriter]] = {}
        for writer in writers:
            self._by_name.setdefault(writer.name, []).append(writer)
        names = "|".join(re.escape(n) for n in sorted(self._by_name, key=len, reverse=True))
        self._pattern = re.compile(rf"(?<![\w>:$])({names})\s*\(", re.IGNORECASE)

    def _pick(self, name: str, args: list[str]) -> MetaWriter | None:
        for writer in self._by_name.get(name, []):
            if writer.type_arg is None:
                return writer
            if args and unquote(args[0]) == writer.type_arg:
                return writer
        return None

    def __call__(self, file: SourceFile) -> list[tuple[tuple[str, str], MetaCandidate]]:
        if not self._by_name:
            return []
        content = file.lower()
        if not any(name in content for name in self._by_name):
            return []

        text = file.text()
        found: list[tuple[tuple[str, str], MetaCandidate]] = []
        for match in self._pattern.finditer(text):
            if is_definition(text, match.start()):
                continue
            raw = extract_call_arguments(text, match.end() - 1)
            if raw is None:
                continue
            args = split_arguments(raw, self.splitter)
            writer = self._pick(match.group(1).lower(), args)
            if writer is None or len(args) <= writer.value_pos:
                continue

            key = unquote(args[writer.key_pos])
            value = args[writer.value_pos].strip()
            if not key or is_ignored_value(value):
                continue

            candidate = MetaCandidate(
                table=writer.table,
                key=key,
                value=value,
                file=file.rel_path,
                line=line_of(text, match.start()),
                code=text[match.start() : match.end() + len(raw) + 1],
            )
            found.append(((writer.table, key), candidate))
        return found


def discover_meta_candidates(
    files: Sequence[SourceFile],
    meta_tables: Mapping[str, MetaTable],
    *,
    options_table: str = "options",
    workers: int = 1,
    splitter: ArgumentSplitter | None = None,
) -> dict[tuple[str, str], MetaCandidate]:
    """One candidate per (table, key), from the first call site in file order."""
    writers = [
        w
        for meta in meta_tables.values()
        for w in meta_writers(meta, options_table=options_table)
    ]
    scanner = MetaCallScanner(writers, splitter)
    candidates = first_wins(scan_files(files, scanner, workers))
    log.info("meta_candidates_discovered", tables=len(meta_tables), count=len(candidates))
    return candidates


# --- resolution ------------------------------------------------------------------


class MetaResolver:
    """Classifies meta candidates one at a time.

    Every answer is written to decision memory before the next question, so
    later candidates see translations and ignores recorded earlier in the run.
    After a stop answer, recorded relationships are kept and new candidates
    are ignored without further questions.
    """

    def __init__(
        self,
        prior: Schema,
        meta_tables: Mapping[str, MetaTable],
        memory: DecisionMemory,
        session: OracleSession,
        *,
        from_scratch: bool = False,
    ) -> None:
        self.prior = prior
        self.meta_tables = meta_tables
        self.memory = memory
        self.session = session
        self.from_scratch = from_scratch
        self.stopped = False

    def resolve(self, candidates: Mapping[tuple[str, str], MetaCandidate]) -> MetaResolution:
        result = MetaResolution()
        for table, key in sorted(candidates):
            candidate = candidates[(table, key)]
            meta = self.meta_tables[table]
            if self.memory.is_meta_ignored(table, key):
                continue

            translated = self.memory.translate_meta_key(table, meta.key_column, key)
            existing = None if self.from_scratch else self.prior.relationship(table, translated)
            if existing is not None:
                edited = self._review_existing(candidate, meta, existing)
                if edited is not None:
                    result.edited.setdefault(table, {})[edited.meta_key] = edited
                continue

            rel = self._ask_new(candidate, meta)
            if rel is not None:
                recorded = result.relationships.setdefault(table, {})
                recorded[rel.meta_key] = merge_relationship(recorded.get(rel.meta_key), rel)

        # Translations answered during this pass apply too
        result.discovered = {self._translated_ref(table, key) for table, key in candidates}
        log.info(
            "meta_candidates_resolved",
            new=sum(len(r) for r in result.relationships.values()),
            edited=sum(len(r) for r in result.edited.values()),
        )
        return result

    def _translated_ref(self, table: str, key: str) -> str:
        key_column = self.meta_tables[table].key_column
        return relationship_ref(table, self.memory.translate_meta_key(table, key_column, key))

    def _review_existing(
        self, candidate: MetaCandidate, meta: MetaTable, existing: MetaRelationship
    ) -> MetaRelationship | None:
        """Keep (None) or re-classify a relationship recorded by a prior version."""
        if self.stopped or not self.session.policy.interactive:
            return None
        answer = self.session.ask(
            Question(
                kind=QuestionKind.KEEP_EXISTING,
                text=(
                    f"{candidate.table} key '{existing.meta_key}' is recorded as "
                    f"referencing '{existing.target}'. Keep it or edit it?"
                ),
                ref=candidate.ref,
                choices=KEEP_EXISTING_CHOICES,
                default=Answer.KEEP,
                context=candidate.context,
            )
        )
        if answer == Answer.STOP:
            self.stopped = True
            return None
        if answer == Answer.KEEP:
            return None
        return self._classify(candidate, meta, existing.meta_key)

    def _ask_new(self, candidate: MetaCandidate, meta: MetaTable) -> MetaRelationship | None:
        if self.stopped:
            self.memory.ignore_meta(candidate.table, candidate.key)
            return None

        answer = self.session.ask(
            Question(
                kind=QuestionKind.META_HAS_IDS,
                text=(
                    f"Does {candidate.table} key '{candidate.key}' with value "
                    f"{candidate.value} hold IDs?"
                ),
                ref=candidate.ref,
                choices=HAS_IDS_CHOICES,
                default=Answer.DEFER,
                context=candidate.context,
            )
        )
        if answer == Answer.DEFER:
            return None
        if answer in (Answer.NO, Answer.STOP):
            self.stopped = answer == Answer.STOP
            self.memory.ignore_meta(candidate.table, candidate.key)
            return None

        key = self.memory.translate_meta_key(candidate.table, meta.key_column, candidate.key)
        if has_placeholder(candidate.key) and key == candidate.key:
            key = self._ask_translation(candidate, meta)
        return self._classify(candidate, meta, key)

    def _ask_translation(self, candidate: MetaCandidate, meta: MetaTable) -> str:
        answer = self.session.ask(
            Question(
                kind=QuestionKind.META_KEY_TRANSLATION,
                text=(
                    f"Key '{candidate.key}' is built at run time. Enter the key as it "
                    "should be matched (use % as a wildcard)"
                ),
                ref=candidate.ref,
                context=candidate.context,
            )
        )
        if not answer:
            return candidate.key
        self.memory.remember_key_translation(
            candidate.table, meta.key_column, candidate.key, answer
        )
        return answer

    def _classify(self, candidate: MetaCandidate, meta: MetaTable, key: str) -> MetaRelationship:
        kind = self.session.ask(
            Question(
                kind=QuestionKind.META_VALUE_KIND,
                text=f"Is the value of '{key}' a simple ID or serialized data?",
                ref=candidate.ref,
                choices=VALUE_KIND_CHOICES,
                context=candidate.context,
            )
        )
        if kind == Answer.SIMPLE:
            target = self._ask_text(
                QuestionKind.META_TARGET_TABLE,
                f"Which table do the IDs in '{key}' reference?",
                candidate,
            )
            return MetaRelationship(meta.key_column, meta.value_column, key, target or IGNORE)

        inner_key = self._ask_text(
            QuestionKind.SERIALIZED_KEY,
            f"Array key of '{key}' holding IDs ('ignore' if none)",
            candidate,
        )
        inner_val = self._ask_text(
            QuestionKind.SERIALIZED_VALUE,
            f"Table referenced by the array values of '{key}' (table, or keyTable|valueTable)",
            candidate,
        )
        mapping = SerializedMapping(key=inner_key or IGNORE, val=inner_val or IGNORE)
        # keyTable|valueTable pairs stay in the mapping; the value column targets valueTable
        target = mapping.val.rsplit("|", 1)[-1].strip() or IGNORE
        return MetaRelationship(meta.key_column, meta.value_column, key, target, serialized=mapping)

    def _ask_text(self, kind: QuestionKind, text: str, candidate: MetaCandidate) -> str:
        return self.session.ask(
            Question(kind=kind, text=text, ref=candidate.ref, context=candidate.context)
        )
