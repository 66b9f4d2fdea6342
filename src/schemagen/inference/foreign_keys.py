"""Foreign key heuristics for integer identifier columns.

Purely deterministic: the same tables, keys and post types always yield the
same foreign keys. Nothing here asks the oracle; a column no rule resolves is
simply not a foreign key.

Precedence, first match wins:

1. ``foreignKeys.persist`` override from decision memory, verbatim
2. ``parent`` columns: the sibling table named after the current table
3. the ordered ``RULES`` below, on the column's entity name
4. ``RULES`` again on the entity's last ``_`` segment
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass

import structlog

from schemagen.corpus.models import Column, TableMap
from schemagen.memory.store import DecisionMemory
from schemagen.schema.models import PrimaryKey

log = structlog.get_logger(__name__)

_ID_SUFFIX = re.compile(r"_id(?=_|$)", re.IGNORECASE)
_ID_PREFIX = re.compile(r"^id_", re.IGNORECASE)
_CAMEL_ID = re.compile(r"(?<=[a-z])I[dD]$")

POSTS_TABLE = "posts"


@dataclass(frozen=True)
class ResolverContext:
    """Everything a rule can look at for one table."""

    table: str
    subject_tables: Sequence[str]
    subject_keys: Mapping[str, PrimaryKey]
    platform_tables: Collection[str]
    platform_keys: Mapping[str, PrimaryKey]
    post_types: Sequence[str]


Rule = Callable[[str, ResolverContext], str | None]


def entity_from_column(column: str) -> str:
    """``comment_post_ID`` -> ``comment_post``, ``id_user`` -> ``user``."""
    entity = _ID_SUFFIX.sub("", column)
    entity = _ID_PREFIX.sub("", entity)
    entity = _CAMEL_ID.sub("", entity)
    return entity.rstrip("_").lower()


def _target(table: str, keys: Mapping[str, PrimaryKey]) -> str | None:
    pk = keys.get(table)
    return f"{table}:{pk.column}" if pk else None


def _platform_table(entity: str, ctx: ResolverContext) -> str | None:
    if entity not in ctx.platform_tables:
        return None
    return _target(entity, ctx.platform_keys)


def _platform_table_plural(entity: str, ctx: ResolverContext) -> str | None:
    return _platform_table(entity + "s", ctx)


def _post_type(entity: str, ctx: ResolverContext) -> str | None:
    if entity not in ctx.post_types:
        return None
    return _target(POSTS_TABLE, ctx.platform_keys)


def _subject_table(entity: str, ctx: ResolverContext) -> str | None:
    # Only the first table ending with the entity is considered
    for table in ctx.subject_tables:
        if table != ctx.table and table.endswith(entity):
            return _target(table, ctx.subject_keys)
    return None


def _subject_table_plural(entity: str, ctx: ResolverContext) -> str | None:
    return _subject_table(entity + "s", ctx)


def _post_type_contains(entity: str, ctx: ResolverContext) -> str | None:
    # order_id -> shop_order
    needle = entity.lower()
    if not any(needle in post_type.lower() for post_type in ctx.post_types):
        return None
    return _target(POSTS_TABLE, ctx.platform_keys)


RULES: tuple[tuple[str, Rule], ...] = (
    ("platform_table", _platform_table),
    ("platform_table_plural", _platform_table_plural),
    ("post_type", _post_type),
    ("subject_table", _subject_table),
    ("subject_table_plural", _subject_table_plural),
    ("post_type_contains", _post_type_contains),
)


def apply_rules(entity: str, ctx: ResolverContext) -> tuple[str, str] | None:
    """First matching rule as ``(rule_name, "table:column")``."""
    if not entity:
        return None
    for name, rule in RULES:
        target = rule(entity, ctx)
        if target:
            return name, target
    return None


def parent_table_entity(table: str) -> str:
    """``thing_meta`` -> ``thing``, ``widgets`` -> ``widget``."""
    entity = table.removesuffix("meta").rstrip("_")
    return entity.removesuffix("s")


def _resolve_parent(ctx: ResolverContext) -> str | None:
    entity = parent_table_entity(ctx.table)
    if not entity:
        return None
    return _subject_table(entity, ctx) or _subject_table_plural(entity, ctx)


def is_candidate_column(column: Column, pk: PrimaryKey | None) -> bool:
    if not column.is_integer or "id" not in column.name.lower():
        return False
    return pk is None or column.name not in pk.key


def resolve_column(
    column: str, ctx: ResolverContext, memory: DecisionMemory | None = None
) -> str | None:
    """Target ``table:column`` for one identifier column, or None."""
    if memory is not None:
        override = memory.fk_override(ctx.table, column)
        if override:
            return override
        entity = memory.fk_entity_translation(column) or entity_from_column(column)
    else:
        entity = entity_from_column(column)

    if entity == "parent":
        target = _resolve_parent(ctx)
        if target:
            return target

    match = apply_rules(entity, ctx)
    if match is None and "_" in entity:
        match = apply_rules(entity.rsplit("_", 1)[-1], ctx)
    if match is None:
        return None

    rule, target = match
    log.debug("foreign_key_matched", table=ctx.table, column=column, rule=rule, target=target)
    return target


def resolve_foreign_keys(
    tables: TableMap,
    primary_keys: Mapping[str, PrimaryKey],
    *,
    platform_tables: Collection[str],
    platform_keys: Mapping[str, PrimaryKey],
    post_types: Sequence[str] = (),
    memory: DecisionMemory | None = None,
) -> dict[str, str]:
    """Foreign keys of every table, keyed ``"table:column"``."""
    subject_tables = sorted(tables)
    foreign_keys: dict[str, str] = {}
    for table in subject_tables:
        ctx = ResolverContext(
            table=table,
            subject_tables=subject_tables,
            subject_keys=primary_keys,
            platform_tables=platform_tables,
            platform_keys=platform_keys,
            post_types=post_types,
        )
        pk = primary_keys.get(table)
        for column in tables[table]:
            if not is_candidate_column(column, pk):
                continue
            target = resolve_column(column.name, ctx, memory)
            if target:
                foreign_keys[f"{table}:{column.name}"] = target

    log.info("foreign_keys_resolved", tables=len(tables), count=len(foreign_keys))
    return foreign_keys
