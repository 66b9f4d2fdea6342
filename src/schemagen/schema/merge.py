"""Merging fresh findings into a prior schema, and collapsing unchanged versions."""

from __future__ import annotations

from collections.abc import Callable, Container, Iterable, Mapping
from typing import Any

import structlog

from schemagen.config.constants import VERSION_FIELDS
from schemagen.oracle.models import KEEP_REMOVED_CHOICES, Answer, Question, QuestionKind
from schemagen.oracle.session import OracleSession
from schemagen.schema.models import MetaRelationship, Schema, Serialized, SerializedMapping
from schemagen.schema.store import PLATFORM_TYPE, SchemaStore

log = structlog.get_logger(__name__)


def merge_relationship(
    existing: MetaRelationship | None, new: MetaRelationship
) -> MetaRelationship:
    """Fold a newly resolved relationship into the recorded one for the same key.

    Two simple relationships: the new one replaces the old. When either side
    is serialized and they differ, the serialized interpretations are kept
    side by side as a list.
    """
    if existing is None:
        return new
    if existing == new:
        return existing
    if not existing.is_serialized and not new.is_serialized:
        return new

    mappings: list[SerializedMapping] = existing.serialized_list()
    for mapping in new.serialized_list():
        if mapping not in mappings:
            mappings.append(mapping)
    serialized: Serialized = mappings[0] if len(mappings) == 1 else tuple(mappings)
    return MetaRelationship(
        key_column=existing.key_column,
        value_column=existing.value_column,
        meta_key=existing.meta_key,
        target=new.target,
        serialized=serialized,
    )


def merge_relationships(
    target: dict[str, dict[str, MetaRelationship]],
    fresh: Mapping[str, Mapping[str, MetaRelationship]],
) -> None:
    """Merge ``fresh`` relationships into ``target`` in place."""
    for entity, rels in fresh.items():
        recorded = target.setdefault(entity, {})
        for key, rel in rels.items():
            recorded[key] = merge_relationship(recorded.get(key), rel)


def review_removed(
    session: OracleSession,
    elements: Iterable[str],
    discovered: Container[str],
    *,
    label: str,
    context: Callable[[str], dict[str, Any]] | None = None,
) -> set[str]:
    """Ask keep/drop for every prior element missing from ``discovered``.

    A stop answer keeps the element it was given for and every one after it.
    Without a person to ask, every recorded element is kept.

    Returns:
        The elements to drop.
    """
    dropped: set[str] = set()
    stopped = False
    for ref in elements:
        if ref in discovered or stopped or not session.policy.interactive:
            continue
        answer = session.ask(
            Question(
                kind=QuestionKind.KEEP_REMOVED,
                text=f"The {label} '{ref}' was not found in this version. Keep it?",
                ref=ref,
                choices=KEEP_REMOVED_CHOICES,
                default=Answer.KEEP,
                context=context(ref) if context else {},
            )
        )
        if answer == Answer.STOP:
            stopped = True
        elif answer == Answer.DROP:
            dropped.add(ref)
            log.info("removed_element_dropped", label=label, ref=ref)
    return dropped


def relationship_ref(entity: str, key: str) -> str:
    return f"{entity}:{key}"


def drop_relationships(schema: Schema, refs: Iterable[str]) -> None:
    for ref in refs:
        entity, _, key = ref.partition(":")
        schema.relationships.get(entity, {}).pop(key, None)


def strip_version_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in VERSION_FIELDS}


def schemas_identical(a: Mapping[str, Any], b: Mapping[str, Any]) -> bool:
    """Compare two schema documents, ignoring fields that only name a version."""
    return strip_version_fields(a) == strip_version_fields(b)


def collapse_versions(store: SchemaStore, schema: Schema, prior_version: str | None) -> bool:
    """Collapse ``schema`` into ``prior_version`` when nothing changed.

    Identical content deletes the new file and records the new version as the
    prior file's ``lastVerifiedVersion``. Otherwise the new file is marked as
    verified against its own version.

    Returns:
        True when the new version was collapsed.
    """
    if schema.type == PLATFORM_TYPE or not prior_version or prior_version == schema.version:
        return False

    current = store.read_raw(schema.slug, schema.version, schema.type)
    previous = store.read_raw(schema.slug, prior_version, schema.type)

    if schemas_identical(current, previous):
        store.delete(schema.slug, schema.version, schema.type)
        store.set_last_verified(schema.slug, prior_version, schema.type, schema.version)
        log.info(
            "schema_version_collapsed",
            slug=schema.slug,
            version=schema.version,
            into=prior_version,
        )
        return True

    store.set_last_verified(schema.slug, schema.version, schema.type, schema.version)
    return False
