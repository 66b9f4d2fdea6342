"""Tests for the foreign key heuristics."""

import json
from pathlib import Path

import pytest

from schemagen.config.constants import PLATFORM_TABLES
from schemagen.corpus.catalog import Catalog
from schemagen.corpus.models import Column
from schemagen.inference.foreign_keys import (
    ResolverContext,
    apply_rules,
    entity_from_column,
    is_candidate_column,
    parent_table_entity,
    resolve_column,
    resolve_foreign_keys,
)
from schemagen.inference.primary_keys import infer_primary_keys
from schemagen.memory.store import DecisionMemory
from schemagen.schema.models import PrimaryKey


def _context(catalog: Catalog, table: str, subject: list[str]) -> ResolverContext:
    subject_tables = catalog.tables(subject)
    platform = catalog.tables(list(PLATFORM_TABLES))
    return ResolverContext(
        table=table,
        subject_tables=sorted(subject_tables),
        subject_keys=infer_primary_keys(subject_tables),
        platform_tables=list(platform),
        platform_keys=infer_primary_keys(platform),
        post_types=catalog.post_types,
    )


class TestEntityFromColumn:
    """Column name to entity name."""

    @pytest.mark.parametrize(
        ("column", "entity"),
        [
            ("post_id", "post"),
            ("comment_post_ID", "comment_post"),
            ("id_user", "user"),
            ("ownerId", "owner"),
            ("user_id_2", "user_2"),
            ("parent_ID", "parent"),
        ],
    )
    def test_entity(self, column: str, entity: str) -> None:
        """Id markers in any case are stripped and the result lowercased."""
        assert entity_from_column(column) == entity

    @pytest.mark.parametrize(
        ("table", "entity"),
        [("thing_meta", "thing"), ("thingmeta", "thing"), ("widgets", "widget")],
    )
    def test_parent_table_entity(self, table: str, entity: str) -> None:
        """The meta suffix, separators and one plural s are removed."""
        assert parent_table_entity(table) == entity


class TestCandidateColumns:
    """Which columns are considered at all."""

    def test_candidates(self) -> None:
        """Integer, named like an id, not part of the primary key."""
        pk = PrimaryKey(("id",), True)

        assert is_candidate_column(Column("post_id", "bigint(20)"), pk)
        assert not is_candidate_column(Column("id", "bigint(20)"), pk)
        assert not is_candidate_column(Column("post_id", "varchar(20)"), pk)
        assert not is_candidate_column(Column("count", "int"), pk)
        assert is_candidate_column(Column("post_id", "bigint(20)"), None)


class TestRules:
    """Rule precedence."""

    def test_platform_table_plural(self, catalog: Catalog) -> None:
        """post -> posts."""
        ctx = _context(catalog, "things", ["things", "thing_meta"])

        assert apply_rules("post", ctx) == ("platform_table_plural", "posts:ID")

    def test_platform_table_singular_first(self, catalog: Catalog) -> None:
        """An exact platform table name wins over everything else."""
        ctx = _context(catalog, "things", ["things"])

        assert apply_rules("users", ctx) == ("platform_table", "users:ID")

    def test_post_type_exact(self, catalog: Catalog) -> None:
        """A post type name points at posts."""
        ctx = _context(catalog, "things", ["things"])

        assert apply_rules("attachment", ctx) == ("post_type", "posts:ID")

    def test_subject_table_plural(self, catalog: Catalog) -> None:
        """thing -> things among the subject's tables."""
        ctx = _context(catalog, "thing_meta", ["things", "thing_meta"])

        assert apply_rules("thing", ctx) == ("subject_table_plural", "things:id")

    def test_subject_table_trailing_match(self, catalog: Catalog) -> None:
        """A subject table ending with the entity name matches."""
        ctx = _context(catalog, "shop_order_items", ["shop_orders", "shop_order_items"])

        assert apply_rules("orders", ctx) == ("subject_table", "shop_orders:id")

    def test_post_type_contains_last(self, catalog: Catalog) -> None:
        """order is found inside shop_order when nothing else matched."""
        ctx = _context(catalog, "things", ["things"])

        assert apply_rules("order", ctx) == ("post_type_contains", "posts:ID")

    def test_nothing_matches(self, catalog: Catalog) -> None:
        """Unknown entities resolve to nothing."""
        ctx = _context(catalog, "things", ["things"])

        assert apply_rules("gizmo", ctx) is None
        assert apply_rules("", ctx) is None


class TestResolveColumn:
    """Whole-chain resolution of one column."""

    def test_last_segment_retry(self, catalog: Catalog) -> None:
        """linked_post falls back to its last segment."""
        ctx = _context(catalog, "things", ["things"])

        assert resolve_column("linked_post_id", ctx) == "posts:ID"

    def test_parent_column(self, catalog: Catalog) -> None:
        """parent_id in thing_meta points at things."""
        ctx = _context(catalog, "thing_meta", ["things", "thing_meta"])

        assert resolve_column("parent_id", ctx) == "things:id"

    def test_memory_override_verbatim(self, catalog: Catalog, tmp_path: Path) -> None:
        """A persisted override wins over every rule."""
        (tmp_path / "shop.json").write_text(
            json.dumps({"foreignKeys": {"persist": {"things:owner_id": "users:ID"}}})
        )
        memory = DecisionMemory.load(tmp_path, "shop")
        ctx = _context(catalog, "things", ["things"])

        assert resolve_column("owner_id", ctx) is None
        assert resolve_column("owner_id", ctx, memory) == "users:ID"

    def test_entity_translation(self, catalog: Catalog, tmp_path: Path) -> None:
        """A remembered entity name replaces the one derived from the column."""
        (tmp_path / "shop.json").write_text(
            json.dumps({"foreignKeys": {"entityTranslation": {"customer_id": "user"}}})
        )
        memory = DecisionMemory.load(tmp_path, "shop")
        ctx = _context(catalog, "shop_orders", ["shop_orders"])

        assert resolve_column("customer_id", ctx, memory) == "users:ID"


class TestResolveForeignKeys:
    """resolve_foreign_keys over a set of tables."""

    def test_subject_tables(self, catalog: Catalog) -> None:
        """Every candidate column is resolved; unresolved ones are left out."""
        tables = catalog.tables(["things", "thing_meta", "shop_orders", "shop_order_items"])
        platform = catalog.tables(list(PLATFORM_TABLES))

        foreign_keys = resolve_foreign_keys(
            tables,
            infer_primary_keys(tables),
            platform_tables=list(platform),
            platform_keys=infer_primary_keys(platform),
            post_types=catalog.post_types,
        )

        assert foreign_keys == {
            "thing_meta:thing_id": "things:id",
            "shop_order_items:order_id": "shop_orders:id",
        }

    def test_deterministic(self, catalog: Catalog) -> None:
        """The same input always yields the same output."""
        tables = catalog.tables(["things", "thing_meta"])
        platform = catalog.tables(list(PLATFORM_TABLES))
        kwargs = {
            "platform_tables": list(platform),
            "platform_keys": infer_primary_keys(platform),
            "post_types": catalog.post_types,
        }

        first = resolve_foreign_keys(tables, infer_primary_keys(tables), **kwargs)
        second = resolve_foreign_keys(tables, infer_primary_keys(tables), **kwargs)

        assert first == second
