"""Shared fixtures for the inference tests."""

from pathlib import Path

import pytest

from schemagen.corpus.catalog import Catalog
from schemagen.memory.store import DecisionMemory


def _pk(name: str, type_: str = "bigint(20) unsigned") -> dict[str, str]:
    return {"Field": name, "Type": type_, "Key": "PRI", "Extra": "auto_increment"}


def _col(name: str, type_: str = "bigint(20) unsigned", key: str = "") -> dict[str, str]:
    return {"Field": name, "Type": type_, "Key": key, "Extra": ""}


CATALOG = {
    "tables": {
        "posts": [_pk("ID"), _col("post_author"), _col("post_title", "text")],
        "users": [_pk("ID"), _col("user_login", "varchar(60)")],
        "comments": [_pk("comment_ID"), _col("comment_post_ID")],
        "terms": [_pk("term_id"), _col("name", "varchar(200)")],
        "term_relationships": [
            _col("object_id", key="PRI"),
            _col("term_taxonomy_id", key="PRI"),
            _col("term_order", "int(11)"),
        ],
        "options": [
            _pk("option_id"),
            _col("option_name", "varchar(191)"),
            _col("option_value", "longtext"),
            _col("autoload", "varchar(20)"),
        ],
        "postmeta": [
            _pk("meta_id"),
            _col("post_id"),
            _col("meta_key", "varchar(255)"),
            _col("meta_value", "longtext"),
        ],
        "usermeta": [
            _pk("umeta_id"),
            _col("user_id"),
            _col("meta_key", "varchar(255)"),
            _col("meta_value", "longtext"),
        ],
        "things": [_pk("id"), _col("owner_id"), _col("title", "varchar(255)")],
        "thing_meta": [
            _pk("meta_id"),
            _col("thing_id"),
            _col("meta_key", "varchar(255)"),
            _col("meta_value", "longtext"),
        ],
        "shop_orders": [_pk("id", "int(11)"), _col("customer_id", "int(11)")],
        "shop_order_items": [_pk("item_id", "int(11)"), _col("order_id", "int(11)")],
    },
    "postTypes": ["post", "page", "attachment", "shop_order"],
    "shortcodes": {"gallery": "gallery_shortcode"},
}


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.from_dict(CATALOG)


@pytest.fixture
def memory(tmp_path: Path) -> DecisionMemory:
    return DecisionMemory.load(tmp_path / "data", "shop")
