"""Shared fixtures for the CLI tests."""

import json
from pathlib import Path

import pytest

PLUGIN_MAIN = """<?php
/**
 * Plugin Name: Shop
 * Version: 1.0.3-beta
 */
function shop_install() {
    global $wpdb;
    $wpdb->query( "CREATE TABLE {$wpdb->prefix}things ( id bigint(20) NOT NULL )" );
    $wpdb->query( "CREATE TABLE {$wpdb->prefix}thing_meta ( meta_id bigint(20) )" );
}

function shop_link( $thing_id, $post_id ) {
    update_thing_meta( $thing_id, '_linked_post', $post_id );
}
"""


def _column(name: str, type_: str = "bigint(20) unsigned", key: str = "") -> dict[str, str]:
    extra = "auto_increment" if key == "PRI" else ""
    return {"Field": name, "Type": type_, "Key": key, "Extra": extra}


CATALOG = {
    "tables": {
        "posts": [_column("ID", key="PRI")],
        "users": [_column("ID", key="PRI")],
        "things": [_column("id", key="PRI"), _column("title", "varchar(255)")],
        "thing_meta": [
            _column("meta_id", key="PRI"),
            _column("thing_id"),
            _column("meta_key", "varchar(255)"),
            _column("meta_value", "longtext"),
        ],
    },
    "postTypes": ["post", "page"],
}


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's global config out of CLI runs."""
    monkeypatch.setattr(
        "schemagen.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"
    )


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Project directory passed as --root."""
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    root = tmp_path / "shop"
    root.mkdir()
    (root / "shop.php").write_text(PLUGIN_MAIN)
    return root


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG))
    return path


@pytest.fixture
def answers_file(tmp_path: Path) -> Path:
    path = tmp_path / "answers.yaml"
    path.write_text(
        "meta_has_ids:\n"
        "  '*': 'yes'\n"
        "meta_value_kind:\n"
        "  '*': simple\n"
        "meta_target_table:\n"
        "  '*': posts\n"
        "keep_existing:\n"
        "  '*': keep\n"
        "info:\n"
        "  name: Shop\n"
        "  url: https://example.com/shop\n"
    )
    return path
