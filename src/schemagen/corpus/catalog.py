"""Catalog: the live database and platform registry, captured as input data.

A catalog file (JSON or YAML) looks like::

    tables:
      posts:
        - {Field: ID, Type: bigint(20) unsigned, Key: PRI, Extra: auto_increment}
        - {Field: post_author, Type: bigint(20) unsigned, Key: MUL, Extra: ""}
    postTypes: [post, page, attachment]
    shortcodes:
      gallery: gallery_shortcode
      embed: [WP_Embed, shortcode]

``tables`` uses the shape of MySQL ``DESCRIBE`` rows with the database prefix
already removed from table names.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from schemagen.config.constants import EXCLUDED_TABLES
from schemagen.core.errors import CorpusError
from schemagen.corpus.models import Column, TableMap

RegistryCallback = str | tuple[str, str]


@dataclass
class Catalog:
    """In-memory table introspector plus the platform's registered shortcodes."""

    columns: TableMap = field(default_factory=dict)
    post_types: list[str] = field(default_factory=list)
    shortcodes: dict[str, RegistryCallback] = field(default_factory=dict)

    def tables(self, names: list[str]) -> TableMap:
        result: TableMap = {}
        for name in names:
            if name in EXCLUDED_TABLES or name in result:
                continue
            if name in self.columns:
                result[name] = list(self.columns[name])
        return result

    def tables_by_prefix(self, prefix: str) -> list[str]:
        if not prefix:
            return []
        return sorted(
            name
            for name in self.columns
            if name.startswith(prefix) and name not in EXCLUDED_TABLES
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str = "<memory>") -> Catalog:
        tables = data.get("tables") or {}
        if not isinstance(tables, dict):
            raise CorpusError.catalog_invalid(source, "'tables' must be a mapping")

        columns: TableMap = {}
        for name, rows in tables.items():
            try:
                columns[str(name)] = [Column.from_describe(row) for row in rows]
            except (KeyError, TypeError) as e:
                raise CorpusError.catalog_invalid(source, f"table {name}: {e}") from e

        shortcodes: dict[str, RegistryCallback] = {}
        for tag, callback in (data.get("shortcodes") or {}).items():
            if isinstance(callback, list | tuple):
                if len(callback) != 2:
                    raise CorpusError.catalog_invalid(source, f"shortcode {tag}: bad callback")
                shortcodes[str(tag)] = (str(callback[0]), str(callback[1]))
            else:
                shortcodes[str(tag)] = str(callback)

        return cls(
            columns=columns,
            post_types=[str(t) for t in data.get("postTypes") or []],
            shortcodes=shortcodes,
        )

    @classmethod
    def load(cls, path: Path) -> Catalog:
        """Load a catalog from a .json, .yaml or .yml file."""
        if not path.exists():
            raise CorpusError.catalog_invalid(str(path), "file not found")
        try:
            text = path.read_text()
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(text) or {}
            else:
                data = json.loads(text)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise CorpusError.catalog_invalid(str(path), str(e)) from e
        if not isinstance(data, dict):
            raise CorpusError.catalog_invalid(str(path), "top level must be a mapping")
        return cls.from_dict(data, source=str(path))
