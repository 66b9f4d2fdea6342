"""Decision Memory: durable, version-independent answers for one subject.

Stored as ``<data_dir>/<basename>.json``::

    {
        "slug": "woocommerce",
        "table_prefix": "wc_,woocommerce_",
        "relationships": {
            "ignore": {"postmeta": ["_edit_lock"]},
            "key_translation": {"postmeta": {"meta_key": {"_price_{$i}": "_price_%"}}}
        },
        "shortcodes": {"ignore": ["gallery"]},
        "foreignKeys": {
            "persist": {"wc_orders:customer_ref": "users:ID"},
            "entityTranslation": {"customer_ref": "user"}
        }
    }

Every mutation is written straight away so that an answer is durable before
the next question is asked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from schemagen.core.jsonfile import read_json_file, write_json_file

log = structlog.get_logger(__name__)


class DecisionMemory:
    """Read-modify-write view over one subject's decision file."""

    def __init__(self, path: Path, data: dict[str, Any] | None = None) -> None:
        self.path = path
        self.data: dict[str, Any] = data if data is not None else {}

    @classmethod
    def load(cls, data_dir: Path, basename: str) -> DecisionMemory:
        path = data_dir / f"{basename}.json"
        return cls(path, read_json_file(path))

    def save(self) -> None:
        write_json_file(self.path, self.data)

    def _section(self, *keys: str) -> dict[str, Any]:
        node = self.data
        for key in keys:
            node = node.setdefault(key, {})
        return node

    def _get(self, *keys: str) -> Any:
        node: Any = self.data
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    # --- identity -----------------------------------------------------------

    @property
    def slug(self) -> str | None:
        return self.data.get("slug")

    def remember_slug(self, slug: str) -> None:
        if self.data.get("slug") == slug:
            return
        self.data["slug"] = slug
        self.save()

    # --- table prefixes -----------------------------------------------------

    @property
    def table_prefixes(self) -> list[str] | None:
        """Custom table prefixes, or None when never asked."""
        raw = self.data.get("table_prefix")
        if raw is None:
            return None
        return [p.strip() for p in str(raw).split(",") if p.strip()]

    def remember_table_prefixes(self, answer: str) -> None:
        self.data["table_prefix"] = answer
        self.save()

    # --- meta relationships -------------------------------------------------

    def is_meta_ignored(self, entity: str, key: str) -> bool:
        return key in (self._get("relationships", "ignore", entity) or [])

    def ignore_meta(self, entity: str, key: str) -> None:
        ignored = self._section("relationships", "ignore").setdefault(entity, [])
        if key in ignored:
            return
        ignored.append(key)
        ignored.sort()
        self.save()
        log.debug("meta_ignored", entity=entity, key=key)

    def key_translation(self, entity: str, key_column: str, key: str) -> str | None:
        return self._get("relationships", "key_translation", entity, key_column, key)

    def translate_meta_key(self, entity: str, key_column: str, key: str) -> str:
        return self.key_translation(entity, key_column, key) or key

    def remember_key_translation(
        self, entity: str, key_column: str, key: str, translated: str
    ) -> None:
        self._section("relationships", "key_translation", entity, key_column)[key] = translated
        self.save()

    # --- shortcodes ---------------------------------------------------------

    def is_shortcode_ignored(self, tag: str) -> bool:
        return tag in (self._get("shortcodes", "ignore") or [])

    def ignore_shortcode(self, tag: str) -> None:
        ignored = self._section("shortcodes").setdefault("ignore", [])
        if tag in ignored:
            return
        ignored.append(tag)
        ignored.sort()
        self.save()
        log.debug("shortcode_ignored", tag=tag)

    # --- foreign keys -------------------------------------------------------

    def fk_override(self, table: str, column: str) -> str | None:
        return self._get("foreignKeys", "persist", f"{table}:{column}")

    def fk_entity_translation(self, column: str) -> str | None:
        return self._get("foreignKeys", "entityTranslation", column)
