"""Fold the old flat decision files into per-subject Decision Memory files.

Older releases kept one file per decision type for every subject:

- ``schema-slug.json``: ``{basename: slug}``
- ``table-custom-prefix.json``: ``{"<basename>-<version>": "prefix_"}``
- ``relationship-key-translation.json``: ``{"<basename>-<version>": {...}}``

Each legacy file is deleted once all of its entries have been migrated.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from schemagen.core.jsonfile import read_json_file, write_json_file

log = structlog.get_logger(__name__)

_VERSION_SUFFIX = re.compile(r"(-(?:[0-9]+\.?)+)$")

LEGACY_SLUG_FILE = "schema-slug.json"
LEGACY_PREFIX_FILE = "table-custom-prefix.json"
LEGACY_KEY_TRANSLATION_FILE = "relationship-key-translation.json"


def _strip_version(name: str) -> str:
    return _VERSION_SUFFIX.sub("", name)


def _set_slug(data: dict[str, Any], value: Any) -> None:
    data["slug"] = value


def _set_prefix(data: dict[str, Any], value: Any) -> None:
    data["table_prefix"] = str(value).rstrip("_")


def _set_key_translation(data: dict[str, Any], value: Any) -> None:
    data.setdefault("relationships", {})["key_translation"] = value


_MIGRATIONS: tuple[tuple[str, bool, Callable[[dict[str, Any], Any], None]], ...] = (
    (LEGACY_SLUG_FILE, False, _set_slug),
    (LEGACY_PREFIX_FILE, True, _set_prefix),
    (LEGACY_KEY_TRANSLATION_FILE, True, _set_key_translation),
)


def migrate_legacy_data(data_dir: Path) -> int:
    """Migrate every legacy file found in ``data_dir``.

    Returns:
        Number of subject entries migrated.
    """
    migrated = 0
    for filename, versioned, apply in _MIGRATIONS:
        legacy_file = data_dir / filename
        if not legacy_file.exists():
            continue

        entries = read_json_file(legacy_file)
        for name, value in entries.items():
            basename = _strip_version(name) if versioned else name
            target = data_dir / f"{basename}.json"
            data = read_json_file(target)
            apply(data, value)
            write_json_file(target, data)

        # Any failure above raises before the legacy file is removed
        legacy_file.unlink()
        log.info("legacy_data_migrated", file=filename, entries=len(entries))
        migrated += len(entries)
    return migrated
