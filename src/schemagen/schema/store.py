"""Persisted schema files, one per subject version.

Layout::

    <schema_dir>/core/<platform>-<version>.json
    <schema_dir>/plugins/<slug>-<version>.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from schemagen.core.errors import StoreError
from schemagen.core.jsonfile import read_json_file, write_json_file
from schemagen.schema.models import Schema
from schemagen.schema.versions import split_schema_filename, version_key

log = structlog.get_logger(__name__)

PLATFORM_TYPE = "platform"


class SchemaStore:
    """Reads and writes schema files under one root directory."""

    def __init__(self, schema_dir: Path) -> None:
        self.schema_dir = schema_dir

    def directory(self, type: str) -> Path:
        return self.schema_dir / ("core" if type == PLATFORM_TYPE else "plugins")

    def path(self, slug: str, version: str, type: str) -> Path:
        return self.directory(type) / f"{slug}-{version}.json"

    def exists(self, slug: str, version: str, type: str) -> bool:
        return self.path(slug, version, type).exists()

    def read_raw(self, slug: str, version: str, type: str) -> dict[str, Any]:
        return read_json_file(self.path(slug, version, type))

    def load(self, slug: str, version: str, type: str) -> Schema:
        data = self.read_raw(slug, version, type)
        return Schema.from_dict(data, slug=slug, version=version, type=type)

    def save(self, schema: Schema) -> Path:
        path = self.path(schema.slug, schema.version, schema.type)
        write_json_file(path, schema.to_dict())
        log.info("schema_saved", slug=schema.slug, version=schema.version, path=str(path))
        return path

    def delete(self, slug: str, version: str, type: str) -> None:
        path = self.path(slug, version, type)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError.write_failed(str(path), str(e)) from e

    def versions(self, slug: str, type: str) -> list[str]:
        """Versions with a schema file for ``slug``, oldest first."""
        return sorted(self.all_schemas(type).get(slug, []), key=version_key)

    def all_schemas(self, type: str) -> dict[str, list[str]]:
        """slug -> versions for every schema file of a type."""
        directory = self.directory(type)
        found: dict[str, list[str]] = {}
        if not directory.is_dir():
            return found
        for path in sorted(directory.glob("*.json")):
            slug, version = split_schema_filename(path.name)
            if version:
                found.setdefault(slug, []).append(version)
        return found

    def nearest_prior(self, slug: str, version: str, type: str) -> str | None:
        """Highest stored version lower than ``version``."""
        target = version_key(version)
        older = [v for v in self.versions(slug, type) if version_key(v) < target]
        return older[-1] if older else None

    def duplicate(self, slug: str, from_version: str, to_version: str, type: str) -> None:
        """Copy a schema file forward to a new version.

        The version string is replaced textually wherever it appears quoted,
        so a data value equal to the old version is rewritten too.
        """
        source = self.path(slug, from_version, type)
        target = self.path(slug, to_version, type)
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError.read_failed(str(source), str(e)) from e
        text = text.replace(f'"{from_version}"', f'"{to_version}"')
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            raise StoreError.write_failed(str(target), str(e)) from e
        log.info("schema_duplicated", slug=slug, from_version=from_version, to_version=to_version)

    def set_last_verified(self, slug: str, version: str, type: str, verified: str) -> None:
        schema = self.load(slug, version, type)
        schema.last_verified_version = verified
        write_json_file(self.path(slug, version, type), schema.to_dict())
