"""Schema data model and its JSON form.

The JSON form is the contract with the migration tool: camelCase field names,
empty fields omitted, every map sorted by key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SERIALIZED_FIELD = "serialized"


@dataclass(frozen=True, slots=True)
class PrimaryKey:
    """Simple (one column) or compound (several columns) primary key."""

    key: tuple[str, ...]
    auto_increment: bool = False

    @property
    def column(self) -> str:
        """First key column, the one foreign keys point at."""
        return self.key[0]

    def to_dict(self) -> dict[str, Any]:
        return {"key": list(self.key), "autoIncrement": self.auto_increment}

    @classmethod
    def from_dict(cls, data: Any) -> PrimaryKey:
        if isinstance(data, str):
            # Early schemas stored the bare column name
            return cls(key=(data,), auto_increment=False)
        return cls(key=tuple(data.get("key", [])), auto_increment=bool(data.get("autoIncrement")))


@dataclass(frozen=True, slots=True)
class SerializedMapping:
    """How a composite (serialized array) meta value references tables.

    ``key``: the array key holding IDs, or ``"ignore"``.
    ``val``: the target table of the values, or ``"keyTable|valueTable"`` when
    both the array keys and values are IDs.
    """

    key: str = "ignore"
    val: str = "ignore"

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "val": self.val}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SerializedMapping:
        return cls(key=str(data.get("key", "ignore")), val=str(data.get("val", "ignore")))


Serialized = SerializedMapping | tuple[SerializedMapping, ...]


@dataclass(frozen=True, slots=True)
class MetaRelationship:
    """A meta key whose value references another table.

    Persisted as ``{<key_column>: meta_key, <value_column>: target, "serialized": ...}``.
    """

    key_column: str
    value_column: str
    meta_key: str
    target: str
    serialized: Serialized | None = None

    @property
    def is_serialized(self) -> bool:
        return self.serialized is not None

    def serialized_list(self) -> list[SerializedMapping]:
        if self.serialized is None:
            return []
        if isinstance(self.serialized, SerializedMapping):
            return [self.serialized]
        return list(self.serialized)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {self.key_column: self.meta_key, self.value_column: self.target}
        if isinstance(self.serialized, SerializedMapping):
            data[SERIALIZED_FIELD] = self.serialized.to_dict()
        elif self.serialized:
            data[SERIALIZED_FIELD] = [m.to_dict() for m in self.serialized]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetaRelationship:
        pairs = [(k, v) for k, v in data.items() if k != SERIALIZED_FIELD]
        (key_column, meta_key), (value_column, target) = pairs[0], pairs[1]

        raw = data.get(SERIALIZED_FIELD)
        serialized: Serialized | None = None
        if isinstance(raw, list):
            serialized = tuple(SerializedMapping.from_dict(m) for m in raw)
        elif isinstance(raw, dict):
            serialized = SerializedMapping.from_dict(raw)

        return cls(
            key_column=key_column,
            value_column=value_column,
            meta_key=str(meta_key),
            target=str(target),
            serialized=serialized,
        )


@dataclass(frozen=True, slots=True)
class ShortcodeParameter:
    """An attribute holding IDs of ``table``."""

    name: str
    table: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "table": self.table}


Parameter = str | ShortcodeParameter


@dataclass(frozen=True, slots=True)
class ShortcodeRecord:
    """Attributes of a shortcode that carry IDs.

    A bare string parameter has no resolvable target table.
    """

    parameters: tuple[Parameter, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameters": [p if isinstance(p, str) else p.to_dict() for p in self.parameters]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShortcodeRecord:
        params: list[Parameter] = []
        for p in data.get("parameters", []):
            if isinstance(p, dict):
                params.append(ShortcodeParameter(name=str(p["name"]), table=str(p["table"])))
            else:
                params.append(str(p))
        return cls(parameters=tuple(params))


def _sorted(mapping: dict[str, Any]) -> dict[str, Any]:
    return {k: mapping[k] for k in sorted(mapping)}


@dataclass
class Schema:
    """Inferred schema for one subject version."""

    slug: str
    version: str
    type: str = "plugin"
    name: str | None = None
    url: str | None = None
    basename: str | None = None
    last_verified_version: str | None = None
    primary_keys: dict[str, PrimaryKey] = field(default_factory=dict)
    foreign_keys: dict[str, str] = field(default_factory=dict)
    meta_tables: dict[str, dict[str, str]] = field(default_factory=dict)
    shortcodes: dict[str, ShortcodeRecord] = field(default_factory=dict)
    relationships: dict[str, dict[str, MetaRelationship]] = field(default_factory=dict)
    content: dict[str, Any] = field(default_factory=dict)
    table_prefixes: list[str] = field(default_factory=list)
    ignore: dict[str, Any] = field(default_factory=dict)
    files: dict[str, Any] = field(default_factory=dict)

    def relationship(self, entity: str, key: str) -> MetaRelationship | None:
        return self.relationships.get(entity, {}).get(key)

    def sort(self) -> None:
        """Sort every map by key, in place."""
        self.primary_keys = _sorted(self.primary_keys)
        self.foreign_keys = _sorted(self.foreign_keys)
        self.meta_tables = _sorted(self.meta_tables)
        self.shortcodes = _sorted(self.shortcodes)
        self.relationships = {
            entity: _sorted(self.relationships[entity])
            for entity in sorted(self.relationships)
            if self.relationships[entity]
        }
        self.content = _sorted(self.content)
        self.table_prefixes = sorted(set(self.table_prefixes))
        self.ignore = _sorted(self.ignore)
        self.files = _sorted(self.files)

    def to_dict(self) -> dict[str, Any]:
        """JSON form with empty fields omitted."""
        self.sort()
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "lastVerifiedVersion": self.last_verified_version,
            "url": self.url,
            "basename": self.basename,
            "primaryKeys": {t: pk.to_dict() for t, pk in self.primary_keys.items()},
            "foreignKeys": self.foreign_keys,
            "metaTables": self.meta_tables,
            "shortcodes": {tag: sc.to_dict() for tag, sc in self.shortcodes.items()},
            "relationships": {
                entity: {key: rel.to_dict() for key, rel in rels.items()}
                for entity, rels in self.relationships.items()
            },
            "content": self.content,
            "tablePrefixes": self.table_prefixes,
            "ignore": self.ignore,
            "files": self.files,
        }
        return {k: v for k, v in data.items() if v}

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], *, slug: str, version: str, type: str = "plugin"
    ) -> Schema:
        relationships: dict[str, dict[str, MetaRelationship]] = {}
        for entity, rels in (data.get("relationships") or {}).items():
            if isinstance(rels, list):
                # Early schemas stored a list of records per entity
                rels = {MetaRelationship.from_dict(r).meta_key: r for r in rels}
            relationships[entity] = {
                key: MetaRelationship.from_dict(rel) for key, rel in rels.items()
            }

        return cls(
            slug=slug,
            version=str(data.get("version") or version),
            type=type,
            name=data.get("name"),
            url=data.get("url"),
            basename=data.get("basename"),
            last_verified_version=data.get("lastVerifiedVersion"),
            primary_keys={
                t: PrimaryKey.from_dict(pk) for t, pk in (data.get("primaryKeys") or {}).items()
            },
            foreign_keys=dict(data.get("foreignKeys") or {}),
            meta_tables=dict(data.get("metaTables") or {}),
            shortcodes={
                tag: ShortcodeRecord.from_dict(sc)
                for tag, sc in (data.get("shortcodes") or {}).items()
            },
            relationships=relationships,
            content=dict(data.get("content") or {}),
            table_prefixes=list(data.get("tablePrefixes") or []),
            ignore=dict(data.get("ignore") or {}),
            files=dict(data.get("files") or {}),
        )
