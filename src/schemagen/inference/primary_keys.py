"""Primary key inference from column descriptions."""

from __future__ import annotations

from collections.abc import Sequence

from schemagen.corpus.models import Column, TableMap
from schemagen.schema.models import PrimaryKey


def infer_primary_key(columns: Sequence[Column]) -> PrimaryKey | None:
    """Primary key of one table.

    The first auto-increment column is the key on its own. Without one, two
    or more key-flagged integer columns form a compound key. A lone
    key-flagged column is not usable as a key and yields None.
    """
    compound: list[str] = []
    for column in columns:
        if column.is_auto_increment:
            return PrimaryKey(key=(column.name,), auto_increment=True)
        if column.is_key and column.is_integer:
            compound.append(column.name)

    if len(compound) >= 2:
        return PrimaryKey(key=tuple(compound), auto_increment=False)
    return None


def infer_primary_keys(tables: TableMap) -> dict[str, PrimaryKey]:
    keys: dict[str, PrimaryKey] = {}
    for table, columns in tables.items():
        pk = infer_primary_key(columns)
        if pk is not None:
            keys[table] = pk
    return keys
