"""Corpus data models: live table descriptions and source files.

Plain dataclasses, no I/O beyond lazily reading a file's text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class Column:
    """One column as reported by the database (DESCRIBE row)."""

    name: str
    type: str
    is_key: bool = False
    is_auto_increment: bool = False

    @property
    def is_integer(self) -> bool:
        """Integer family check on the declared type (int, bigint, tinyint(1), ...)."""
        return "int" in self.type.lower()

    @classmethod
    def from_describe(cls, row: dict[str, Any]) -> Column:
        """Build from a DESCRIBE-shaped row: {Field, Type, Key, Extra}."""
        return cls(
            name=str(row["Field"]),
            type=str(row.get("Type", "")),
            is_key=str(row.get("Key", "")).upper() == "PRI",
            is_auto_increment="auto_increment" in str(row.get("Extra", "")).lower(),
        )


TableMap = dict[str, list[Column]]
"""Table name (without database prefix) -> ordered columns."""


class TableIntrospector(Protocol):
    """Live database introspection, supplied by the caller."""

    def tables(self, names: list[str]) -> TableMap:
        """Describe the named tables; unknown names are omitted."""
        ...

    def tables_by_prefix(self, prefix: str) -> list[str]:
        """Names of all tables starting with ``prefix``."""
        ...


@dataclass
class SourceFile:
    """A source file in the subject being analyzed."""

    path: Path
    rel_path: str
    _text: str | None = field(default=None, repr=False)
    _lower: str | None = field(default=None, repr=False)

    def text(self) -> str:
        if self._text is None:
            self._text = self.path.read_text(encoding="utf-8", errors="replace")
        return self._text

    def lower(self) -> str:
        if self._lower is None:
            self._lower = self.text().lower()
        return self._lower

    @classmethod
    def from_text(cls, rel_path: str, text: str) -> SourceFile:
        """In-memory file, used by callers that already hold the content."""
        return cls(path=Path(rel_path), rel_path=rel_path, _text=text)


def line_of(text: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return text.count("\n", 0, offset) + 1
