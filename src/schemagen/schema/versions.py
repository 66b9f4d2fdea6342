"""Version ordering and schema filename parsing."""

from __future__ import annotations

import re

_NORMALIZED = re.compile(r"^\d+\.\d+(?:\.\d+)?")
_PART = re.compile(r"(\d+)|([^\d.]+)")


def normalize_version(version: str) -> str | None:
    """Leading ``major.minor[.patch]`` of a version string, or None."""
    match = _NORMALIZED.match(version)
    return match.group(0) if match else None


def version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key ordering dotted versions numerically.

    Numeric parts sort before textual ones at the same position, so
    ``1.0 < 1.0.1 < 1.0-beta`` never mixes up int and str comparisons.
    """
    key: list[tuple[int, int | str]] = []
    for number, text in _PART.findall(version):
        if number:
            key.append((0, int(number)))
        else:
            key.append((1, text.strip("-_").lower()))
    return tuple(key)


def split_schema_filename(filename: str) -> tuple[str, str]:
    """Split ``"<basename>-<version>.json"`` into its parts.

    >>> split_schema_filename("woocommerce-2.5.5.json")
    ('woocommerce', '2.5.5')
    """
    stem = filename[: -len(".json")] if filename.endswith(".json") else filename
    basename, _, version = stem.rpartition("-")
    if not basename:
        return stem, ""
    return basename, version
