"""CLI utilities."""

import re
from pathlib import Path

from schemagen.schema.store import PLATFORM_TYPE
from schemagen.schema.versions import normalize_version

_HEADER_BYTES = 8192
_PLUGIN_NAME = re.compile(r"^[ \t/*#@]*Plugin Name:", re.IGNORECASE | re.MULTILINE)
_VERSION_HEADER = re.compile(r"^[ \t/*#@]*Version:[ \t]*(\S+)", re.IGNORECASE | re.MULTILINE)
_PLATFORM_VERSION = re.compile(r"\$wp_version\s*=\s*['\"]([^'\"]+)['\"]")


def _read_head(path: Path) -> str:
    with path.open(encoding="utf-8", errors="replace") as f:
        return f.read(_HEADER_BYTES)


def detect_version(root: Path, subject_type: str) -> str | None:
    """Read the subject's version from its own files.

    Plugins declare it in the ``Version:`` header of the main plugin file;
    the platform assigns ``$wp_version`` in ``wp-includes/version.php``.

    Returns:
        The normalized version, the raw one when it does not normalize,
        or None when nothing declares a version.
    """
    found: str | None = None
    if subject_type == PLATFORM_TYPE:
        version_file = root / "wp-includes" / "version.php"
        if version_file.is_file():
            match = _PLATFORM_VERSION.search(version_file.read_text(errors="replace"))
            found = match.group(1) if match else None
    else:
        for path in sorted(root.glob("*.php")):
            head = _read_head(path)
            if not _PLUGIN_NAME.search(head):
                continue
            match = _VERSION_HEADER.search(head)
            if match:
                found = match.group(1)
                break

    if found is None:
        return None
    return normalize_version(found) or found
