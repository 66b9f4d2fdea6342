"""JSON file read/write with typed store errors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from schemagen.config.constants import SCHEMA_INDENT
from schemagen.core.errors import StoreError


def read_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON object; a missing or empty file reads as ``{}``.

    Raises:
        StoreError: If the file cannot be read or is not a JSON object.
    """
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StoreError.read_failed(str(path), str(e)) from e
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreError.corrupt(str(path), str(e)) from e
    if data is None or data == []:
        return {}
    if not isinstance(data, dict):
        raise StoreError.corrupt(str(path), "top level is not an object")
    return data


def dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=SCHEMA_INDENT, ensure_ascii=False) + "\n"


def write_json_file(path: Path, data: dict[str, Any]) -> None:
    """Write a JSON object, creating parent directories.

    Raises:
        StoreError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_json(data), encoding="utf-8")
    except OSError as e:
        raise StoreError.write_failed(str(path), str(e)) from e
