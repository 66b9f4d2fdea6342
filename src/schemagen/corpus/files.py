"""Source file enumeration for a subject."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from schemagen.core.errors import CorpusError
from schemagen.corpus.models import SourceFile

log = structlog.get_logger(__name__)


def list_source_files(
    root: Path,
    *,
    extensions: list[str],
    excluded_dirs: list[str],
    max_file_size_mb: int = 5,
) -> list[SourceFile]:
    """Walk ``root`` and return matching files sorted by relative path.

    Excluded directory names are pruned at any depth. Sorting keeps the
    first-wins reductions of the miners stable from one run to the next.

    Raises:
        CorpusError: If ``root`` is not a directory.
    """
    if not root.is_dir():
        raise CorpusError.root_not_found(str(root))

    wanted = {ext.lower() for ext in extensions}
    excluded = set(excluded_dirs)
    max_bytes = max_file_size_mb * 1024 * 1024
    files: list[SourceFile] = []
    skipped_large = 0

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in filenames:
            if Path(filename).suffix.lower() not in wanted:
                continue
            path = Path(dirpath) / filename
            try:
                if path.stat().st_size > max_bytes:
                    skipped_large += 1
                    continue
            except OSError:
                continue
            rel_path = path.relative_to(root).as_posix()
            files.append(SourceFile(path=path, rel_path=rel_path))

    files.sort(key=lambda f: f.rel_path)
    log.debug("source_files_listed", root=str(root), count=len(files), skipped_large=skipped_large)
    return files
