"""Per-file scanning, sequential or across a thread pool.

Scanners are pure functions of one file. Results come back in file order so
the first-wins reduce is deterministic whichever path ran.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from schemagen.corpus.models import SourceFile


def scan_files[R](
    files: Sequence[SourceFile], scanner: Callable[[SourceFile], R], workers: int = 1
) -> list[R]:
    """Run ``scanner`` over every file, preserving file order."""
    if workers <= 1 or len(files) < 2:
        return _sequential_scan(files, scanner)
    return _parallel_scan(files, scanner, workers)


def _sequential_scan[R](
    files: Sequence[SourceFile], scanner: Callable[[SourceFile], R]
) -> list[R]:
    return [scanner(f) for f in files]


def _parallel_scan[R](
    files: Sequence[SourceFile], scanner: Callable[[SourceFile], R], workers: int
) -> list[R]:
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="schemagen-scan") as executor:
        return list(executor.map(scanner, files))


def first_wins[K, V](partials: Iterable[Iterable[tuple[K, V]]]) -> dict[K, V]:
    """Union of per-file findings; the earliest occurrence of a key is kept."""
    merged: dict[K, V] = {}
    for partial in partials:
        for key, value in partial:
            if key not in merged:
                merged[key] = value
    return merged
