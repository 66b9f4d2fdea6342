"""Tests for source file enumeration."""

from pathlib import Path

import pytest

from schemagen.core.errors import CorpusError
from schemagen.corpus.files import list_source_files
from schemagen.corpus.models import SourceFile, line_of


def _touch(root: Path, rel: str, content: str = "<?php\n") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestListSourceFiles:
    """list_source_files tests."""

    def test_sorted_and_filtered_by_extension(self, tmp_path: Path) -> None:
        """Only configured extensions are kept, sorted by relative path."""
        _touch(tmp_path, "z.php")
        _touch(tmp_path, "inc/b.php")
        _touch(tmp_path, "inc/a.PHP")
        _touch(tmp_path, "readme.txt")

        files = list_source_files(tmp_path, extensions=[".php"], excluded_dirs=[])

        assert [f.rel_path for f in files] == ["inc/a.PHP", "inc/b.php", "z.php"]

    def test_excluded_dirs_pruned_at_any_depth(self, tmp_path: Path) -> None:
        """Excluded directory names are skipped wherever they appear."""
        _touch(tmp_path, "main.php")
        _touch(tmp_path, "wp-content/plugins/x.php")
        _touch(tmp_path, "lib/node_modules/y.php")

        files = list_source_files(
            tmp_path, extensions=[".php"], excluded_dirs=["wp-content", "node_modules"]
        )

        assert [f.rel_path for f in files] == ["main.php"]

    def test_large_files_skipped(self, tmp_path: Path) -> None:
        """Files above the size limit are not scanned."""
        _touch(tmp_path, "big.php", "x" * (1024 * 1024 + 1))
        _touch(tmp_path, "small.php")

        files = list_source_files(
            tmp_path, extensions=[".php"], excluded_dirs=[], max_file_size_mb=1
        )

        assert [f.rel_path for f in files] == ["small.php"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        """A root that is not a directory is a CorpusError."""
        with pytest.raises(CorpusError):
            list_source_files(tmp_path / "missing", extensions=[".php"], excluded_dirs=[])


class TestSourceFile:
    """SourceFile tests."""

    def test_text_is_read_lazily_with_replacement(self, tmp_path: Path) -> None:
        """Undecodable bytes are replaced rather than failing the scan."""
        path = tmp_path / "latin.php"
        path.write_bytes(b"<?php echo '\xe9';")

        source = SourceFile(path=path, rel_path="latin.php")

        assert "�" in source.text()
        assert source.lower() == source.text().lower()

    def test_from_text(self) -> None:
        """In-memory files never touch the disk."""
        source = SourceFile.from_text("a.php", "<?php CREATE TABLE")
        assert source.lower() == "<?php create table"

    def test_line_of(self) -> None:
        """Offsets map to 1-based line numbers."""
        text = "a\nb\nc"
        assert line_of(text, 0) == 1
        assert line_of(text, text.index("c")) == 3
