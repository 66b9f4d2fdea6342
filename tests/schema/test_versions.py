"""Tests for version ordering and filenames."""

import pytest

from schemagen.schema.versions import (
    normalize_version,
    split_schema_filename,
    version_key,
)


class TestVersionKey:
    """version_key ordering tests."""

    def test_numeric_not_lexical(self) -> None:
        """1.10 sorts after 1.9."""
        versions = ["1.10", "1.9", "1.9.1", "2.0"]

        assert sorted(versions, key=version_key) == ["1.9", "1.9.1", "1.10", "2.0"]

    def test_textual_tail_sorts_after_numbers(self) -> None:
        """Numbers and text at the same position never compare directly."""
        versions = ["1.0-beta", "1.0.1", "1.0"]

        assert sorted(versions, key=version_key) == ["1.0", "1.0.1", "1.0-beta"]


class TestNormalizeVersion:
    """normalize_version tests."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("4.7", "4.7"),
            ("4.7.2", "4.7.2"),
            ("4.7.2.1", "4.7.2"),
            ("4.7-RC1", "4.7"),
            ("trunk", None),
            ("4", None),
        ],
    )
    def test_normalize(self, raw: str, expected: str | None) -> None:
        """Only the leading major.minor[.patch] is kept."""
        assert normalize_version(raw) == expected


class TestSplitSchemaFilename:
    """split_schema_filename tests."""

    def test_split(self) -> None:
        """The version is everything after the last dash."""
        assert split_schema_filename("woocommerce-2.5.5.json") == ("woocommerce", "2.5.5")

    def test_dashed_basename(self) -> None:
        """Dashes inside the basename are kept."""
        assert split_schema_filename("contact-form-7-5.1.json") == ("contact-form-7", "5.1")

    def test_no_version(self) -> None:
        """A name without a dash has no version."""
        assert split_schema_filename("orphan.json") == ("orphan", "")
