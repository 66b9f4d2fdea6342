"""Tests for call expression helpers."""

import pytest

from schemagen.inference.expressions import (
    NaiveSplitter,
    TreeSitterSplitter,
    extract_call_arguments,
    find_closing,
    is_definition,
    is_numeric_literal,
    is_string_literal,
    split_arguments,
    unquote,
)


class FailingSplitter:
    def split(self, arguments: str) -> list[str]:
        raise ValueError("nope")


class TestSplitters:
    """Argument splitting."""

    def test_naive_splits_on_every_comma(self) -> None:
        """The naive splitter does not understand nesting."""
        assert NaiveSplitter().split("$a, array(1, 2)") == ["$a", "array(1", "2)"]

    def test_tree_sitter_respects_nesting(self) -> None:
        """Nested calls, arrays and strings with commas stay whole."""
        args = TreeSitterSplitter().split("$id, 'a,b', array( 1, 2 ), f( $x, $y )")

        assert args == ["$id", "'a,b'", "array( 1, 2 )", "f( $x, $y )"]

    def test_tree_sitter_rejects_broken_input(self) -> None:
        """Unparseable arguments raise ValueError."""
        with pytest.raises(ValueError):
            TreeSitterSplitter().split("$a, 'unterminated")

    def test_split_arguments_falls_back_to_naive(self) -> None:
        """A failing splitter degrades to the comma split."""
        assert split_arguments("$a, $b", FailingSplitter()) == ["$a", "$b"]

    def test_split_arguments_default(self) -> None:
        """The default splitter is the parser-backed one."""
        assert split_arguments("$post_id, '_key', array( $a, $b )") == [
            "$post_id",
            "'_key'",
            "array( $a, $b )",
        ]


class TestBrackets:
    """Bracket matching."""

    def test_find_closing_skips_nesting_and_strings(self) -> None:
        """Brackets in strings and nested calls are not the match."""
        text = "f(a(1, 2), ')')"

        assert find_closing(text, 1) == len(text) - 1

    def test_escaped_quote(self) -> None:
        """Escaped quotes do not end the string."""
        text = r"('it\'s (', $x)"

        assert find_closing(text, 0) == len(text) - 1

    @pytest.mark.parametrize("text", ["f(a, b", "f(a]"])
    def test_unbalanced(self, text: str) -> None:
        """Unclosed or mismatched brackets give None."""
        assert find_closing(text, 1) is None

    def test_extract_call_arguments(self) -> None:
        """The text between the parentheses is returned."""
        text = "update_post_meta( $id, 'k', $v ); echo 1;"

        assert extract_call_arguments(text, text.index("(")) == " $id, 'k', $v "


class TestLiterals:
    """Literal classification."""

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("'abc'", True),
            ('"abc $x"', True),
            ("'it\\'s'", True),
            ("'a' . $b", False),
            ("$a", False),
            ("''", True),
        ],
    )
    def test_is_string_literal(self, expr: str, expected: bool) -> None:
        """A single quoted or double quoted string and nothing else."""
        assert is_string_literal(expr) is expected

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [("12", True), ("-3.5", True), ("+0", True), ("1e3", False), ("$n", False)],
    )
    def test_is_numeric_literal(self, expr: str, expected: bool) -> None:
        """Plain integers and decimals."""
        assert is_numeric_literal(expr) is expected

    def test_unquote_removes_every_quote(self) -> None:
        """Quotes anywhere in the expression are removed."""
        assert unquote(" '_price_' . \"x\" ") == "_price_ . x"

    def test_is_definition(self) -> None:
        """A name preceded by function is a declaration."""
        text = "function &update_post_meta( $a ) {} update_post_meta( 1 );"

        assert is_definition(text, text.index("update_post_meta"))
        assert not is_definition(text, text.rindex("update_post_meta"))
