"""Best-effort handling of PHP call expressions found by pattern matching."""

from __future__ import annotations

import re
from typing import Protocol

import structlog

from schemagen.inference.php import node_text, parse_php, walk

log = structlog.get_logger(__name__)

_SINGLE_QUOTED = re.compile(r"^'(?:[^'\\]|\\.)*'$", re.DOTALL)
_DOUBLE_QUOTED = re.compile(r'^"(?:[^"\\]|\\.)*"$', re.DOTALL)
_NUMERIC = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
_DEFINITION_TAIL = re.compile(r"function\s*&?\s*$", re.IGNORECASE)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


class ArgumentSplitter(Protocol):
    """Splits the text between a call's parentheses into its arguments.

    Raises ValueError when it cannot make sense of the text.
    """

    def split(self, arguments: str) -> list[str]: ...


class NaiveSplitter:
    """Comma split. Wrong for arguments that contain commas."""

    def split(self, arguments: str) -> list[str]:
        return [a.strip() for a in arguments.split(",")]


class TreeSitterSplitter:
    """Parses ``<?php f(<arguments>);`` and returns each argument's source."""

    def split(self, arguments: str) -> list[str]:
        source = f"<?php f({arguments});".encode()
        tree = parse_php(source)
        if tree.root_node.has_error:
            raise ValueError("argument list does not parse")

        call = next((n for n in walk(tree.root_node) if n.type == "function_call_expression"), None)
        args = call.child_by_field_name("arguments") if call is not None else None
        if args is None:
            raise ValueError("no call expression in parse tree")
        return [node_text(n, source).strip() for n in args.named_children if n.type == "argument"]


_NAIVE = NaiveSplitter()
_DEFAULT = TreeSitterSplitter()


def split_arguments(arguments: str, splitter: ArgumentSplitter | None = None) -> list[str]:
    """Split with ``splitter``, falling back to a comma split when it fails."""
    try:
        return (splitter or _DEFAULT).split(arguments)
    except ValueError as e:
        log.debug("argument_split_fallback", reason=str(e), arguments=arguments[:120])
        return _NAIVE.split(arguments)


def find_closing(text: str, open_index: int) -> int | None:
    """Index of the bracket matching the one at ``open_index``.

    Brackets nest and quoted strings are skipped, so ``f(a(1, 2), ')')`` is
    cut at the right place. Returns None when the bracket is never closed.
    """
    stack: list[str] = []
    quote: str | None = None
    i = open_index
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i
        i += 1
    return None


def extract_call_arguments(text: str, open_paren: int) -> str | None:
    """Text between the parenthesis at ``open_paren`` and its match."""
    close = find_closing(text, open_paren)
    return None if close is None else text[open_paren + 1 : close]


def is_string_literal(expr: str) -> bool:
    return bool(_SINGLE_QUOTED.match(expr) or _DOUBLE_QUOTED.match(expr))


def is_numeric_literal(expr: str) -> bool:
    return bool(_NUMERIC.match(expr))


def unquote(expr: str) -> str:
    """Remove every quote character, as used for meta keys and tags."""
    return expr.replace("'", "").replace('"', "").strip()


def is_definition(text: str, start: int) -> bool:
    """True when the name at ``start`` is being declared, not called."""
    return bool(_DEFINITION_TAIL.search(text[max(0, start - 24) : start]))
