"""tree-sitter-php access for the miners.

Parsers are not thread safe, so each scanning thread gets its own.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator

import tree_sitter
import tree_sitter_php

_LANGUAGE = tree_sitter.Language(tree_sitter_php.language_php())
_local = threading.local()


def php_parser() -> tree_sitter.Parser:
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = tree_sitter.Parser()
        parser.language = _LANGUAGE
        _local.parser = parser
    return parser


def parse_php(source: bytes) -> tree_sitter.Tree:
    return php_parser().parse(source)


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Pre-order traversal."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
