"""Shortcode callbacks: parsing registrations and finding callback source.

A callback is located with tree-sitter-php first. When the parse finds
nothing, a textual locator looks for ``function name(`` and cuts the body at
the matching brace.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
import tree_sitter

from schemagen.corpus.catalog import RegistryCallback
from schemagen.corpus.models import SourceFile, line_of
from schemagen.inference.expressions import (
    find_closing,
    is_string_literal,
    split_arguments,
    unquote,
)
from schemagen.inference.php import node_text, parse_php, walk

log = structlog.get_logger(__name__)

_IDENT = re.compile(r"^[^\W\d]\w*$")
_ARRAY_CALLBACK = re.compile(
    r"^(?:array\s*\((?P<long>.*)\)|\[(?P<short>.*)\])$", re.IGNORECASE | re.DOTALL
)
_CLASS_DECL = re.compile(r"(?<![\w$:>])class\s+(\w+)", re.IGNORECASE)
_PARAM_NAME = re.compile(r"\$\w+")
_SELF_REFS = frozenset({"$this", "self", "static", "__class__"})

_CLASS_NODES = frozenset({"class_declaration", "trait_declaration"})


@dataclass(frozen=True, slots=True)
class CallbackRef:
    """A callable by name, optionally a method of ``class_name``."""

    function: str
    class_name: str | None = None

    @property
    def label(self) -> str:
        return f"{self.class_name}::{self.function}" if self.class_name else self.function


@dataclass(frozen=True, slots=True)
class CallbackSource:
    """Declaration text of a located callback."""

    code: str
    first_param: str | None
    file: str
    line: int


def short_class_name(name: str) -> str:
    """``\\Vendor\\Pkg\\Widget`` -> ``Widget``."""
    return name.strip().lstrip("\\").rsplit("\\", 1)[-1]


def callback_from_registry(callback: RegistryCallback) -> CallbackRef | None:
    """Registry entries: ``"fn"``, ``"Class::method"`` or ``(class, method)``."""
    if isinstance(callback, tuple):
        owner, method = callback
        return CallbackRef(method, short_class_name(owner) or None)
    if "::" in callback:
        owner, _, method = callback.partition("::")
        return CallbackRef(method, short_class_name(owner) or None)
    return CallbackRef(callback) if callback else None


def enclosing_class(text: str, offset: int) -> str | None:
    """Name of the last class declared before ``offset``."""
    found = None
    for match in _CLASS_DECL.finditer(text, 0, offset):
        found = match.group(1)
    return found


def _resolve_owner(owner: str, current_class: str | None) -> str | None:
    owner = owner.strip()
    if owner.lower().endswith("::class"):
        owner = owner[: -len("::class")].strip()
        if owner.lower() in ("self", "static"):
            return current_class
        return short_class_name(owner)
    if owner.lower() in _SELF_REFS or unquote(owner).lower() in ("self", "static"):
        return current_class
    if is_string_literal(owner):
        return short_class_name(unquote(owner))
    if owner.lower().startswith("new "):
        return short_class_name(owner[4:].split("(", 1)[0])
    # Some other object; the method is looked up by name alone
    return None


def parse_callback_expression(expr: str, current_class: str | None = None) -> CallbackRef | None:
    """Callback reference from the second argument of ``add_shortcode``.

    Closures and variables yield None.
    """
    expr = expr.strip()
    array = _ARRAY_CALLBACK.match(expr)
    if array:
        inner = array.group("long") if array.group("long") is not None else array.group("short")
        parts = split_arguments(inner)
        if len(parts) != 2:
            return None
        method = unquote(parts[1])
        if not _IDENT.match(method):
            return None
        return CallbackRef(method, _resolve_owner(parts[0], current_class))

    if expr.upper().startswith("__CLASS__"):
        _, _, method = unquote(expr).partition("::")
        method = method.strip()
        return CallbackRef(method, current_class) if _IDENT.match(method) else None

    if not is_string_literal(expr):
        return None
    name = unquote(expr)
    if "::" in name:
        owner, _, method = name.partition("::")
        return CallbackRef(method, short_class_name(owner)) if _IDENT.match(method) else None
    return CallbackRef(name) if _IDENT.match(name) else None


# --- locating ----------------------------------------------------------------------


def _first_param_from_node(node: tree_sitter.Node, source: bytes) -> str | None:
    params = node.child_by_field_name("parameters")
    if params is None:
        return None
    for param in params.named_children:
        name = param.child_by_field_name("name")
        if name is not None:
            return node_text(name, source)
    return None


def _owner_class(node: tree_sitter.Node, source: bytes) -> str | None:
    parent = node.parent
    while parent is not None:
        if parent.type in _CLASS_NODES:
            name = parent.child_by_field_name("name")
            return node_text(name, source) if name is not None else None
        parent = parent.parent
    return None


def locate_with_tree_sitter(file: SourceFile, ref: CallbackRef) -> CallbackSource | None:
    source = file.text().encode()
    tree = parse_php(source)
    wanted = ref.function.lower()
    wanted_class = ref.class_name.lower() if ref.class_name else None

    for node in walk(tree.root_node):
        if node.type not in ("function_definition", "method_declaration"):
            continue
        name = node.child_by_field_name("name")
        if name is None or node_text(name, source).lower() != wanted:
            continue
        if node.type == "method_declaration" and wanted_class:
            owner = _owner_class(node, source)
            if owner is None or owner.lower() != wanted_class:
                continue
        return CallbackSource(
            code=node_text(node, source),
            first_param=_first_param_from_node(node, source),
            file=file.rel_path,
            line=node.start_point[0] + 1,
        )

    if tree.root_node.has_error:
        log.debug("callback_parse_error", file=file.rel_path, callback=ref.label)
    return None


def locate_textually(file: SourceFile, ref: CallbackRef) -> CallbackSource | None:
    """``function name(...) {...}`` by pattern and brace matching."""
    text = file.text()
    start = 0
    if ref.class_name:
        decl = re.search(rf"(?<![\w$:>])class\s+{re.escape(ref.class_name)}\b", text, re.IGNORECASE)
        if decl:
            start = decl.start()

    pattern = re.compile(rf"function\s+&?\s*{re.escape(ref.function)}\s*\(", re.IGNORECASE)
    match = pattern.search(text, start)
    if match is None:
        return None

    params_close = find_closing(text, match.end() - 1)
    if params_close is None:
        return None
    brace = text.find("{", params_close)
    semicolon = text.find(";", params_close)
    if brace < 0 or 0 <= semicolon < brace:
        # Abstract or interface method, no body
        return None
    body_close = find_closing(text, brace)
    if body_close is None:
        return None

    params = split_arguments(text[match.end() : params_close])
    first = _PARAM_NAME.search(params[0]) if params else None
    return CallbackSource(
        code=text[match.start() : body_close + 1],
        first_param=first.group(0) if first else None,
        file=file.rel_path,
        line=line_of(text, match.start()),
    )


class CallbackLocator:
    """Finds a callback's declaration anywhere in the corpus."""

    def __init__(self, files: Sequence[SourceFile]) -> None:
        self.files = files

    def locate(self, ref: CallbackRef, near: str | None = None) -> CallbackSource | None:
        """Search ``near`` (a relative path) first, then every other file."""
        ordered = sorted(self.files, key=lambda f: f.rel_path != near)
        wanted = ref.function.lower()
        for file in ordered:
            if wanted not in file.lower():
                continue
            found = locate_with_tree_sitter(file, ref) or locate_textually(file, ref)
            if found is not None:
                return found
        return None
