"""Inference pipeline: discovery over the corpus, then oracle-driven resolution."""

from schemagen.inference.foreign_keys import resolve_foreign_keys
from schemagen.inference.primary_keys import infer_primary_keys
from schemagen.inference.relationships import (
    MetaResolver,
    discover_meta_candidates,
    find_meta_tables,
)
from schemagen.inference.shortcodes import ShortcodeResolver, discover_shortcode_candidates
from schemagen.inference.tables import discover_tables

__all__ = [
    "MetaResolver",
    "ShortcodeResolver",
    "discover_meta_candidates",
    "discover_shortcode_candidates",
    "discover_tables",
    "find_meta_tables",
    "infer_primary_keys",
    "resolve_foreign_keys",
]
