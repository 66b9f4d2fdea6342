"""Configuration constants.

Fixed facts about the platform and the inference heuristics. These are not
user-configurable; see models.py for the configurable values.
"""

# =============================================================================
# Platform tables
# =============================================================================

PLATFORM_TABLES: tuple[str, ...] = (
    "posts",
    "comments",
    "links",
    "options",
    "postmeta",
    "terms",
    "term_taxonomy",
    "term_relationships",
    "termmeta",
    "commentmeta",
    "users",
    "usermeta",
)
"""Tables every platform install has, described once per run."""

EXCLUDED_TABLES: frozenset[str] = frozenset(
    {
        "blogs",
        "blog_versions",
        "registration_log",
        "site",
        "sitemeta",
        "signups",
        "sitecategories",
    }
)
"""Multisite tables never included in a schema."""

TABLE_NAME_NOISE: tuple[str, ...] = ("$wpdb->prefix", "$wpdb->", "([^", "{", "}", "`", "'", '"')
"""Fragments stripped from CREATE TABLE names before they are looked up."""

# =============================================================================
# Heuristics
# =============================================================================

NON_ID_VALUES: frozenset[str] = frozenset(
    {"$count", "$counts", "true", "false", "'0'", "'1'", '"0"', '"1"', "0", "1"}
)
"""Meta values that never carry identifiers."""

PLACEHOLDER_MARKERS: tuple[str, ...] = ("$", "{", "%")
"""A meta key containing any of these is built at run time."""

# =============================================================================
# Persistence
# =============================================================================

SCHEMA_INDENT = 4
"""JSON indentation for schema and decision memory files."""

VERSION_FIELDS: tuple[str, ...] = ("version", "lastVerifiedVersion")
"""Schema fields ignored when comparing two versions for collapse."""
