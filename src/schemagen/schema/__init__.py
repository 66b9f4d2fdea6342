"""Schema model, persistence, and the cross-version merge engine."""

from schemagen.schema.merge import (
    collapse_versions,
    merge_relationship,
    merge_relationships,
    review_removed,
    schemas_identical,
)
from schemagen.schema.models import (
    MetaRelationship,
    PrimaryKey,
    Schema,
    SerializedMapping,
    ShortcodeParameter,
    ShortcodeRecord,
)
from schemagen.schema.store import PLATFORM_TYPE, SchemaStore
from schemagen.schema.versions import normalize_version, split_schema_filename, version_key

__all__ = [
    "MetaRelationship",
    "PLATFORM_TYPE",
    "PrimaryKey",
    "Schema",
    "SchemaStore",
    "SerializedMapping",
    "ShortcodeParameter",
    "ShortcodeRecord",
    "collapse_versions",
    "merge_relationship",
    "merge_relationships",
    "normalize_version",
    "review_removed",
    "schemas_identical",
    "split_schema_filename",
    "version_key",
]
