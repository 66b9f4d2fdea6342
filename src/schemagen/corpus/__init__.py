"""Source corpus: files under analysis and the live table catalog."""

from schemagen.corpus.catalog import Catalog, RegistryCallback
from schemagen.corpus.files import list_source_files
from schemagen.corpus.models import Column, SourceFile, TableIntrospector, TableMap

__all__ = [
    "Catalog",
    "Column",
    "RegistryCallback",
    "SourceFile",
    "TableIntrospector",
    "TableMap",
    "list_source_files",
]
