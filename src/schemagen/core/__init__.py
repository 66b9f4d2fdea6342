"""Core module exports."""

from schemagen.core.errors import (
    ConfigError,
    CorpusError,
    ErrorCode,
    OracleError,
    SchemaGenError,
    StoreError,
)
from schemagen.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from schemagen.core.progress import progress, status

__all__ = [
    # Errors
    "SchemaGenError",
    "ConfigError",
    "CorpusError",
    "ErrorCode",
    "OracleError",
    "StoreError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "progress",
    "status",
]
