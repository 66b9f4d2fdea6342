"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SCHEMAGEN__SECTION__KEY)
3. Project YAML (schemagen.yaml in the working root)
4. Global YAML (~/.config/schemagen/config.yaml)
5. Built-in defaults (this file)

Examples:
    SCHEMAGEN__LOGGING__LEVEL=DEBUG
    SCHEMAGEN__PATHS__SCHEMA_DIR=/srv/schemas
    SCHEMAGEN__INFERENCE__MAX_WORKERS=8
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SCHEMAGEN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every scanned call site.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class PathsConfig(BaseModel):
    """Where schemas and decision memory live.

    Env vars:
        SCHEMAGEN__PATHS__SCHEMA_DIR: Root of the versioned schema files
        SCHEMAGEN__PATHS__DATA_DIR: Root of the per-subject decision memory files
    """

    schema_dir: str = Field(
        default="schemas",
        description="Schema files go to <schema_dir>/core and <schema_dir>/plugins.",
    )
    data_dir: str = Field(
        default="data",
        description="Decision memory, one JSON file per subject basename.",
    )


class CorpusConfig(BaseModel):
    """Source file enumeration.

    Env vars:
        SCHEMAGEN__CORPUS__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    extensions: list[str] = Field(
        default_factory=lambda: [".php"],
        description="File extensions scanned for tables, meta writes and shortcodes.",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: [".git", ".svn", "node_modules"],
        description="Directory names pruned from every subject walk.",
    )
    platform_excluded_dirs: list[str] = Field(
        default_factory=lambda: ["wp-content"],
        description="Extra directories pruned when the subject is the platform itself.",
    )
    max_file_size_mb: int = Field(
        default=5,
        description="Skip files larger than this (MB). Minified bundles are not worth scanning.",
    )


class InferenceConfig(BaseModel):
    """Inference pipeline knobs.

    Env vars:
        SCHEMAGEN__INFERENCE__MAX_WORKERS: Parallel file scanning workers
    """

    max_workers: int = Field(
        default=4,
        description="Threads used to scan source files during discovery.",
    )
    meta_suffix: str = Field(
        default="meta",
        description="Table name suffix marking a key/value meta table.",
    )
    options_table: str = Field(
        default="options",
        description="Singleton key/value table written with add_option/update_option.",
    )
    platform_slug: str = Field(
        default="wordpress",
        description="Slug used for the platform's own schema.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class SchemaGenConfig(BaseModel):
    """Root configuration for schemagen."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
