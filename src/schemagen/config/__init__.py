"""Config module exports."""

from schemagen.config.loader import load_config
from schemagen.config.models import (
    CorpusConfig,
    InferenceConfig,
    LoggingConfig,
    PathsConfig,
    SchemaGenConfig,
)

__all__ = [
    "load_config",
    "SchemaGenConfig",
    "CorpusConfig",
    "InferenceConfig",
    "LoggingConfig",
    "PathsConfig",
]
