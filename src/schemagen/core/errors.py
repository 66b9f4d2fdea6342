"""schemagen error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Store (schema files, decision memory)
- 4xxx: Oracle
- 5xxx: Corpus
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Store (3xxx)
    STORE_READ_FAILED = 3001
    STORE_WRITE_FAILED = 3002
    STORE_CORRUPT = 3003

    # Oracle (4xxx)
    ORACLE_HEADLESS = 4001
    ORACLE_INVALID_ANSWER = 4002

    # Corpus (5xxx)
    CORPUS_ROOT_NOT_FOUND = 5001
    CORPUS_CATALOG_INVALID = 5002


@dataclass(frozen=True, slots=True)
class SchemaGenError(Exception):
    """Base error with structured context for reporting."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ORACLE_HEADLESS')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SchemaGenError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class StoreError(SchemaGenError):
    """Persisted schema / decision memory read or write failures."""

    @classmethod
    def read_failed(cls, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_READ_FAILED,
            message=f"Failed to read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_WRITE_FAILED,
            message=f"Failed to write {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def corrupt(cls, path: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_CORRUPT,
            message=f"Malformed JSON in {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class OracleError(SchemaGenError):
    """Oracle interaction errors."""

    @classmethod
    def headless(cls, kind: str, prompt: str) -> "OracleError":
        return cls(
            code=ErrorCode.ORACLE_HEADLESS,
            message=f"Decision required in headless mode ({kind}): {prompt}",
            details={"kind": kind, "prompt": prompt},
        )

    @classmethod
    def invalid_answer(cls, kind: str, answer: str) -> "OracleError":
        return cls(
            code=ErrorCode.ORACLE_INVALID_ANSWER,
            message=f"Unusable answer for {kind}: {answer!r}",
            details={"kind": kind, "answer": answer},
        )


class CorpusError(SchemaGenError):
    """Source corpus and catalog errors."""

    @classmethod
    def root_not_found(cls, path: str) -> "CorpusError":
        return cls(
            code=ErrorCode.CORPUS_ROOT_NOT_FOUND,
            message=f"Subject source root not found: {path}",
            details={"path": path},
        )

    @classmethod
    def catalog_invalid(cls, path: str, reason: str) -> "CorpusError":
        return cls(
            code=ErrorCode.CORPUS_CATALOG_INVALID,
            message=f"Invalid table catalog {path}: {reason}",
            details={"path": path, "reason": reason},
        )

