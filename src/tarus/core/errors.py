"""Tarus error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (file I/O, parsing)
- 4xxx: Mapping rules
- 9xxx: Internal

None of these are fatal to the process. Per-file errors are contained by the
indexing loop, malformed mapping rules are dropped at load time.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Index (3xxx)
    FILE_NOT_FOUND = 3001
    FILE_UNREADABLE = 3002
    UNSUPPORTED_FILE = 3003
    GRAMMAR_UNAVAILABLE = 3004

    # Mapping (4xxx)
    MAPPING_MALFORMED_RULE = 4001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class TarusError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'FILE_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(TarusError):
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


class FileIoError(TarusError):
    """A source file could not be read. The scan skips it and continues."""

    @property
    def is_missing(self) -> bool:
        return self.code == ErrorCode.FILE_NOT_FOUND

    @classmethod
    def not_found(cls, path: str) -> "FileIoError":
        return cls(
            code=ErrorCode.FILE_NOT_FOUND,
            message=f"File not found: {path}",
            details={"path": path},
        )

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "FileIoError":
        return cls(
            code=ErrorCode.FILE_UNREADABLE,
            message=f"Failed to read {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ParseError(TarusError):
    """A source file could not be handed to a grammar."""

    @classmethod
    def unsupported_file(cls, path: str) -> "ParseError":
        return cls(
            code=ErrorCode.UNSUPPORTED_FILE,
            message=f"No grammar registered for {path}",
            details={"path": path},
        )

    @classmethod
    def grammar_unavailable(cls, grammar: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.GRAMMAR_UNAVAILABLE,
            message=f"Grammar not available: {grammar} ({reason})",
            details={"grammar": grammar, "reason": reason},
        )


class MalformedMappingRule(TarusError):
    """A user mapping rule failed validation and was dropped."""

    @classmethod
    def invalid(cls, index: int, rule: Any, reason: str) -> "MalformedMappingRule":
        return cls(
            code=ErrorCode.MAPPING_MALFORMED_RULE,
            message=f"Mapping rule #{index} dropped: {reason}",
            details={"index": index, "rule": repr(rule), "reason": reason},
        )


class InternalError(TarusError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
