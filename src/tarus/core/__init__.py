"""Core module exports."""

from tarus.core.errors import (
    ConfigError,
    ErrorCode,
    FileIoError,
    InternalError,
    MalformedMappingRule,
    ParseError,
    TarusError,
)
from tarus.core.logging import (
    clear_scan_id,
    configure_logging,
    get_logger,
    get_scan_id,
    set_scan_id,
)

__all__ = [
    # Errors
    "TarusError",
    "ErrorCode",
    "ConfigError",
    "FileIoError",
    "ParseError",
    "MalformedMappingRule",
    "InternalError",
    # Logging
    "clear_scan_id",
    "configure_logging",
    "get_logger",
    "get_scan_id",
    "set_scan_id",
]
