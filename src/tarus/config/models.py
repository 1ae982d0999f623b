"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (TARUS__KEY or TARUS__SECTION__KEY)
3. Workspace YAML (.tarus/config.yaml)
4. Global YAML (~/.config/tarus/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    TARUS__<KEY>=<VALUE>
    TARUS__<SECTION>__<KEY>=<VALUE>

Examples:
    TARUS__BACKEND_ROOT=src-tauri/src
    TARUS__DEVELOPER_MODE=true
    TARUS__LOGGING__LEVEL=DEBUG
    TARUS__INDEXER__DEBOUNCE_SEC=0.5
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
CodeLensAction = Literal["open", "references"]


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
        TARUS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every extracted fact.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexerConfig(BaseModel):
    """Background indexer configuration.

    Env vars:
        TARUS__INDEXER__DEBOUNCE_SEC: Debounce window for save-triggered rescans
        TARUS__INDEXER__INITIAL_DEBOUNCE_SEC: Delay before the post-startup scan
    """

    debounce_sec: float = Field(
        default=0.3,
        ge=0.0,
        description="Quiet time after the last trigger before a rescan starts. "
        "Lower values may cause excessive rescans during rapid edits.",
    )
    initial_debounce_sec: float = Field(
        default=1.0,
        ge=0.0,
        description="Delay before the first full scan, giving the workspace time to settle.",
    )


class MappingRuleSpec(BaseModel):
    """One user mapping rule, as written in configuration.

    JSON shape: ``{"backend": "app.emit", "frontend": ["listen"],
    "eventArgIndex": 1, "type": "event"}``. ``eventArgIndex`` is 1-based and
    must be a real positive integer (no strings, floats or booleans).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    backend: str = Field(min_length=1)
    frontend: list[str]
    event_arg_index: StrictInt = Field(default=1, alias="eventArgIndex")
    type: Literal["command", "event"]

    @field_validator("frontend")
    @classmethod
    def validate_frontend(cls, v: list[str]) -> list[str]:
        names = [name.strip() for name in v if name.strip()]
        if not names:
            raise ValueError("frontend must list at least one function name")
        return names

    @field_validator("event_arg_index")
    @classmethod
    def validate_arg_index(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"eventArgIndex must be a positive integer, got {v}")
        return v


class TarusConfig(BaseModel):
    """Root configuration for Tarus.

    All settings can be configured via:
    1. Environment variables: TARUS__KEY / TARUS__SECTION__KEY
    2. YAML config files (workspace or global)
    3. Direct kwargs to load_config()
    """

    backend_root: str = Field(
        default="src-tauri/src",
        description="Backend (Rust) source root, relative to the workspace.",
    )
    frontend_root: str = Field(
        default="src",
        description="Frontend (TS/JS/Vue) source root, relative to the workspace.",
    )
    mappings: list[Any] = Field(
        default_factory=list,
        description="User mapping rules appended after the built-in rules. "
        "Malformed entries are dropped with a warning.",
    )
    code_lens_action: CodeLensAction = Field(
        default="open",
        description="What presentation layers do when a counterpart link is followed.",
    )
    developer_mode: bool = Field(
        default=False,
        description="Write .tarus/registry.json after every scan.",
    )
    reference_limit: int = Field(
        default=3,
        ge=0,
        description="Max individual usage locations listed before summarizing.",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
