"""Config module exports."""

from tarus.config.loader import get_workspace_dir, load_config
from tarus.config.models import (
    IndexerConfig,
    LoggingConfig,
    LogOutputConfig,
    MappingRuleSpec,
    TarusConfig,
)

__all__ = [
    "load_config",
    "get_workspace_dir",
    "TarusConfig",
    "IndexerConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "MappingRuleSpec",
]
