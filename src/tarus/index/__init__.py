"""Cross-language symbol index: matchers, mapping table, registry and queries."""

from tarus.index.mapping import BUILTIN_RULES, MappingRule, MappingTable
from tarus.index.models import (
    Behavior,
    Classification,
    Counterpart,
    Diagnostic,
    Fact,
    FactRole,
    Location,
    RegistryEntry,
    SymbolKind,
    Usage,
)
from tarus.index.ops import IndexCoordinator, IndexStats, LocalWorkspace, WorkspacePort
from tarus.index.query import QueryEngine, SymbolRef
from tarus.index.registry import SymbolRegistry, UsageIndex

__all__ = [
    # Models
    "Behavior",
    "Classification",
    "Counterpart",
    "Diagnostic",
    "Fact",
    "FactRole",
    "Location",
    "RegistryEntry",
    "SymbolKind",
    "Usage",
    # Mapping
    "BUILTIN_RULES",
    "MappingRule",
    "MappingTable",
    # Registry / queries
    "SymbolRegistry",
    "UsageIndex",
    "QueryEngine",
    "SymbolRef",
    # Orchestration
    "IndexCoordinator",
    "IndexStats",
    "LocalWorkspace",
    "WorkspacePort",
]
