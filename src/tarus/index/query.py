"""Read-only query engine over the registry and the usage index."""

from __future__ import annotations

from dataclasses import dataclass

from tarus.index.models import (
    Behavior,
    Classification,
    Diagnostic,
    Location,
    RegistryEntry,
    SymbolKind,
    Usage,
)
from tarus.index.registry import SymbolRegistry, UsageIndex


@dataclass(frozen=True)
class SymbolRef:
    """The symbol found under a cursor."""

    language: str
    kind: SymbolKind
    name: str
    usage: Usage


class QueryEngine:
    """Answers counterpart, usage and classification queries.

    Holds references to the live registry and usage index; never mutates them.
    """

    def __init__(self, registry: SymbolRegistry, usages: UsageIndex):
        self._registry = registry
        self._usages = usages

    def definition_of(self, language: str, kind: SymbolKind, name: str) -> Location | None:
        """Counterpart location of the ``(language, kind, name)`` entry, if resolved."""
        return self._registry.get_counterpart(language, kind, name)

    def entry(self, language: str, kind: SymbolKind, name: str) -> RegistryEntry | None:
        return self._registry.get_entry(language, kind, name)

    def usages_of(self, kind: SymbolKind, name: str) -> list[Usage]:
        """Every call/emit/listen site of a symbol. Declarations are excluded."""
        return [u for u in self._usages.get(kind, name) if u.behavior != Behavior.DEFINITION]

    def occurrences_of(self, kind: SymbolKind, name: str) -> list[Usage]:
        """Declarations and usages together."""
        return self._usages.get(kind, name)

    def classify(self, kind: SymbolKind, name: str) -> Classification:
        behaviors = {u.behavior for u in self._usages.get(kind, name)}
        if not behaviors:
            return Classification.UNKNOWN

        if kind == SymbolKind.COMMAND:
            defined = Behavior.DEFINITION in behaviors
            called = Behavior.CALL in behaviors
            if defined and not called:
                return Classification.UNUSED_DECLARATION
            if called and not defined:
                return Classification.UNDEFINED_REFERENCE
            return Classification.OK

        emitted = Behavior.EMIT in behaviors
        listened = Behavior.LISTEN in behaviors
        if emitted and not listened:
            return Classification.UNPAIRED_EMISSION
        if listened and not emitted:
            return Classification.UNPAIRED_SUBSCRIPTION
        return Classification.OK

    def diagnostics(self) -> list[Diagnostic]:
        """Every known symbol whose classification is not ``ok``, sorted by kind and name."""
        out: list[Diagnostic] = []
        for kind, name in self._usages.keys():
            classification = self.classify(kind, name)
            if classification in (Classification.OK, Classification.UNKNOWN):
                continue
            locations = tuple(u.location for u in self._usages.get(kind, name))
            out.append(Diagnostic(kind, name, classification, locations))
        return out

    def symbol_at(self, path: str, offset: int) -> SymbolRef | None:
        """Reverse lookup: the symbol whose name text covers ``offset`` in ``path``."""
        for kind, name, usage in self._usages.all():
            loc = usage.location
            if loc.path == path and loc.contains(offset):
                return SymbolRef(usage.language, kind, name, usage)
        return None
