"""Value types shared by the matchers, the registry and the query engine.

Everything here is plain data. Locations are UTF-8 byte spans of the symbol
name text (inside the quotes for string literals, the identifier for
declarations); line/column are carried for presentation only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ============================================================================
# ENUMS
# ============================================================================


class SymbolKind(str, Enum):
    """Namespace of a symbol name. A command and an event may share a string."""

    COMMAND = "command"
    EVENT = "event"


class FactRole(str, Enum):
    DECLARATION = "declaration"
    CALL_SITE = "call_site"


class Behavior(str, Enum):
    """What an occurrence does with its symbol. Drives classification."""

    DEFINITION = "definition"
    CALL = "call"
    EMIT = "emit"
    LISTEN = "listen"


class Classification(str, Enum):
    OK = "ok"
    UNDEFINED_REFERENCE = "undefined-reference"
    UNUSED_DECLARATION = "unused-declaration"
    UNPAIRED_EMISSION = "unpaired-emission"
    UNPAIRED_SUBSCRIPTION = "unpaired-subscription"
    UNKNOWN = "unknown"


# ============================================================================
# LOCATIONS & FACTS
# ============================================================================


@dataclass(frozen=True)
class Location:
    """Byte span of a symbol name inside one file."""

    path: str
    offset: int
    length: int
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    @property
    def end(self) -> int:
        return self.offset + self.length

    def contains(self, offset: int) -> bool:
        """True if ``offset`` falls on the name text (end inclusive for cursors)."""
        return self.offset <= offset <= self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "offset": self.offset,
            "length": self.length,
            "line": self.line,
            "column": self.column,
        }


@dataclass(frozen=True)
class Fact:
    """One raw matcher hit, before it is attached to a file and language."""

    role: FactRole
    kind: SymbolKind
    behavior: Behavior
    name: str
    function: str  # Canonical function / attribute that produced the hit
    offset: int
    length: int
    line: int = 0
    column: int = 0

    def location(self, path: str) -> Location:
        return Location(path, self.offset, self.length, self.line, self.column)


# ============================================================================
# REGISTRY DATA
# ============================================================================


@dataclass
class Counterpart:
    """Live pointer from an entry to the paired occurrence on the other side."""

    language: str
    kind: SymbolKind
    name: str
    location: Location | None = None  # None = unresolved

    @property
    def is_resolved(self) -> bool:
        return self.location is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "kind": self.kind.value,
            "name": self.name,
            "location": self.location.to_dict() if self.location else None,
        }


@dataclass
class RegistryEntry:
    """The first occurrence of a (language, kind, name) key plus its counterpart."""

    name: str
    kind: SymbolKind
    language: str
    location: Location
    counterpart: Counterpart
    duplicates: list[Location] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, SymbolKind, str]:
        return (self.language, self.kind, self.name)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "location": self.location.to_dict(),
            "counterpart": self.counterpart.to_dict(),
        }
        if self.duplicates:
            data["duplicates"] = [loc.to_dict() for loc in self.duplicates]
        return data


@dataclass(frozen=True)
class Usage:
    """One occurrence recorded in the usage index."""

    location: Location
    language: str
    behavior: Behavior


@dataclass(frozen=True)
class Diagnostic:
    """A symbol whose classification is not ``ok``."""

    kind: SymbolKind
    name: str
    classification: Classification
    locations: tuple[Location, ...]

    @property
    def message(self) -> str:
        label = "Command" if self.kind == SymbolKind.COMMAND else "Event"
        return _MESSAGES[self.classification].format(label=label, name=self.name)


_MESSAGES = {
    Classification.UNUSED_DECLARATION: "{label} '{name}' is defined but never invoked",
    Classification.UNDEFINED_REFERENCE: "{label} '{name}' is not defined in the backend",
    Classification.UNPAIRED_EMISSION: "{label} '{name}' is emitted but has no listeners",
    Classification.UNPAIRED_SUBSCRIPTION: "{label} '{name}' is listened for but never emitted",
    Classification.OK: "{label} '{name}' is paired",
    Classification.UNKNOWN: "{label} '{name}' is not known",
}
