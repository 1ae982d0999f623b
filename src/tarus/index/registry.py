"""Symbol registry: bidirectional pairing store plus the usage index.

Entries are keyed by ``(language, kind, name)``. Each entry owns the
occurrence of its key that comes first in scan order and a live counterpart
pointer to the paired occurrence on the other side. Other occurrences of the
same key are kept as ``duplicates`` rather than overwriting it.

Counterpart pointers are filled two ways:

- ``register_pair`` copies the counterpart's location in immediately when
  the other side is already known.
- ``update_location`` fills the pointers of entries on the other side when
  a new occurrence appears (the lazy cross-link).

Pointers into a rescanned file are NOT refreshed implicitly; the
coordinator calls ``refresh_counterparts_into`` after rescanning it.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from tarus.config.constants import BACKEND_LANGUAGES, GENERIC_FRONTEND_LANGUAGE
from tarus.core.errors import InternalError
from tarus.index.models import (
    Counterpart,
    Location,
    RegistryEntry,
    SymbolKind,
    Usage,
)

log = structlog.get_logger(__name__)

RegistryKey = tuple[str, SymbolKind, str]


def is_backend_language(language: str) -> bool:
    return language in BACKEND_LANGUAGES


def _scan_order(location: Location) -> tuple[str, int]:
    # Every occurrence of one key shares a language, so path and offset
    # reproduce the order a full scan visits them in.
    return (location.path, location.offset)


def _usage_order(usage: Usage) -> tuple[int, str, int]:
    # Backend files are scanned before frontend files.
    side = 0 if is_backend_language(usage.language) else 1
    return (side, usage.location.path, usage.location.offset)


class SymbolRegistry:
    """In-memory index of all known symbol pairs. Mutated only while scanning."""

    def __init__(self) -> None:
        self._entries: dict[RegistryKey, RegistryEntry] = {}
        self._languages: set[str] = set()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def register_pair(
        self,
        name: str,
        kind: SymbolKind,
        location: Location,
        source_language: str,
        counterpart_language: str,
    ) -> RegistryEntry:
        """Insert the entry for ``(source_language, kind, name)``.

        If the key already exists, the occurrence that comes first in scan
        order (path, then offset) owns the entry and the other is recorded as
        a duplicate, so a rescan of an unchanged file restores what a full
        scan would have kept. Returns the entry owning the key.
        """
        if counterpart_language == source_language and kind != SymbolKind.EVENT:
            raise InternalError.unexpected(
                "same-language pairing is only allowed for events",
                name=name,
                kind=kind.value,
                language=source_language,
            )

        key = (source_language, kind, name)
        existing = self._entries.get(key)
        if existing is not None:
            if location == existing.location or location in existing.duplicates:
                return existing
            if _scan_order(location) < _scan_order(existing.location):
                demoted = existing.location
                existing.location = location
                self._repoint(existing, demoted)
            else:
                demoted = location
            existing.duplicates.append(demoted)
            existing.duplicates.sort(key=_scan_order)
            log.debug(
                "duplicate_symbol",
                language=source_language,
                kind=kind.value,
                name=name,
                kept=f"{existing.location.path}:{existing.location.offset}",
                duplicate=f"{demoted.path}:{demoted.offset}",
            )
            return existing

        counterpart = Counterpart(counterpart_language, kind, name)
        other = self._entries.get((counterpart_language, kind, name))
        if other is not None:
            counterpart.location = other.location

        entry = RegistryEntry(name, kind, source_language, location, counterpart)
        self._entries[key] = entry
        self._languages.add(source_language)
        return entry

    def update_location(
        self, name: str, kind: SymbolKind, language: str, location: Location
    ) -> int:
        """Point unresolved entries on the other side at ``location``.

        An entry whose counterpart targets ``language`` (or the generic
        frontend placeholder, for a frontend ``language``) and is still
        unresolved gets ``location``. Returns the number of entries updated.
        """
        updated = 0
        for other_language in self._opposite_languages(language):
            entry = self._entries.get((other_language, kind, name))
            if entry is None:
                continue
            cp = entry.counterpart
            if cp.language == GENERIC_FRONTEND_LANGUAGE and not is_backend_language(language):
                cp.language = language
                cp.location = location
                updated += 1
            elif cp.language == language and cp.location is None:
                cp.location = location
                updated += 1
        return updated

    def counterpart_language_for(self, language: str, kind: SymbolKind, name: str) -> str:
        """Target language for a new entry's counterpart.

        Frontend entries pair with the backend. Backend entries pair with the
        first frontend language (sorted) that knows the key, or with the
        generic placeholder until one appears.
        """
        if not is_backend_language(language):
            return sorted(BACKEND_LANGUAGES)[0]
        for other in self._opposite_languages(language):
            if (other, kind, name) in self._entries:
                return other
        return GENERIC_FRONTEND_LANGUAGE

    def clear(self) -> None:
        self._entries.clear()
        self._languages.clear()

    def clear_for_file(self, path: str) -> int:
        """Remove every occurrence owned by ``path``, in every language bucket.

        An entry whose primary location is in ``path`` but which has a
        duplicate elsewhere is kept, with the first surviving duplicate
        promoted. Returns the number of entries removed.
        """
        removed = 0
        for key in list(self._entries):
            entry = self._entries[key]
            entry.duplicates = [loc for loc in entry.duplicates if loc.path != path]
            if entry.location.path != path:
                continue
            if entry.duplicates:
                entry.location = entry.duplicates.pop(0)
                continue
            del self._entries[key]
            removed += 1
        self._languages = {language for language, _, _ in self._entries}
        return removed

    def _repoint(self, entry: RegistryEntry, previous: Location) -> None:
        """Move pointers still aimed at ``previous`` to the primary of ``entry``."""
        for language in self._languages:
            other = self._entries.get((language, entry.kind, entry.name))
            if other is not None and other.counterpart.location == previous:
                other.counterpart.location = entry.location

    def refresh_counterparts_into(self, path: str) -> int:
        """Re-resolve every counterpart pointer that points into ``path``.

        Offsets in a rescanned file may have shifted; pointers are re-read
        from the current entries, or marked unresolved if the target is gone.
        Returns the number of pointers touched.
        """
        touched = 0
        for entry in self._entries.values():
            cp = entry.counterpart
            if cp.location is None or cp.location.path != path:
                continue
            target = self._entries.get((cp.language, cp.kind, cp.name))
            if target is None and is_backend_language(entry.language):
                cp.language = self.counterpart_language_for(entry.language, entry.kind, entry.name)
                target = self._entries.get((cp.language, cp.kind, cp.name))
            cp.location = target.location if target is not None else None
            touched += 1
        return touched

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_entry(self, language: str, kind: SymbolKind, name: str) -> RegistryEntry | None:
        return self._entries.get((language, kind, name))

    def get_counterpart(self, language: str, kind: SymbolKind, name: str) -> Location | None:
        entry = self._entries.get((language, kind, name))
        return entry.counterpart.location if entry is not None else None

    def entries(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries.values()))

    def duplicates(self) -> list[RegistryEntry]:
        """Entries whose key was registered from more than one location."""
        return [e for e in self._entries.values() if e.duplicates]

    def languages(self) -> list[str]:
        return sorted(self._languages)

    def _opposite_languages(self, language: str) -> list[str]:
        backend = is_backend_language(language)
        return sorted(lang for lang in self._languages if is_backend_language(lang) != backend)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # -------------------------------------------------------------------------
    # Debug artifact
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, dict[str, list[dict[str, Any]]]]:
        """Per-language, per-kind arrays of entries, sorted for stable output."""
        out: dict[str, dict[str, list[dict[str, Any]]]] = {}
        for key in sorted(self._entries, key=lambda k: (k[0], k[1].value, k[2])):
            entry = self._entries[key]
            by_kind = out.setdefault(entry.language, {})
            by_kind.setdefault(entry.kind.value, []).append(entry.to_dict())
        return out

    def dump(self, path: Path) -> Path:
        """Write ``to_dict()`` as JSON. Not a stable contract."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n")
        return path


class UsageIndex:
    """``(kind, name) -> [Usage]``, independent of pairing direction."""

    def __init__(self) -> None:
        self._usages: dict[tuple[SymbolKind, str], list[Usage]] = {}

    def add(self, kind: SymbolKind, name: str, usage: Usage) -> None:
        bucket = self._usages.setdefault((kind, name), [])
        if usage not in bucket:
            bucket.append(usage)
            bucket.sort(key=_usage_order)

    def get(self, kind: SymbolKind, name: str) -> list[Usage]:
        return list(self._usages.get((kind, name), ()))

    def keys(self) -> list[tuple[SymbolKind, str]]:
        return sorted(self._usages, key=lambda k: (k[0].value, k[1]))

    def all(self) -> Iterator[tuple[SymbolKind, str, Usage]]:
        for (kind, name), usages in self._usages.items():
            for usage in usages:
                yield kind, name, usage

    def clear(self) -> None:
        self._usages.clear()

    def clear_for_file(self, path: str) -> int:
        removed = 0
        for key in list(self._usages):
            kept = [u for u in self._usages[key] if u.location.path != path]
            removed += len(self._usages[key]) - len(kept)
            if kept:
                self._usages[key] = kept
            else:
                del self._usages[key]
        return removed

    def __len__(self) -> int:
        return sum(len(v) for v in self._usages.values())
