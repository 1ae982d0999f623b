"""Indexing orchestration: full scans and per-file incremental rescans.

Files are read through a WorkspacePort one at a time, matched, and their facts
fed to the registry and usage index. Every per-file failure is logged and
skipped; a scan never aborts because of one file.

Ordering: a full scan processes every backend file before any frontend file,
each group in sorted path order, so two scans over unchanged files produce
identical registries.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from tarus.config.constants import REGISTRY_DUMP_NAME, SOURCE_EXTENSIONS
from tarus.config.loader import get_workspace_dir
from tarus.config.models import TarusConfig
from tarus.core.errors import FileIoError, ParseError, TarusError
from tarus.core.logging import clear_scan_id, set_scan_id
from tarus.index._internal.discovery import is_indexable, walk_sources
from tarus.index._internal.extraction import SymbolMatcher
from tarus.index._internal.parsing import get_pack_for_path
from tarus.index.mapping import MappingTable
from tarus.index.models import Fact, FactRole, Usage
from tarus.index.query import QueryEngine
from tarus.index.registry import SymbolRegistry, UsageIndex

log = structlog.get_logger(__name__)


def _extensions_for(side: str) -> tuple[str, ...]:
    return tuple(
        ext
        for ext in SOURCE_EXTENSIONS
        if (pack := get_pack_for_path(f"x{ext}")) is not None and pack.side == side
    )


BACKEND_EXTENSIONS = _extensions_for("backend")
FRONTEND_EXTENSIONS = _extensions_for("frontend")


class WorkspacePort(Protocol):
    """Host collaborator supplying file listings and contents."""

    root: Path

    def list_files(self, root: str, extensions: Iterable[str]) -> list[str]:
        """Workspace-relative POSIX paths under ``root`` with the given extensions."""
        ...

    def read_file(self, path: str) -> str:
        """Contents of a workspace-relative path.

        Raises:
            FileIoError: Missing or unreadable file.
        """
        ...


class LocalWorkspace:
    """WorkspacePort over the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()

    def list_files(self, root: str, extensions: Iterable[str]) -> list[str]:
        return [
            path.relative_to(self.root).as_posix()
            for path in walk_sources(self.root / root, extensions)
        ]

    def read_file(self, path: str) -> str:
        full = self.root / path
        try:
            return full.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise FileIoError.not_found(path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise FileIoError.unreadable(path, str(e)) from e


@dataclass
class IndexStats:
    """Statistics from an indexing operation."""

    full: bool = False
    files_processed: int = 0
    files_skipped: int = 0
    files_removed: int = 0
    facts_indexed: int = 0
    entries: int = 0
    duration_seconds: float = 0.0

    def merge(self, other: IndexStats) -> IndexStats:
        return IndexStats(
            full=self.full or other.full,
            files_processed=self.files_processed + other.files_processed,
            files_skipped=self.files_skipped + other.files_skipped,
            files_removed=self.files_removed + other.files_removed,
            facts_indexed=self.facts_indexed + other.facts_indexed,
            entries=other.entries,
            duration_seconds=self.duration_seconds + other.duration_seconds,
        )


def _under(path: str, root: str) -> bool:
    root = root.strip("/")
    if root in ("", "."):
        return True
    return path == root or path.startswith(root + "/")


class IndexCoordinator:
    """
    Drives matchers over the workspace and feeds the registry.

    SERIALIZATION: callers (the BackgroundIndexer) guarantee one scan in
    flight; the registry and usage index are only mutated from here.

    Usage::

        coordinator = IndexCoordinator(LocalWorkspace(root), config)
        stats = await coordinator.full_scan()
        coordinator.query.classify(SymbolKind.COMMAND, "greet")

        # After a save
        stats = await coordinator.rescan_file("src/main.ts")
    """

    def __init__(
        self,
        workspace: WorkspacePort,
        config: TarusConfig | None = None,
        *,
        table: MappingTable | None = None,
        registry: SymbolRegistry | None = None,
        usages: UsageIndex | None = None,
        matcher: SymbolMatcher | None = None,
    ) -> None:
        self.workspace = workspace
        self.config = config or TarusConfig()
        self.table = table or MappingTable.load(self.config.mappings)
        self.registry = registry if registry is not None else SymbolRegistry()
        self.usages = usages if usages is not None else UsageIndex()
        self.matcher = matcher or SymbolMatcher(self.table)
        self.query = QueryEngine(self.registry, self.usages)

    # -------------------------------------------------------------------------
    # Scope
    # -------------------------------------------------------------------------

    def relative_path(self, path: str | Path) -> str:
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(self.workspace.root)
            except ValueError:
                return p.as_posix()
        return p.as_posix()

    def in_scope(self, path: str | Path) -> bool:
        """True if the file belongs to the backend or the frontend root."""
        rel = self.relative_path(path)
        pack = get_pack_for_path(rel)
        if pack is None or not is_indexable(rel):
            return False
        if pack.is_backend:
            return rel.endswith(BACKEND_EXTENSIONS) and _under(rel, self.config.backend_root)
        return rel.endswith(FRONTEND_EXTENSIONS) and _under(rel, self.config.frontend_root)

    # -------------------------------------------------------------------------
    # Scans
    # -------------------------------------------------------------------------

    async def full_scan(self) -> IndexStats:
        """Clear everything, then index all backend files, then all frontend files."""
        set_scan_id()
        start = time.monotonic()
        stats = IndexStats(full=True)
        try:
            self.registry.clear()
            self.usages.clear()

            backend = sorted(
                self.workspace.list_files(self.config.backend_root, BACKEND_EXTENSIONS)
            )
            frontend = sorted(
                self.workspace.list_files(self.config.frontend_root, FRONTEND_EXTENSIONS)
            )
            log.info("scan_started", backend_files=len(backend), frontend_files=len(frontend))

            for path in [*backend, *frontend]:
                await self._index_file(path, stats)

            stats.entries = len(self.registry)
            stats.duration_seconds = time.monotonic() - start
            self._write_dump()
            log.info(
                "scan_completed",
                files=stats.files_processed,
                skipped=stats.files_skipped,
                facts=stats.facts_indexed,
                entries=stats.entries,
                duration_ms=round(stats.duration_seconds * 1000, 1),
            )
            return stats
        finally:
            clear_scan_id()

    async def rescan_file(self, path: str | Path) -> IndexStats:
        """Incremental path: replace only what ``path`` owns.

        Entries from other files are untouched except for counterpart
        pointers into ``path``, which are re-resolved explicitly at the end.
        """
        rel = self.relative_path(path)
        stats = IndexStats()
        if not self.in_scope(rel):
            log.debug("file_ignored", path=rel)
            return stats

        set_scan_id()
        start = time.monotonic()
        try:
            self.registry.clear_for_file(rel)
            self.usages.clear_for_file(rel)
            await self._index_file(rel, stats)
            self.registry.refresh_counterparts_into(rel)

            stats.entries = len(self.registry)
            stats.duration_seconds = time.monotonic() - start
            self._write_dump()
            log.info(
                "rescan_completed",
                path=rel,
                facts=stats.facts_indexed,
                removed=stats.files_removed,
                duration_ms=round(stats.duration_seconds * 1000, 1),
            )
            return stats
        finally:
            clear_scan_id()

    async def rescan(self, paths: Iterable[str | Path] | None = None) -> IndexStats:
        """Full scan when ``paths`` is None, otherwise one incremental pass per path."""
        if paths is None:
            return await self.full_scan()
        total = IndexStats()
        for path in sorted({self.relative_path(p) for p in paths}):
            total = total.merge(await self.rescan_file(path))
        return total

    # -------------------------------------------------------------------------
    # Per-file work
    # -------------------------------------------------------------------------

    async def _index_file(self, path: str, stats: IndexStats) -> None:
        """Read, match and register one file. Failures are contained here."""
        pack = get_pack_for_path(path)
        if pack is None:
            err = ParseError.unsupported_file(path)
            stats.files_skipped += 1
            log.warning("file_skipped", path=path, error=err.error_name, reason=err.message)
            return
        try:
            source = await asyncio.to_thread(self.workspace.read_file, path)
            facts = list(self.matcher.iter_facts(path, source))
        except FileIoError as e:
            if e.is_missing:
                stats.files_removed += 1
                log.info("file_removed", path=path)
            else:
                stats.files_skipped += 1
                log.warning("file_skipped", path=path, error=e.error_name, reason=e.message)
            return
        except TarusError as e:
            stats.files_skipped += 1
            log.warning("file_skipped", path=path, error=e.error_name, reason=e.message)
            return
        except Exception as e:
            stats.files_skipped += 1
            log.error("file_failed", path=path, error=str(e), exc_info=True)
            return

        for fact in facts:
            self._apply_fact(path, pack.name, fact)
        stats.files_processed += 1
        stats.facts_indexed += len(facts)

    def _apply_fact(self, path: str, language: str, fact: Fact) -> None:
        location = fact.location(path)
        counterpart_language = self.registry.counterpart_language_for(
            language, fact.kind, fact.name
        )
        entry = self.registry.register_pair(
            fact.name, fact.kind, location, language, counterpart_language
        )
        if fact.role == FactRole.DECLARATION and entry.location != location:
            log.warning(
                "duplicate_declaration",
                kind=fact.kind.value,
                name=fact.name,
                kept=f"{entry.location.path}:{entry.location.line + 1}",
                duplicate=f"{path}:{location.line + 1}",
            )
        self.registry.update_location(fact.name, fact.kind, language, entry.location)
        self.usages.add(fact.kind, fact.name, Usage(location, language, fact.behavior))
        log.debug(
            "fact_extracted",
            path=path,
            kind=fact.kind.value,
            name=fact.name,
            behavior=fact.behavior.value,
            function=fact.function,
        )

    def _write_dump(self) -> None:
        if not self.config.developer_mode:
            return
        target = get_workspace_dir(self.workspace.root) / REGISTRY_DUMP_NAME
        try:
            self.registry.dump(target)
        except OSError as e:
            log.warning("registry_dump_failed", path=str(target), error=str(e))
        else:
            log.debug("registry_dumped", path=str(target))
