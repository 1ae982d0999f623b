"""Application shell: wires the index, the background indexer and the watcher.

TarusApp is the outward command surface. Presentation layers (CLI, an editor
extension) call it and subscribe to results-changed notifications; they never
touch the registry directly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from tarus.config.models import TarusConfig
from tarus.core.errors import MalformedMappingRule
from tarus.daemon.indexer import BackgroundIndexer, Clock, IndexerState, MonotonicClock
from tarus.daemon.watcher import FileWatcher
from tarus.index.models import Classification, Diagnostic, Location, SymbolKind, Usage
from tarus.index.ops import IndexCoordinator, IndexStats, LocalWorkspace, WorkspacePort
from tarus.index.query import QueryEngine

logger = structlog.get_logger()

ResultsListener = Callable[[IndexStats], Awaitable[None]]


@dataclass
class TarusApp:
    """
    Orchestrates Tarus components.

    Components:
    - IndexCoordinator: matchers, registry and usage index
    - BackgroundIndexer: debounced scan scheduling
    - FileWatcher: save events (only while serving)
    """

    workspace_root: Path
    config: TarusConfig = field(default_factory=TarusConfig)
    workspace: WorkspacePort | None = None
    clock: Clock = field(default_factory=MonotonicClock)

    coordinator: IndexCoordinator = field(init=False)
    indexer: BackgroundIndexer = field(init=False)
    watcher: FileWatcher | None = field(default=None, init=False)
    _listeners: list[ResultsListener] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        """Initialize components."""
        self.workspace_root = self.workspace_root.resolve()
        if self.workspace is None:
            self.workspace = LocalWorkspace(self.workspace_root)
        self.coordinator = IndexCoordinator(self.workspace, self.config)
        self.indexer = BackgroundIndexer(
            coordinator=self.coordinator,
            debounce_sec=self.config.indexer.debounce_sec,
            initial_debounce_sec=self.config.indexer.initial_debounce_sec,
            clock=self.clock,
        )
        self.indexer.set_on_complete(self._results_changed)

    @property
    def query(self) -> QueryEngine:
        return self.coordinator.query

    @property
    def mapping_warnings(self) -> list[MalformedMappingRule]:
        return list(self.coordinator.table.warnings)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def on_results_changed(self, listener: ResultsListener) -> None:
        """Register a callback fired after every completed scan."""
        self._listeners.append(listener)

    async def _results_changed(self, stats: IndexStats) -> None:
        for listener in list(self._listeners):
            await listener(stats)

    def on_file_saved(self, path: str, language_id: str = "") -> None:
        """Host save event. Debounced; the scan runs when the window elapses."""
        logger.debug("file_saved", path=path, language=language_id)
        self.indexer.trigger(path)

    # -------------------------------------------------------------------------
    # Command surface
    # -------------------------------------------------------------------------

    async def rescan(self) -> IndexStats:
        """Full rescan, run now rather than after the debounce window.

        A scan already in flight is awaited first; the full scan deferred
        behind it is then run and its stats returned.
        """
        self.indexer.trigger()
        await self.indexer.wait_for_scan()
        while self.indexer.state == IndexerState.SCHEDULED:
            stats = await self.indexer.flush()
            if stats is not None:
                return stats
            await self.indexer.wait_for_scan()
        # Stopped, failed, or the background loop already ran the full scan.
        last = self.indexer.status.last_stats
        return last if last is not None else IndexStats(full=True)

    def go_to_location(self, path: str, offset: int) -> Location | None:
        """Counterpart of the symbol under ``offset`` in ``path``, if any."""
        ref = self.query.symbol_at(self.coordinator.relative_path(path), offset)
        if ref is None:
            return None
        return self.query.definition_of(ref.language, ref.kind, ref.name)

    def counterpart_of(self, language: str, kind: SymbolKind | str, name: str) -> Location | None:
        return self.query.definition_of(language, SymbolKind(kind), name)

    def usages_of(self, kind: SymbolKind | str, name: str) -> list[Usage]:
        return self.query.usages_of(SymbolKind(kind), name)

    def classify(self, kind: SymbolKind | str, name: str) -> Classification:
        return self.query.classify(SymbolKind(kind), name)

    def diagnostics(self) -> list[Diagnostic]:
        return self.query.diagnostics()

    def absolute(self, location: Location) -> Path:
        return self.workspace_root / location.path

    # -------------------------------------------------------------------------
    # Serving
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the indexer (with its post-startup scan) and the watcher."""
        logger.info("tarus_starting", workspace_root=str(self.workspace_root))
        self.indexer.start(initial_scan=True)
        self.watcher = FileWatcher(
            workspace_root=self.workspace_root,
            on_change=self.on_file_saved,
            in_scope=self.coordinator.in_scope,
        )
        await self.watcher.start()

    async def stop(self) -> None:
        """Stop the watcher first (no new events), then the indexer."""
        if self.watcher is not None:
            await self.watcher.stop()
            self.watcher = None
        await self.indexer.stop()
        logger.info("tarus_stopped")

    async def serve_forever(self, stop_event: asyncio.Event) -> None:
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()
