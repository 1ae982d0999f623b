"""File watcher feeding save events to the background indexer.

watchfiles watches the workspace recursively; excluded directories and
non-source files are filtered before a change is forwarded. Debouncing is
the indexer's job, so every relevant change is forwarded as it arrives.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from tarus.index._internal.discovery import is_indexable
from tarus.index._internal.parsing import get_pack_for_path

logger = structlog.get_logger()


@dataclass
class FileWatcher:
    """
    Async watcher delivering ``(path, language)`` save events.

    ``in_scope`` decides whether a workspace-relative path belongs to the
    backend or frontend root; out-of-scope paths are dropped here.
    """

    workspace_root: Path
    on_change: Callable[[str, str], None]
    in_scope: Callable[[str], bool] = lambda _path: True

    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        self.workspace_root = self.workspace_root.resolve()

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return
        self._stop_event.clear()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info("file_watcher_started", workspace_root=str(self.workspace_root))

    async def stop(self) -> None:
        """Stop watching for file changes."""
        self._stop_event.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None
        logger.info("file_watcher_stopped")

    def _watch_filter(self, _change: Change, path: str) -> bool:
        rel = self._relative(path)
        return rel is not None and is_indexable(rel)

    def _relative(self, path: str) -> str | None:
        try:
            return Path(path).relative_to(self.workspace_root).as_posix()
        except ValueError:
            return None

    async def _watch_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    async for changes in awatch(
                        self.workspace_root,
                        watch_filter=self._watch_filter,
                        stop_event=self._stop_event,
                        ignore_permission_denied=True,
                    ):
                        self.handle_changes(changes)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if self._stop_event.is_set():
                        return
                    logger.error("watcher_error", error=str(e))
                    # Brief backoff before retry
                    await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            pass

    def handle_changes(self, changes: set[tuple[Change, str]]) -> list[str]:
        """Forward every relevant change. Returns the forwarded paths, sorted.

        Deletions are forwarded too: rescanning a missing file removes what
        it owned.
        """
        forwarded: list[str] = []
        for _change_type, path_str in sorted(changes, key=lambda c: c[1]):
            rel = self._relative(path_str)
            if rel is None or not is_indexable(rel) or not self.in_scope(rel):
                logger.debug("path_ignored", path=path_str)
                continue
            if rel not in forwarded:
                forwarded.append(rel)
        for rel in forwarded:
            pack = get_pack_for_path(rel)
            self.on_change(rel, pack.name if pack else "")
        if forwarded:
            logger.info("changes_detected", count=len(forwarded))
        return forwarded
