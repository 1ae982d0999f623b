"""Debounced background indexer.

State machine::

    IDLE --trigger--> SCHEDULED --deadline--> SCANNING --done--> IDLE
                        ^   |                     |
                        +---+ trigger             | trigger: deferred, re-scheduled
                          (restart countdown)     v          immediately after the scan

Any state --stop--> STOPPED.

Time comes from an injectable Clock so the machine can be driven
deterministically with ``poll()``; ``start()`` runs the same machine on a
real asyncio loop.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from tarus.index.ops import IndexCoordinator, IndexStats

logger = structlog.get_logger()


class Clock(Protocol):
    def now(self) -> float: ...


class MonotonicClock:
    """Wall clock for production use."""

    def now(self) -> float:
        return time.monotonic()


class IndexerState(Enum):
    """Background indexer state."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    SCANNING = "scanning"
    STOPPED = "stopped"


@dataclass
class IndexerStatus:
    """Current indexer status."""

    state: IndexerState
    pending_paths: int
    full_scan_pending: bool
    scans_completed: int
    last_stats: IndexStats | None = None
    last_error: str | None = None


@dataclass
class BackgroundIndexer:
    """
    Debounces triggers into scans, one scan in flight at a time.

    Design:
    - Every trigger restarts the countdown (last trigger wins)
    - Pending work is the union of triggered targets; a trigger without a
      path makes the next scan a full scan
    - Triggers during SCANNING are deferred, never dropped
    - The initial post-startup scan uses a longer window
    """

    coordinator: IndexCoordinator
    debounce_sec: float = 0.3
    initial_debounce_sec: float = 1.0
    clock: Clock = field(default_factory=MonotonicClock)

    _state: IndexerState = field(default=IndexerState.IDLE, init=False)
    _deadline: float | None = field(default=None, init=False)
    _pending_paths: set[str] = field(default_factory=set, init=False)
    _pending_full: bool = field(default=False, init=False)
    _deferred: bool = field(default=False, init=False)
    _scans_completed: int = field(default=0, init=False)
    _last_stats: IndexStats | None = field(default=None, init=False)
    _last_error: str | None = field(default=None, init=False)
    _on_complete: Callable[[IndexStats], Awaitable[None]] | None = field(default=None, init=False)
    _wake: asyncio.Event | None = field(default=None, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)
    _scan_done: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        self._scan_done.set()

    @property
    def state(self) -> IndexerState:
        return self._state

    def trigger(self, path: str | Path | None = None, *, initial: bool = False) -> None:
        """Request a scan of ``path`` (or a full scan) after the debounce window."""
        if self._state == IndexerState.STOPPED:
            return

        if path is None:
            self._pending_full = True
        else:
            self._pending_paths.add(self.coordinator.relative_path(path))

        if self._state == IndexerState.SCANNING:
            self._deferred = True
            logger.debug("trigger_deferred", path=str(path) if path else None)
            return

        window = self.initial_debounce_sec if initial else self.debounce_sec
        self._deadline = self.clock.now() + window
        self._state = IndexerState.SCHEDULED
        logger.debug("scan_scheduled", path=str(path) if path else None, window=window)
        self._notify()

    def time_until_due(self) -> float | None:
        """Seconds until the scheduled scan is due; None when nothing is scheduled."""
        if self._state != IndexerState.SCHEDULED or self._deadline is None:
            return None
        return max(0.0, self._deadline - self.clock.now())

    async def poll(self) -> IndexStats | None:
        """Run the scheduled scan if its deadline has passed."""
        remaining = self.time_until_due()
        if remaining is None or remaining > 0:
            return None
        return await self._run_scan()

    async def flush(self) -> IndexStats | None:
        """Run the scheduled scan now, ignoring the remaining window."""
        if self._state != IndexerState.SCHEDULED:
            return None
        return await self._run_scan()

    async def wait_for_scan(self) -> None:
        """Return once no scan is in flight, including its completion callback."""
        await self._scan_done.wait()

    async def _run_scan(self) -> IndexStats | None:
        self._scan_done.clear()
        try:
            return await self._scan_once()
        finally:
            self._scan_done.set()

    async def _scan_once(self) -> IndexStats | None:
        full = self._pending_full
        paths = sorted(self._pending_paths)
        self._pending_full = False
        self._pending_paths.clear()
        self._deadline = None
        self._state = IndexerState.SCANNING

        stats: IndexStats | None = None
        try:
            if full:
                stats = await self.coordinator.full_scan()
            else:
                stats = await self.coordinator.rescan(paths)
            self._last_stats = stats
            self._last_error = None
        except Exception as e:
            self._last_error = str(e)
            logger.error("scan_failed", error=str(e), full=full, paths=len(paths))
        finally:
            self._scans_completed += 1
            if self._state == IndexerState.SCANNING:
                self._state = IndexerState.IDLE

        if stats is not None and self._on_complete is not None:
            try:
                await self._on_complete(stats)
            except Exception as e:
                logger.error("on_complete_failed", error=str(e))

        if self._deferred and self._state == IndexerState.IDLE:
            self._deferred = False
            self._deadline = self.clock.now()
            self._state = IndexerState.SCHEDULED
            logger.debug("deferred_trigger_rescheduled")
            self._notify()

        return stats

    # -------------------------------------------------------------------------
    # Real-time loop
    # -------------------------------------------------------------------------

    def start(self, *, initial_scan: bool = True) -> None:
        """Start the asyncio loop; optionally schedule the post-startup full scan."""
        if self._task is not None:
            return
        self._wake = asyncio.Event()
        if self._state == IndexerState.STOPPED:
            self._state = IndexerState.IDLE
        if initial_scan:
            self.trigger(initial=True)
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "background_indexer_started",
            debounce_sec=self.debounce_sec,
            initial_debounce_sec=self.initial_debounce_sec,
        )

    async def stop(self) -> None:
        """Stop after any in-flight scan completes. Pending work is dropped."""
        self._state = IndexerState.STOPPED
        self._pending_paths.clear()
        self._pending_full = False
        self._deferred = False
        self._notify()
        if self._task is not None:
            await self._task
            self._task = None
        logger.info("background_indexer_stopped")

    async def _loop(self) -> None:
        assert self._wake is not None
        while self._state != IndexerState.STOPPED:
            delay = self.time_until_due()
            self._wake.clear()
            if delay is None:
                await self._wake.wait()
            elif delay > 0:
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
            else:
                await self.poll()

    def _notify(self) -> None:
        if self._wake is not None:
            self._wake.set()

    def set_on_complete(self, callback: Callable[[IndexStats], Awaitable[None]]) -> None:
        """Set the results-changed callback invoked after every scan."""
        self._on_complete = callback

    @property
    def status(self) -> IndexerStatus:
        """Get current indexer status."""
        return IndexerStatus(
            state=self._state,
            pending_paths=len(self._pending_paths),
            full_scan_pending=self._pending_full,
            scans_completed=self._scans_completed,
            last_stats=self._last_stats,
            last_error=self._last_error,
        )
