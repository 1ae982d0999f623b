"""Tarus daemon - background indexing with file watching."""

from tarus.daemon.app import TarusApp
from tarus.daemon.indexer import BackgroundIndexer, IndexerState, MonotonicClock
from tarus.daemon.watcher import FileWatcher

__all__ = [
    "BackgroundIndexer",
    "IndexerState",
    "MonotonicClock",
    "FileWatcher",
    "TarusApp",
]
