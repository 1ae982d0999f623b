"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides an in-memory workspace for orchestration tests.
"""

import logging
import os
import sys
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local tarus package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from tarus.core.errors import FileIoError  # noqa: E402
from tarus.index._internal.discovery import is_indexable  # noqa: E402


class MemoryWorkspace:
    """WorkspacePort backed by a dict of workspace-relative paths."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.root = Path("/workspace")
        self.files: dict[str, str] = dict(files or {})
        self.unreadable: set[str] = set()
        self.reads: list[str] = []

    def list_files(self, root: str, extensions: Iterable[str]) -> list[str]:
        prefix = root.strip("/")
        exts = tuple(extensions)
        return sorted(
            path
            for path in self.files
            if (prefix in ("", ".") or path.startswith(prefix + "/"))
            and path.endswith(exts)
            and is_indexable(path)
        )

    def read_file(self, path: str) -> str:
        self.reads.append(path)
        if path in self.unreadable:
            raise FileIoError.unreadable(path, "permission denied")
        if path not in self.files:
            raise FileIoError.not_found(path)
        return self.files[path]


@pytest.fixture
def make_workspace() -> Callable[..., MemoryWorkspace]:
    """Factory for in-memory workspaces: ``make_workspace({"src/a.ts": "..."})``."""

    def _make(files: dict[str, str] | None = None) -> MemoryWorkspace:
        return MemoryWorkspace(files)

    return _make


@pytest.fixture
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the user's global config and TARUS__ env vars out of config tests."""
    import tarus.config.loader as loader

    monkeypatch.setattr(loader, "GLOBAL_CONFIG_PATH", tmp_path / "global-config.yaml")
    for key in list(os.environ):
        if key.upper().startswith("TARUS__"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """CLI commands configure global logging; undo it after every test."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
