"""Source file discovery under the backend and frontend roots."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from tarus.config.constants import (
    EXCLUDED_DIRS,
    EXCLUDED_FILE_NAMES,
    EXCLUDED_SUFFIXES,
    SOURCE_EXTENSIONS,
)


def is_indexable(path: str | Path, extensions: Iterable[str] = SOURCE_EXTENSIONS) -> bool:
    """True for source files the matchers accept and the excludes do not drop."""
    p = Path(path)
    name = p.name
    if name in EXCLUDED_FILE_NAMES or name.endswith(EXCLUDED_SUFFIXES):
        return False
    if any(part in EXCLUDED_DIRS for part in p.parts[:-1]):
        return False
    return p.suffix.lower() in tuple(extensions)


def walk_sources(root: Path, extensions: Iterable[str] = SOURCE_EXTENSIONS) -> list[Path]:
    """Walk ``root``, pruning excluded directories. Returns sorted absolute paths."""
    exts = tuple(extensions)
    results: list[Path] = []
    if not root.is_dir():
        return results
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIRS]
        for filename in filenames:
            path = Path(dirpath) / filename
            if is_indexable(path.relative_to(root), exts):
                results.append(path)
    return sorted(results)
