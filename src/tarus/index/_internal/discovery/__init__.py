"""Source file discovery."""

from tarus.index._internal.discovery.scanner import is_indexable, walk_sources

__all__ = ["is_indexable", "walk_sources"]
