"""Fact extraction."""

from tarus.index._internal.extraction.matcher import SymbolMatcher

__all__ = ["SymbolMatcher"]
