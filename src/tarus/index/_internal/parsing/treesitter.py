"""Tree-sitter parsing for the symbol matchers.

This module provides:
- Grammar loading from GrammarPack metadata (cached per grammar)
- Parsing of whole files, or of the <script> blocks of a Vue SFC
- Query compilation (cached) and match execution
"""

from __future__ import annotations

import importlib
import re
from dataclasses import dataclass, field
from typing import Any

import tree_sitter
from tree_sitter import Query as _TSQuery
from tree_sitter import QueryCursor as _TSQueryCursor

from tarus.core.errors import ParseError
from tarus.index._internal.parsing.packs import GrammarPack

_SCRIPT_BLOCK = re.compile(rb"<script\b[^>]*>(.*?)</script\s*>", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class SourceUnit:
    """A span of a file handed to one grammar.

    ``base_offset`` is the byte offset of ``content`` inside the file; it is
    zero except for embedded script blocks.
    """

    content: bytes
    base_offset: int = 0


@dataclass
class ParseResult:
    """Result of parsing one SourceUnit."""

    tree: Any  # Tree-sitter Tree (not serializable)
    pack: GrammarPack
    unit: SourceUnit

    @property
    def root_node(self) -> Any:
        return self.tree.root_node


def split_source(pack: GrammarPack, source: bytes) -> list[SourceUnit]:
    """Units to parse for a file: the whole file, or each <script> block."""
    if not pack.embedded_script:
        return [SourceUnit(source)]
    return [
        SourceUnit(match.group(1), match.start(1)) for match in _SCRIPT_BLOCK.finditer(source)
    ]


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser keyed by GrammarPack.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse(RUST_PACK, SourceUnit(b"fn main() {}"))
        for match in parser.run_query(RUST_PACK, RUST_PACK.call_query, result.root_node):
            ...
    """

    _parsers: dict[str, Any] = field(default_factory=dict, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)
    _queries: dict[tuple[str, str], Any] = field(default_factory=dict, repr=False)

    def _language_key(self, pack: GrammarPack) -> str:
        return f"{pack.grammar_module}:{pack.language_func or 'language'}"

    def _get_language(self, pack: GrammarPack) -> Any:
        """Get or load the tree-sitter Language for a pack."""
        key = self._language_key(pack)
        if key in self._languages:
            return self._languages[key]

        try:
            mod = importlib.import_module(pack.grammar_module)
            lang_fn = getattr(mod, pack.language_func or "language")
            lang = tree_sitter.Language(lang_fn())
        except (ImportError, AttributeError) as err:
            raise ParseError.grammar_unavailable(pack.grammar_package, str(err)) from err

        self._languages[key] = lang
        return lang

    def _get_parser(self, pack: GrammarPack) -> Any:
        key = self._language_key(pack)
        if key not in self._parsers:
            self._parsers[key] = tree_sitter.Parser(self._get_language(pack))
        return self._parsers[key]

    def parse(self, pack: GrammarPack, unit: SourceUnit) -> ParseResult:
        """Parse one unit. Syntax errors are tolerated; tree-sitter recovers."""
        tree = self._get_parser(pack).parse(unit.content)
        return ParseResult(tree=tree, pack=pack, unit=unit)

    def _get_query(self, pack: GrammarPack, query_string: str) -> Any:
        """Compile and cache a query."""
        key = (self._language_key(pack), query_string)
        if key not in self._queries:
            self._queries[key] = _TSQuery(self._get_language(pack), query_string)
        return self._queries[key]

    def run_query(self, pack: GrammarPack, query_string: str, node: Any) -> list[dict[str, Any]]:
        """Execute a query and return captures grouped by match."""
        if not query_string.strip():
            return []

        cursor = _TSQueryCursor(self._get_query(pack, query_string))
        # matches() returns list of (pattern_index, captures_dict) tuples
        results: list[dict[str, Any]] = []
        for _pattern_idx, captures_dict in cursor.matches(node):
            # captures_dict is dict[str, list[Node]] - flatten to single nodes
            match = {name: nodes[0] for name, nodes in captures_dict.items() if nodes}
            if match:
                results.append(match)
        return results
