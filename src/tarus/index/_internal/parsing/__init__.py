"""Grammar packs and tree-sitter parsing."""

from tarus.index._internal.parsing.packs import (
    PACKS,
    GrammarPack,
    get_pack_for_ext,
    get_pack_for_path,
    side_of,
)
from tarus.index._internal.parsing.treesitter import (
    ParseResult,
    SourceUnit,
    TreeSitterParser,
    split_source,
)

__all__ = [
    "PACKS",
    "GrammarPack",
    "get_pack_for_ext",
    "get_pack_for_path",
    "side_of",
    "ParseResult",
    "SourceUnit",
    "TreeSitterParser",
    "split_source",
]
