"""GrammarPack: single source of truth for per-grammar tree-sitter config.

Every grammar Tarus reads has exactly ONE GrammarPack that consolidates:
- Grammar install metadata (package, module, loader function)
- File extension detection
- Side (backend declares, frontend consumes)
- Declaration, call-site and import-alias queries
- Which argument carries the symbol name for frontend functions

The generic matcher is driven entirely by these tables; there is no
per-grammar extraction code. The PACKS registry is the canonical lookup:
``PACKS["rust"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Literal

Side = Literal["backend", "frontend"]


@dataclass(frozen=True)
class GrammarPack:
    """Complete tree-sitter configuration for a single grammar."""

    # -- Identity --
    name: str  # Language id used as the registry key ("rust", "tsx", ...)
    side: Side

    # -- Grammar install --
    grammar_package: str  # PyPI package ("tree-sitter-rust")
    grammar_module: str  # Python import ("tree_sitter_rust")
    # Non-standard function name (e.g. "language_typescript", "language_tsx")
    language_func: str | None = None

    # -- File detection --
    extensions: frozenset[str] = field(default_factory=frozenset)

    # -- Queries --
    # Captures: @attr (attribute node), @item (enclosing attribute item)
    declaration_query: str = ""
    # Captures: @call, @func, @args and optionally @type_args
    call_query: str = ""
    # Captures: @imported, @local
    alias_query: str = ""

    # -- Argument positions (1-based) for frontend functions; default 1 --
    arg_positions: dict[str, int] = field(default_factory=dict)

    # Node types that count as a plain string literal argument
    string_types: frozenset[str] = frozenset({"string"})
    # Nodes skipped when counting positional arguments
    comment_types: frozenset[str] = frozenset({"comment"})

    # Vue SFC: only <script> blocks are parsed, with this pack's grammar
    embedded_script: bool = False

    @property
    def is_backend(self) -> bool:
        return self.side == "backend"


# =========================================================================
# RUST (backend)
# =========================================================================

_RUST_DECLARATIONS = """
(attribute_item (attribute) @attr) @item
"""

# receiver.method(..), receiver.method::<T>(..), function(..), function::<T>(..)
_RUST_CALLS = """
(call_expression
  function: [
    (field_expression field: (field_identifier) @func)
    (generic_function function: (field_expression field: (field_identifier) @func))
    (identifier) @func
    (generic_function function: (identifier) @func)
  ]
  arguments: (arguments) @args) @call
"""

RUST_PACK = GrammarPack(
    name="rust",
    side="backend",
    grammar_package="tree-sitter-rust",
    grammar_module="tree_sitter_rust",
    extensions=frozenset({"rs"}),
    declaration_query=_RUST_DECLARATIONS,
    call_query=_RUST_CALLS,
    string_types=frozenset({"string_literal", "raw_string_literal"}),
    comment_types=frozenset({"line_comment", "block_comment"}),
)


# =========================================================================
# TYPESCRIPT / JAVASCRIPT (frontend)
# =========================================================================

# The generic pattern comes first; the plain pattern also matches generic
# calls and the matcher keeps the generic hit for a shared span.
_TS_CALLS = """
(call_expression
  function: [
    (identifier) @func
    (member_expression property: (property_identifier) @func)
  ]
  type_arguments: (type_arguments) @type_args
  arguments: (arguments) @args) @call

(call_expression
  function: [
    (identifier) @func
    (member_expression property: (property_identifier) @func)
  ]
  arguments: (arguments) @args) @call
"""

_JS_CALLS = """
(call_expression
  function: [
    (identifier) @func
    (member_expression property: (property_identifier) @func)
  ]
  arguments: (arguments) @args) @call
"""

# import { invoke as call } from "..."  /  const { invoke: call } = ...
_JS_ALIASES = """
(import_specifier
  name: (identifier) @imported
  alias: (identifier) @local)

(variable_declarator
  name: (object_pattern
    (pair_pattern
      key: (property_identifier) @imported
      value: (identifier) @local)))
"""

# emitTo(target, event, payload)
_FRONTEND_ARG_POSITIONS: dict[str, int] = {"emitTo": 2}

_FRONTEND_STRINGS = frozenset({"string", "template_string"})

TYPESCRIPT_PACK = GrammarPack(
    name="typescript",
    side="frontend",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_typescript",
    extensions=frozenset({"ts", "mts", "cts"}),
    call_query=_TS_CALLS,
    alias_query=_JS_ALIASES,
    arg_positions=_FRONTEND_ARG_POSITIONS,
    string_types=_FRONTEND_STRINGS,
)

TSX_PACK = GrammarPack(
    name="tsx",
    side="frontend",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_tsx",
    extensions=frozenset({"tsx"}),
    call_query=_TS_CALLS,
    alias_query=_JS_ALIASES,
    arg_positions=_FRONTEND_ARG_POSITIONS,
    string_types=_FRONTEND_STRINGS,
)

JAVASCRIPT_PACK = GrammarPack(
    name="javascript",
    side="frontend",
    grammar_package="tree-sitter-javascript",
    grammar_module="tree_sitter_javascript",
    extensions=frozenset({"js", "jsx", "mjs", "cjs"}),
    call_query=_JS_CALLS,
    alias_query=_JS_ALIASES,
    arg_positions=_FRONTEND_ARG_POSITIONS,
    string_types=_FRONTEND_STRINGS,
)

VUE_PACK = GrammarPack(
    name="vue",
    side="frontend",
    grammar_package="tree-sitter-typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_typescript",
    extensions=frozenset({"vue"}),
    call_query=_TS_CALLS,
    alias_query=_JS_ALIASES,
    arg_positions=_FRONTEND_ARG_POSITIONS,
    string_types=_FRONTEND_STRINGS,
    embedded_script=True,
)


# =========================================================================
# Registry
# =========================================================================

_ALL_PACKS: tuple[GrammarPack, ...] = (
    RUST_PACK,
    TYPESCRIPT_PACK,
    TSX_PACK,
    JAVASCRIPT_PACK,
    VUE_PACK,
)

PACKS: dict[str, GrammarPack] = {pack.name: pack for pack in _ALL_PACKS}

_EXT_TO_PACK: dict[str, GrammarPack] = {}
for _pack in _ALL_PACKS:
    for _ext in _pack.extensions:
        _EXT_TO_PACK[_ext] = _pack


def get_pack_for_ext(ext: str) -> GrammarPack | None:
    """Get a GrammarPack for a file extension (without leading dot)."""
    return _EXT_TO_PACK.get(ext.lower().lstrip("."))


def get_pack_for_path(path: str) -> GrammarPack | None:
    return get_pack_for_ext(PurePosixPath(path).suffix)


def side_of(language: str) -> Side | None:
    pack = PACKS.get(language)
    return pack.side if pack else None
