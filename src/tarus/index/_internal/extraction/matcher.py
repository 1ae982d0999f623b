"""Generic symbol matcher driven by GrammarPack query tables.

One algorithm serves every grammar:

- Declarations: an attribute whose path matches a command rule binds the
  name of the function item that follows it (further attributes and
  comments in between are skipped; anything else yields nothing).
- Call sites: the called function (method name, free function, or a
  frontend name after import-alias substitution) selects mapping rules; the
  argument at the rule's position must be a plain string literal.

Facts are yielded lazily; exact duplicates within one file are collapsed.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from typing import Any

from tarus.core.errors import ParseError
from tarus.index._internal.parsing.packs import GrammarPack, get_pack_for_path
from tarus.index._internal.parsing.treesitter import (
    ParseResult,
    TreeSitterParser,
    split_source,
)
from tarus.index.mapping import MappingTable
from tarus.index.models import Behavior, Fact, FactRole

# Nodes allowed between a declaration attribute and its function
_DECLARATION_GAP_TYPES = frozenset({"attribute_item", "line_comment", "block_comment"})
_STRING_PART_TYPES = frozenset({"string_content", "string_fragment", "escape_sequence"})
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def _line_col(source: bytes, offset: int) -> tuple[int, int]:
    line_start = source.rfind(b"\n", 0, offset) + 1
    return source.count(b"\n", 0, offset), offset - line_start


class SymbolMatcher:
    """Extracts command and event facts from one file at a time."""

    def __init__(self, table: MappingTable, parser: TreeSitterParser | None = None):
        self._table = table
        self._parser = parser or TreeSitterParser()

    @property
    def table(self) -> MappingTable:
        return self._table

    def iter_facts(self, path: str, source: bytes | str) -> Iterator[Fact]:
        """Yield every fact in ``source``, in document order.

        Raises:
            ParseError: No grammar is registered for the file, or the grammar
                package is not installed.
        """
        pack = get_pack_for_path(path)
        if pack is None:
            raise ParseError.unsupported_file(path)

        data = source.encode("utf-8") if isinstance(source, str) else source
        seen: set[Fact] = set()
        for unit in split_source(pack, data):
            result = self._parser.parse(pack, unit)
            facts = self._backend_facts(result) if pack.is_backend else self._frontend_facts(result)
            for fact in facts:
                offset = fact.offset + unit.base_offset
                line, column = _line_col(data, offset)
                placed = replace(fact, offset=offset, line=line, column=column)
                if placed in seen:
                    continue
                seen.add(placed)
                yield placed

    # -------------------------------------------------------------------------
    # Backend
    # -------------------------------------------------------------------------

    def _backend_facts(self, result: ParseResult) -> Iterator[Fact]:
        pack = result.pack
        found: list[Fact] = []

        for match in self._parser.run_query(pack, pack.declaration_query, result.root_node):
            attr, item = match.get("attr"), match.get("item")
            if attr is None or item is None or not attr.named_children:
                continue
            attr_path = _text(attr.named_children[0])
            rules = self._table.declaration_rules(attr_path)
            if not rules:
                continue
            name_node = _following_function_name(item)
            if name_node is None:
                continue
            for rule in rules:
                found.append(
                    Fact(
                        role=FactRole.DECLARATION,
                        kind=rule.kind,
                        behavior=Behavior.DEFINITION,
                        name=_text(name_node),
                        function=attr_path,
                        offset=name_node.start_byte,
                        length=name_node.end_byte - name_node.start_byte,
                    )
                )

        for match in self._sorted_calls(pack, result):
            func, args = match["func"], match["args"]
            function = _text(func)
            is_method = func.parent is not None and func.parent.type == "field_expression"
            for rule in self._table.backend_call_rules(function, is_method=is_method):
                literal = _string_argument(pack, args, rule.arg_index)
                if literal is None:
                    continue
                name, offset, length = literal
                found.append(
                    Fact(
                        role=FactRole.CALL_SITE,
                        kind=rule.kind,
                        behavior=rule.backend_behavior,
                        name=name,
                        function=function,
                        offset=offset,
                        length=length,
                    )
                )

        found.sort(key=lambda f: f.offset)
        yield from found

    # -------------------------------------------------------------------------
    # Frontend
    # -------------------------------------------------------------------------

    def _frontend_facts(self, result: ParseResult) -> Iterator[Fact]:
        pack = result.pack
        aliases = self._alias_table(result)

        for match in self._sorted_calls(pack, result):
            func, args = match["func"], match["args"]
            function = _text(func)
            if func.parent is None or func.parent.type != "member_expression":
                function = aliases.get(function, function)
            rules = self._table.resolve_by_frontend_function(function)
            if not rules:
                continue
            literal = _string_argument(pack, args, pack.arg_positions.get(function, 1))
            if literal is None:
                continue
            name, offset, length = literal
            for rule in rules:
                yield Fact(
                    role=FactRole.CALL_SITE,
                    kind=rule.kind,
                    behavior=rule.frontend_behavior,
                    name=name,
                    function=function,
                    offset=offset,
                    length=length,
                )

    def _alias_table(self, result: ParseResult) -> dict[str, str]:
        """Local name -> canonical imported name."""
        aliases: dict[str, str] = {}
        pack = result.pack
        for match in self._parser.run_query(pack, pack.alias_query, result.root_node):
            imported, local = match.get("imported"), match.get("local")
            if imported is not None and local is not None:
                aliases[_text(local)] = _text(imported)
        return aliases

    # -------------------------------------------------------------------------
    # Shared
    # -------------------------------------------------------------------------

    def _sorted_calls(self, pack: GrammarPack, result: ParseResult) -> list[dict[str, Any]]:
        """One match per call span, in document order.

        When the generic and the plain pattern both match a call, the match
        carrying @type_args is kept.
        """
        best: dict[tuple[int, int], dict[str, Any]] = {}
        for match in self._parser.run_query(pack, pack.call_query, result.root_node):
            call = match.get("call")
            if call is None or "func" not in match or "args" not in match:
                continue
            span = (call.start_byte, call.end_byte)
            current = best.get(span)
            if current is None or ("type_args" in match and "type_args" not in current):
                best[span] = match
        return [best[span] for span in sorted(best)]


def _following_function_name(item: Any) -> Any | None:
    sibling = item.next_named_sibling
    while sibling is not None and sibling.type in _DECLARATION_GAP_TYPES:
        sibling = sibling.next_named_sibling
    if sibling is None or sibling.type != "function_item":
        return None
    return sibling.child_by_field_name("name")


def _string_argument(pack: GrammarPack, args: Any, position: int) -> tuple[str, int, int] | None:
    """(name, offset, length) of the 1-based positional argument, if a plain literal.

    The name is the literal's decoded value; offset and length cover its
    source text between the quotes.
    """
    positional = [child for child in args.named_children if child.type not in pack.comment_types]
    if position < 1 or position > len(positional):
        return None
    node = positional[position - 1]
    if node.type not in pack.string_types:
        return None
    # b"..." and c"..." literals share the string node types
    if node.text[:1] in (b"b", b"c"):
        return None

    parts = node.named_children
    # empty, or computed through a template_substitution
    if not parts or any(part.type not in _STRING_PART_TYPES for part in parts):
        return None

    name = "".join(
        _unescape(_text(part)) if part.type == "escape_sequence" else _text(part) for part in parts
    )
    start, end = parts[0].start_byte, parts[-1].end_byte
    return name, start, end - start


def _unescape(sequence: str) -> str:
    """Value of one backslash escape; unknown escapes stand for the escaped character."""
    body = sequence[1:]
    if body[:1] in ("u", "x") and len(body) > 1:
        try:
            return chr(int(body[1:].strip("{}"), 16))
        except (ValueError, OverflowError):
            return sequence
    if not body.strip():
        # line continuation
        return ""
    return _SIMPLE_ESCAPES.get(body, body)
