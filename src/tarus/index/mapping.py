"""Mapping table: which backend patterns pair with which frontend functions.

A rule links one backend pattern to the frontend functions that form its
counterpart, the 1-based position of the name argument in the backend call,
and the symbol kind. Backend patterns come in three shapes:

- ``#[tauri::command]``: an attribute path; the annotated function declares
  a command.
- ``app.emit``: a method call. The receiver is illustrative only; any
  receiver matches, only the method name is compared.
- ``emit_all``: a free function call.

Built-in rules always come first. User rules are appended; a user rule that
repeats a built-in pattern keeps both active and their facts accumulate.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import ValidationError

from tarus.config.models import MappingRuleSpec
from tarus.core.errors import MalformedMappingRule
from tarus.index.models import Behavior, SymbolKind

log = structlog.get_logger(__name__)

_LISTEN_PREFIXES = ("listen", "once")


@dataclass(frozen=True)
class MappingRule:
    backend_pattern: str
    frontend_functions: tuple[str, ...]
    arg_index: int  # 1-based
    kind: SymbolKind
    builtin: bool = field(default=False, compare=False)

    @property
    def is_declaration(self) -> bool:
        """Command rules bind an attribute to the function that follows it."""
        return self.kind == SymbolKind.COMMAND

    @property
    def attribute_path(self) -> str:
        """``#[tauri::command(...)]`` -> ``tauri::command``."""
        path = self.backend_pattern.strip()
        if path.startswith("#[") and path.endswith("]"):
            path = path[2:-1]
        return path.split("(", 1)[0].strip()

    @property
    def is_method_call(self) -> bool:
        return "." in self.backend_pattern

    @property
    def backend_function(self) -> str:
        """Method or free-function name the backend call must use."""
        name = self.backend_pattern.rsplit(".", 1)[-1].strip()
        return name.removesuffix("()")

    @property
    def backend_behavior(self) -> Behavior:
        if self.is_declaration:
            return Behavior.DEFINITION
        if self.backend_function.startswith(_LISTEN_PREFIXES):
            return Behavior.LISTEN
        return Behavior.EMIT

    @property
    def frontend_behavior(self) -> Behavior:
        """Frontend side does the opposite of the backend side."""
        if self.is_declaration:
            return Behavior.CALL
        if self.backend_behavior == Behavior.LISTEN:
            return Behavior.EMIT
        return Behavior.LISTEN

    def matches_attribute(self, path: str) -> bool:
        """``#[command]`` (after ``use tauri::command``) matches ``tauri::command``."""
        rule_path = self.attribute_path
        return path == rule_path or rule_path.endswith("::" + path)

    @classmethod
    def from_spec(cls, spec: MappingRuleSpec) -> MappingRule:
        return cls(
            backend_pattern=spec.backend.strip(),
            frontend_functions=tuple(spec.frontend),
            arg_index=spec.event_arg_index,
            kind=SymbolKind(spec.type),
        )


def _event_rules(
    methods: Sequence[str], frontend: tuple[str, ...], arg_index: int
) -> list[MappingRule]:
    return [
        MappingRule(f"app.{method}", frontend, arg_index, SymbolKind.EVENT, builtin=True)
        for method in methods
    ]


BUILTIN_RULES: tuple[MappingRule, ...] = (
    MappingRule("#[tauri::command]", ("invoke",), 1, SymbolKind.COMMAND, builtin=True),
    *_event_rules(
        ("emit", "emit_str", "emit_filter", "emit_str_filter"), ("listen", "once"), 1
    ),
    *_event_rules(("emit_to", "emit_str_to"), ("listen", "once"), 2),
    *_event_rules(("listen", "listen_any", "once", "once_any"), ("emit", "emitTo"), 1),
)


@dataclass
class MappingTable:
    """Ordered rule set with lookup indexes for the matchers."""

    rules: list[MappingRule] = field(default_factory=list)
    warnings: list[MalformedMappingRule] = field(default_factory=list)
    _by_frontend: dict[str, list[MappingRule]] = field(
        default_factory=dict, init=False, repr=False
    )
    _by_backend_call: dict[tuple[str, bool], list[MappingRule]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        for rule in self.rules:
            for fn in rule.frontend_functions:
                self._by_frontend.setdefault(fn, []).append(rule)
            if not rule.is_declaration:
                key = (rule.backend_function, rule.is_method_call)
                self._by_backend_call.setdefault(key, []).append(rule)

    @classmethod
    def builtin(cls) -> MappingTable:
        return cls(rules=list(BUILTIN_RULES))

    @classmethod
    def load(cls, user_rules: Iterable[Any] = ()) -> MappingTable:
        """Built-ins followed by every valid user rule.

        Malformed user rules are dropped. Each drop is logged and kept in
        ``warnings`` so callers can surface it.
        """
        rules = list(BUILTIN_RULES)
        warnings: list[MalformedMappingRule] = []
        for index, raw in enumerate(user_rules):
            try:
                spec = MappingRuleSpec.model_validate(raw)
            except ValidationError as e:
                err = e.errors()[0]
                loc = ".".join(str(part) for part in err["loc"]) or "rule"
                warning = MalformedMappingRule.invalid(index, raw, f"{loc}: {err['msg']}")
                warnings.append(warning)
                log.warning(
                    "mapping_rule_dropped",
                    index=index,
                    reason=warning.details["reason"],
                )
                continue
            rules.append(MappingRule.from_spec(spec))
        return cls(rules=rules, warnings=warnings)

    def resolve(self, backend_pattern: str) -> MappingRule | None:
        """First rule for a backend pattern; built-ins win on conflict."""
        for rule in self.rules:
            if rule.backend_pattern == backend_pattern:
                return rule
        return None

    def rules_for_backend(self, backend_pattern: str) -> list[MappingRule]:
        return [rule for rule in self.rules if rule.backend_pattern == backend_pattern]

    def resolve_by_frontend_function(self, name: str) -> list[MappingRule]:
        return list(self._by_frontend.get(name, ()))

    def declaration_rules(self, attribute_path: str) -> list[MappingRule]:
        return [
            rule
            for rule in self.rules
            if rule.is_declaration and rule.matches_attribute(attribute_path)
        ]

    def backend_call_rules(self, function: str, *, is_method: bool) -> list[MappingRule]:
        return list(self._by_backend_call.get((function, is_method), ()))

    def __len__(self) -> int:
        return len(self.rules)
