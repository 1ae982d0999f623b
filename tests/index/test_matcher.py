"""Tests for the tree-sitter symbol matcher.

Given/When/Then over small Rust, TypeScript, JavaScript and Vue sources.
"""

import pytest

from tarus.core.errors import ParseError
from tarus.index._internal.extraction import SymbolMatcher
from tarus.index.mapping import MappingTable
from tarus.index.models import Behavior, Fact, FactRole, SymbolKind


@pytest.fixture(scope="module")
def matcher() -> SymbolMatcher:
    return SymbolMatcher(MappingTable.builtin())


def _names(facts: list[Fact]) -> list[str]:
    return [f.name for f in facts]


def _assert_spans(source: str, facts: list[Fact]) -> None:
    data = source.encode("utf-8")
    for fact in facts:
        assert data[fact.offset : fact.offset + fact.length].decode("utf-8") == fact.name


RUST_COMMANDS = """\
use tauri::command;

#[tauri::command]
fn greet(name: &str) -> String {
    format!("Hello, {}!", name)
}

#[command]
#[allow(dead_code)]
async fn save_file() {}

#[tauri::command(rename_all = "snake_case")]
// exposed to the webview
pub fn with_args() {}

#[tauri::command]
struct NotAFunction;

#[derive(Debug)]
fn not_a_command() {}
"""

RUST_EVENTS = """\
fn setup(app: AppHandle, window: Window) {
    app.emit("ready", ()).unwrap();
    app.emit_to("main", "progress", 42).unwrap();
    window.emit::<Payload>("typed", payload);
    app.emit(event_name, ());
    app.emit(/* name */ "commented", ());
    app.listen("frontend-ready", |_| {});
    emit("free-function", 1);
}
"""


class TestRustDeclarations:
    """Command declarations from #[tauri::command] attributes."""

    def test_given_command_attributes_when_matched_then_declares_functions(
        self, matcher: SymbolMatcher
    ) -> None:
        # When
        facts = list(matcher.iter_facts("src-tauri/src/lib.rs", RUST_COMMANDS))

        # Then
        assert _names(facts) == ["greet", "save_file", "with_args"]
        assert all(f.role == FactRole.DECLARATION for f in facts)
        assert all(f.kind == SymbolKind.COMMAND for f in facts)
        assert all(f.behavior == Behavior.DEFINITION for f in facts)
        _assert_spans(RUST_COMMANDS, facts)

    def test_given_declaration_then_line_and_column_of_name(self, matcher: SymbolMatcher) -> None:
        facts = list(matcher.iter_facts("lib.rs", RUST_COMMANDS))

        assert (facts[0].line, facts[0].column) == (3, 3)

    def test_given_attribute_on_struct_then_no_fact(self, matcher: SymbolMatcher) -> None:
        source = "#[tauri::command]\nstruct Config;\n"

        assert list(matcher.iter_facts("lib.rs", source)) == []


class TestRustCallSites:
    """Event emissions and subscriptions in Rust."""

    def test_given_emit_calls_when_matched_then_literal_names_only(
        self, matcher: SymbolMatcher
    ) -> None:
        # When
        facts = list(matcher.iter_facts("src-tauri/src/main.rs", RUST_EVENTS))

        # Then
        assert _names(facts) == ["ready", "progress", "typed", "commented", "frontend-ready"]
        assert all(f.kind == SymbolKind.EVENT for f in facts)
        _assert_spans(RUST_EVENTS, facts)

    def test_given_emit_to_then_second_argument_is_name(self, matcher: SymbolMatcher) -> None:
        facts = list(matcher.iter_facts("main.rs", 'fn f() { app.emit_to("main", "x", 1); }'))

        assert _names(facts) == ["x"]

    def test_given_listen_then_listen_behavior(self, matcher: SymbolMatcher) -> None:
        facts = list(matcher.iter_facts("main.rs", RUST_EVENTS))

        behaviors = {f.name: f.behavior for f in facts}
        assert behaviors["ready"] == Behavior.EMIT
        assert behaviors["frontend-ready"] == Behavior.LISTEN

    def test_given_escaped_and_raw_literals_then_names_are_decoded(
        self, matcher: SymbolMatcher
    ) -> None:
        # Given
        source = (
            "fn f(app: AppHandle) {\n"
            '    app.emit("a\\"b", ());\n'
            '    app.emit(r"tick", ());\n'
            '    app.emit(r#"raw"#, ());\n'
            '    app.emit(b"bytes", ());\n'
            "}\n"
        )

        # When
        facts = list(matcher.iter_facts("main.rs", source))

        # Then
        assert _names(facts) == ['a"b', "tick", "raw"]
        data = source.encode()
        assert data[facts[0].offset : facts[0].offset + facts[0].length] == b'a\\"b'
        _assert_spans(source, facts[1:])

    def test_given_user_rule_for_free_function_then_matched(self) -> None:
        # Given
        table = MappingTable.load(
            [
                {"backend": "emit", "frontend": ["listen"], "type": "event"},
                {
                    "backend": "app.trigger",
                    "frontend": ["on"],
                    "eventArgIndex": 2,
                    "type": "event",
                },
            ]
        )
        source = 'fn f() { emit("free", 1); app.trigger(1, "second"); }'

        # When
        facts = list(SymbolMatcher(table).iter_facts("main.rs", source))

        # Then
        assert _names(facts) == ["free", "second"]
        _assert_spans(source, facts)


TS_SOURCE = """\
import { invoke } from "@tauri-apps/api/core";
import { listen as on, emit } from "@tauri-apps/api/event";

const { invoke: call } = window.__TAURI__.core;

export async function run(commandName: string, x: number) {
  await invoke("greet", { name: "you" });
  const n = await invoke<number>("count");
  await on("progress", (e) => console.log(e));
  await emit("frontend-ready");
  await window.__TAURI__.core.invoke("member_call");
  await call("destructured");
  await invoke(`template`);
  await invoke(`dyn_${x}`);
  await invoke(commandName);
  await emitTo("main", "targeted", {});
  await fetch("not-tauri");
}
"""


class TestFrontendCallSites:
    """invoke/listen/emit in TypeScript and JavaScript."""

    def test_given_typescript_when_matched_then_every_literal_call(
        self, matcher: SymbolMatcher
    ) -> None:
        # When
        facts = list(matcher.iter_facts("src/api.ts", TS_SOURCE))

        # Then
        assert _names(facts) == [
            "greet",
            "count",
            "progress",
            "frontend-ready",
            "member_call",
            "destructured",
            "template",
            "targeted",
        ]
        _assert_spans(TS_SOURCE, facts)

    def test_given_typescript_then_kinds_and_behaviors(self, matcher: SymbolMatcher) -> None:
        facts = {f.name: f for f in matcher.iter_facts("src/api.ts", TS_SOURCE)}

        assert facts["greet"].kind == SymbolKind.COMMAND
        assert facts["greet"].behavior == Behavior.CALL
        assert facts["progress"].kind == SymbolKind.EVENT
        assert facts["progress"].behavior == Behavior.LISTEN
        assert facts["frontend-ready"].behavior == Behavior.EMIT
        assert facts["targeted"].behavior == Behavior.EMIT

    def test_given_alias_then_function_is_canonical(self, matcher: SymbolMatcher) -> None:
        facts = {f.name: f for f in matcher.iter_facts("src/api.ts", TS_SOURCE)}

        assert facts["progress"].function == "listen"
        assert facts["destructured"].function == "invoke"

    def test_given_javascript_when_matched_then_found(self, matcher: SymbolMatcher) -> None:
        source = 'import { invoke } from "@tauri-apps/api/core";\ninvoke("js_cmd");\n'

        facts = list(matcher.iter_facts("src/main.js", source))

        assert _names(facts) == ["js_cmd"]
        assert (facts[0].line, facts[0].column) == (1, 8)

    def test_given_tsx_component_when_matched_then_found(self, matcher: SymbolMatcher) -> None:
        source = (
            "export function Button() {\n"
            '  return <button onClick={() => invoke("clicked")}>Go</button>;\n'
            "}\n"
        )

        facts = list(matcher.iter_facts("src/Button.tsx", source))

        assert _names(facts) == ["clicked"]
        _assert_spans(source, facts)

    def test_given_escapes_in_literal_then_name_is_decoded(self, matcher: SymbolMatcher) -> None:
        source = "invoke(\"a\\u0041\");\ninvoke('it\\'s');\ninvoke(\"x\\u{42}y\");\n"

        facts = list(matcher.iter_facts("src/a.ts", source))

        assert _names(facts) == ["aA", "it's", "xBy"]
        first = source.encode()[facts[0].offset : facts[0].offset + facts[0].length]
        assert first == b"a\\u0041"

    def test_given_multibyte_text_then_offsets_are_bytes(self, matcher: SymbolMatcher) -> None:
        source = '// héllo wörld\ninvoke("after_unicode");\n'

        facts = list(matcher.iter_facts("src/a.ts", source))

        _assert_spans(source, facts)
        assert facts[0].offset != source.index("after_unicode")


VUE_SOURCE = """\
<template>
  <button @click="invoke('in_template')">Go</button>
</template>

<script setup lang="ts">
import { invoke } from "@tauri-apps/api/core";

async function go() {
  await invoke("vue_cmd");
}
</script>
"""


class TestVueSingleFileComponents:
    """Only <script> blocks are matched; offsets are file-relative."""

    def test_given_vue_sfc_when_matched_then_script_calls_only(
        self, matcher: SymbolMatcher
    ) -> None:
        facts = list(matcher.iter_facts("src/App.vue", VUE_SOURCE))

        assert _names(facts) == ["vue_cmd"]
        _assert_spans(VUE_SOURCE, facts)
        assert facts[0].line == 8

    def test_given_vue_without_script_then_no_facts(self, matcher: SymbolMatcher) -> None:
        assert list(matcher.iter_facts("src/Empty.vue", "<template><p/></template>")) == []


class TestUnsupportedFiles:
    def test_given_unknown_extension_then_parse_error(self, matcher: SymbolMatcher) -> None:
        with pytest.raises(ParseError):
            list(matcher.iter_facts("README.md", "# readme"))

    def test_given_duplicate_calls_then_each_kept_once_per_site(
        self, matcher: SymbolMatcher
    ) -> None:
        source = 'invoke("a");\ninvoke("a");\n'

        facts = list(matcher.iter_facts("src/a.ts", source))

        assert [f.offset for f in facts] == [8, 21]
