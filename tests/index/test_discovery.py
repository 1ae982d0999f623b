"""Tests for source discovery and grammar selection."""

from pathlib import Path

import pytest

from tarus.index._internal.discovery import is_indexable, walk_sources
from tarus.index._internal.parsing import get_pack_for_path
from tarus.index._internal.parsing.packs import VUE_PACK, side_of
from tarus.index._internal.parsing.treesitter import split_source


class TestIsIndexable:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/main.ts", True),
            ("src/App.vue", True),
            ("src-tauri/src/lib.rs", True),
            ("src/components/Button.jsx", True),
            ("src/main.mts", True),
            ("src/legacy.cts", True),
            ("src/worker.mjs", True),
            ("scripts/build.cjs", True),
            ("src/env.d.ts", False),
            ("vite.config.ts", False),
            ("src/node_modules/pkg/index.js", False),
            ("src-tauri/target/debug/build.rs", False),
            ("src-tauri/gen/schemas/mod.rs", False),
            ("README.md", False),
        ],
    )
    def test_given_path_then_expected(self, path: str, expected: bool) -> None:
        assert is_indexable(path) is expected


class TestWalkSources:
    def test_given_tree_when_walked_then_sorted_and_pruned(self, tmp_path: Path) -> None:
        # Given
        for rel in ["b.ts", "a/c.vue", "node_modules/x.ts", "dist/out.js", "notes.txt"]:
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")

        # When
        found = walk_sources(tmp_path, (".ts", ".vue", ".js"))

        # Then
        assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a/c.vue", "b.ts"]

    def test_given_missing_root_then_empty(self, tmp_path: Path) -> None:
        assert walk_sources(tmp_path / "missing") == []


class TestPackSelection:
    @pytest.mark.parametrize(
        ("path", "pack"),
        [
            ("lib.rs", "rust"),
            ("main.ts", "typescript"),
            ("main.mts", "typescript"),
            ("App.tsx", "tsx"),
            ("main.js", "javascript"),
            ("worker.cjs", "javascript"),
            ("App.VUE", "vue"),
        ],
    )
    def test_given_extension_then_pack(self, path: str, pack: str) -> None:
        found = get_pack_for_path(path)

        assert found is not None
        assert found.name == pack

    def test_given_unknown_extension_then_none(self) -> None:
        assert get_pack_for_path("notes.md") is None

    def test_sides(self) -> None:
        assert side_of("rust") == "backend"
        assert side_of("vue") == "frontend"
        assert side_of("python") is None


class TestSplitSource:
    def test_given_vue_with_two_scripts_then_two_units_with_offsets(self) -> None:
        source = b'<script>\nA\n</script>\n<template/>\n<script setup lang="ts">B</script>'

        units = split_source(VUE_PACK, source)

        assert [u.content for u in units] == [b"\nA\n", b"B"]
        assert [source[u.base_offset : u.base_offset + 1] for u in units] == [b"\n", b"B"]
