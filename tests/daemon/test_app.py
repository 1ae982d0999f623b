"""Tests for the application command surface."""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tarus.config.models import TarusConfig
from tarus.daemon.app import TarusApp
from tarus.daemon.indexer import IndexerState
from tarus.index.models import Classification, SymbolKind
from tarus.index.ops import IndexStats

LIB_RS = """\
#[tauri::command]
fn greet() {}

fn setup(app: AppHandle) {
    app.emit("tick", ()).unwrap();
}
"""

MAIN_TS = 'import { invoke } from "@tauri-apps/api/core";\ninvoke("greet");\n'


@pytest.fixture
def app(make_workspace: Callable[..., Any]) -> TarusApp:
    ws = make_workspace({"src-tauri/src/lib.rs": LIB_RS, "src/main.ts": MAIN_TS})
    return TarusApp(workspace_root=Path("/workspace"), config=TarusConfig(), workspace=ws)


class TestCommandSurface:
    @pytest.mark.asyncio
    async def test_given_rescan_then_queries_answer(self, app: TarusApp) -> None:
        # When
        stats = await app.rescan()

        # Then
        assert stats.full is True
        assert app.classify("command", "greet") == Classification.OK
        assert app.classify(SymbolKind.EVENT, "tick") == Classification.UNPAIRED_EMISSION
        location = app.counterpart_of("typescript", "command", "greet")
        assert location is not None
        assert location.path == "src-tauri/src/lib.rs"
        assert app.absolute(location) == Path("/workspace/src-tauri/src/lib.rs")
        assert [d.name for d in app.diagnostics()] == ["tick"]

    @pytest.mark.asyncio
    async def test_given_scan_in_flight_when_rescan_then_deferred_full_scan_stats_returned(
        self, app: TarusApp, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given: a scan is running and held open
        gate = asyncio.Event()
        calls: list[int] = []
        real_full_scan = app.coordinator.full_scan

        async def gated_full_scan() -> IndexStats:
            calls.append(1)
            if len(calls) == 1:
                await gate.wait()
            return await real_full_scan()

        monkeypatch.setattr(app.coordinator, "full_scan", gated_full_scan)
        app.indexer.trigger()
        running = asyncio.create_task(app.indexer.flush())
        await asyncio.sleep(0)
        assert app.indexer.state == IndexerState.SCANNING

        # When
        pending = asyncio.create_task(app.rescan())
        await asyncio.sleep(0)
        assert not pending.done()
        gate.set()
        stats = await pending
        await running

        # Then
        assert stats.full is True
        assert stats.files_processed == 2
        assert len(calls) == 2
        assert app.indexer.state == IndexerState.IDLE

    @pytest.mark.asyncio
    async def test_given_cursor_on_invoke_when_go_to_location_then_declaration(
        self, app: TarusApp
    ) -> None:
        await app.rescan()
        offset = MAIN_TS.index('"greet"') + 2

        location = app.go_to_location("src/main.ts", offset)

        assert location is not None
        assert location.path == "src-tauri/src/lib.rs"
        assert location.line == 1

    @pytest.mark.asyncio
    async def test_given_cursor_off_symbol_then_none(self, app: TarusApp) -> None:
        await app.rescan()

        assert app.go_to_location("src/main.ts", 0) is None

    @pytest.mark.asyncio
    async def test_usages_of_excludes_declaration(self, app: TarusApp) -> None:
        await app.rescan()

        usages = app.usages_of("command", "greet")

        assert [u.location.path for u in usages] == ["src/main.ts"]


class TestSaveEvents:
    @pytest.mark.asyncio
    async def test_given_saved_file_when_flushed_then_listeners_notified(
        self, app: TarusApp
    ) -> None:
        # Given
        await app.rescan()
        seen: list[IndexStats] = []

        async def listener(stats: IndexStats) -> None:
            seen.append(stats)

        app.on_results_changed(listener)
        app.workspace.files["src/main.ts"] = 'invoke("ghost");\n'  # type: ignore[union-attr]

        # When
        app.on_file_saved("src/main.ts", "typescript")
        await app.indexer.flush()

        # Then
        assert len(seen) == 1
        assert seen[0].full is False
        assert app.classify("command", "ghost") == Classification.UNDEFINED_REFERENCE
        assert app.classify("command", "greet") == Classification.UNUSED_DECLARATION

    def test_given_malformed_mapping_then_warning_exposed(
        self, make_workspace: Callable[..., Any]
    ) -> None:
        config = TarusConfig(mappings=[{"backend": "app.x", "frontend": [], "type": "event"}])

        app = TarusApp(workspace_root=Path("/workspace"), config=config, workspace=make_workspace())

        assert len(app.mapping_warnings) == 1
