"""Tests for the tarus CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tarus.cli.main import cli
from tarus.cli.utils import format_location, summarize_usages
from tarus.index.models import Behavior, Location, Usage

LIB_RS = """\
#[tauri::command]
fn greet() {}

#[tauri::command]
fn orphan() {}
"""

MAIN_TS = """\
import { invoke } from "@tauri-apps/api/core";
invoke("greet");
invoke("greet", { again: true });
invoke("ghost");
"""


@pytest.fixture
def project(tmp_path: Path, isolated_config: None, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A small Tauri workspace on disk."""
    monkeypatch.setenv("TARUS__LOGGING__LEVEL", "ERROR")
    (tmp_path / "src-tauri" / "src").mkdir(parents=True)
    (tmp_path / "src-tauri" / "src" / "lib.rs").write_text(LIB_RS)
    (tmp_path / "src").mkdir(exist_ok=True)
    (tmp_path / "src" / "main.ts").write_text(MAIN_TS)
    return tmp_path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestScanAndCheck:
    def test_given_project_when_scan_json_then_stats(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, ["scan", "--root", str(project), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["files_processed"] == 2
        assert data["warnings"] == []

    def test_given_dump_flag_when_scan_then_registry_written(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, ["scan", "--root", str(project), "--dump"])

        assert result.exit_code == 0, result.output
        assert (project / ".tarus" / "registry.json").exists()

    def test_given_unpaired_symbols_when_check_then_exit_one(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, ["check", "--root", str(project), "--json"])

        assert result.exit_code == 1
        found = {(d["name"], d["classification"]) for d in json.loads(result.output)}
        assert found == {("ghost", "undefined-reference"), ("orphan", "unused-declaration")}

    def test_given_everything_paired_when_check_then_exit_zero(
        self, runner: CliRunner, project: Path
    ) -> None:
        (project / "src" / "main.ts").write_text('invoke("greet");\ninvoke("orphan");\n')

        result = runner.invoke(cli, ["check", "--root", str(project)])

        assert result.exit_code == 0, result.output
        assert "paired" in result.output

    def test_given_invalid_config_when_scan_then_error(
        self, runner: CliRunner, project: Path
    ) -> None:
        (project / ".tarus").mkdir()
        (project / ".tarus" / "config.yaml").write_text("reference_limit: -1\n")

        result = runner.invoke(cli, ["scan", "--root", str(project)])

        assert result.exit_code == 1
        assert "reference_limit" in result.output


class TestQueries:
    def test_given_paired_command_when_counterpart_then_location(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(
            cli, ["counterpart", "typescript", "command", "greet", "--root", str(project)]
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "src-tauri/src/lib.rs:2:4"

    def test_given_unpaired_command_when_counterpart_then_unresolved(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(
            cli, ["counterpart", "typescript", "command", "ghost", "--root", str(project)]
        )

        assert result.exit_code == 1
        assert result.output.strip() == "unresolved"

    def test_given_limit_when_usages_then_summarized(
        self, runner: CliRunner, project: Path
    ) -> None:
        (project / ".tarus").mkdir()
        (project / ".tarus" / "config.yaml").write_text("reference_limit: 1\n")

        result = runner.invoke(cli, ["usages", "command", "greet", "--root", str(project)])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "src/main.ts:2:9  [call]",
            "... and 1 more",
        ]

    def test_given_classify_then_value_printed(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["classify", "command", "orphan", "--root", str(project)])

        assert result.output.strip() == "unused-declaration"

    def test_given_offset_on_invoke_when_goto_then_declaration(
        self, runner: CliRunner, project: Path
    ) -> None:
        offset = MAIN_TS.index('"greet"') + 1

        result = runner.invoke(
            cli, ["goto", "src/main.ts", str(offset), "--root", str(project)]
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "src-tauri/src/lib.rs:2:4"

    def test_given_offset_off_symbol_when_goto_then_error(
        self, runner: CliRunner, project: Path
    ) -> None:
        result = runner.invoke(cli, ["goto", "src/main.ts", "0", "--root", str(project)])

        assert result.exit_code == 1


class TestFormatting:
    def test_format_location_is_one_based(self) -> None:
        assert format_location(Location("a.ts", 10, 3, line=0, column=7)) == "a.ts:1:8"
        assert format_location(None) == "unresolved"

    def test_summarize_usages_within_limit(self) -> None:
        usages = [Usage(Location("a.ts", i, 1), "typescript", Behavior.CALL) for i in range(2)]

        assert len(summarize_usages(usages, 3)) == 2
        assert summarize_usages(usages, 0) == ["... and 2 more"]
