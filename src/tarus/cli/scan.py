"""tarus scan / tarus check - index the workspace and report."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from tarus.cli.utils import build_app, format_location, json_option, root_option
from tarus.config.constants import REGISTRY_DUMP_NAME
from tarus.config.loader import get_workspace_dir


@click.command()
@root_option
@json_option
@click.option("--dump", is_flag=True, help="Write .tarus/registry.json (developer mode)")
@click.pass_context
def scan_command(ctx: click.Context, root: Path, as_json: bool, dump: bool) -> None:
    """Run a full scan and print index statistics."""
    overrides = {"developer_mode": True} if dump else {}
    app = build_app(ctx, root, **overrides)
    stats = asyncio.run(app.rescan())

    if as_json:
        click.echo(
            json.dumps(
                {
                    "files_processed": stats.files_processed,
                    "files_skipped": stats.files_skipped,
                    "facts": stats.facts_indexed,
                    "entries": stats.entries,
                    "duration_seconds": round(stats.duration_seconds, 3),
                    "warnings": [w.to_dict() for w in app.mapping_warnings],
                }
            )
        )
        return

    table = Table(show_header=False, box=None, padding=(0, 1), pad_edge=False)
    table.add_column(style="dim")
    table.add_column(justify="right")
    table.add_row("files", str(stats.files_processed))
    table.add_row("skipped", str(stats.files_skipped))
    table.add_row("facts", str(stats.facts_indexed))
    table.add_row("entries", str(stats.entries))
    table.add_row("time", f"{stats.duration_seconds:.2f}s")

    console = Console()
    console.print(table)
    if app.config.developer_mode:
        dump_path = get_workspace_dir(app.workspace_root) / REGISTRY_DUMP_NAME
        console.print(f"  [green]✓[/green] Registry written to {dump_path}")


@click.command()
@root_option
@json_option
@click.pass_context
def check_command(ctx: click.Context, root: Path, as_json: bool) -> None:
    """List every unpaired command and event. Exits 1 if any are found."""
    app = build_app(ctx, root)
    asyncio.run(app.rescan())
    diagnostics = app.diagnostics()

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "kind": d.kind.value,
                        "name": d.name,
                        "classification": d.classification.value,
                        "message": d.message,
                        "locations": [loc.to_dict() for loc in d.locations],
                    }
                    for d in diagnostics
                ]
            )
        )
    else:
        console = Console()
        if not diagnostics:
            console.print("[green]✓[/green] All commands and events are paired")
        for d in diagnostics:
            console.print(f"[yellow]{d.classification.value}[/yellow] {d.message}")
            for loc in d.locations[: app.config.reference_limit]:
                console.print(f"    [dim]{format_location(loc)}[/dim]")
            hidden = len(d.locations) - app.config.reference_limit
            if hidden > 0:
                console.print(f"    [dim]... and {hidden} more[/dim]")

    if diagnostics:
        ctx.exit(1)
