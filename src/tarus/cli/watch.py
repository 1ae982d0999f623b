"""tarus watch - keep the index fresh and report as files change."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path

import click

from tarus.cli.utils import build_app, err_console, root_option
from tarus.index.ops import IndexStats


@click.command()
@root_option
@click.pass_context
def watch_command(ctx: click.Context, root: Path) -> None:
    """Watch the workspace and re-report diagnostics after every scan."""
    app = build_app(ctx, root)
    console = err_console()

    async def report(stats: IndexStats) -> None:
        diagnostics = app.diagnostics()
        mark = "[green]✓[/green]" if not diagnostics else "[yellow]![/yellow]"
        kind = "full scan" if stats.full else f"{stats.files_processed} file(s)"
        console.print(
            f"  {mark} {kind}: {stats.entries} entries, "
            f"{len(diagnostics)} diagnostic(s) in {stats.duration_seconds:.2f}s"
        )

    app.on_results_changed(report)

    async def main() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, stop_event.set)
        console.print(f"[bold]Watching[/bold] {app.workspace_root} [dim](Ctrl-C to stop)[/dim]")
        await app.serve_forever(stop_event)

    asyncio.run(main())
