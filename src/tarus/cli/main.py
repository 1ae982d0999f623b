"""Tarus CLI - tarus command."""

import click

from tarus import __version__
from tarus.cli.query import classify_command, counterpart_command, goto_command, usages_command
from tarus.cli.scan import check_command, scan_command
from tarus.cli.watch import watch_command


@click.group()
@click.version_option(version=__version__, prog_name="tarus")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Tarus - pair Tauri commands and events across Rust and the frontend."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


cli.add_command(scan_command, name="scan")
cli.add_command(check_command, name="check")
cli.add_command(counterpart_command, name="counterpart")
cli.add_command(usages_command, name="usages")
cli.add_command(classify_command, name="classify")
cli.add_command(goto_command, name="goto")
cli.add_command(watch_command, name="watch")


if __name__ == "__main__":
    cli()
