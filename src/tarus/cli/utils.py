"""CLI utilities."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console

from tarus.config import load_config
from tarus.core.errors import ConfigError
from tarus.core.logging import configure_logging
from tarus.daemon.app import TarusApp
from tarus.index.models import Location, Usage

F = TypeVar("F", bound=Callable[..., Any])

KIND_CHOICE = click.Choice(["command", "event"], case_sensitive=False)


def root_option(func: F) -> F:
    """``--root``: workspace root holding the backend and frontend roots."""
    return click.option(
        "--root",
        "root",
        default=".",
        show_default=True,
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        help="Workspace root",
    )(func)


def json_option(func: F) -> F:
    return click.option("--json", "as_json", is_flag=True, help="Output as JSON")(func)


def build_app(ctx: click.Context, root: Path, **overrides: Any) -> TarusApp:
    """Load config for ``root`` and build the app.

    Raises:
        click.ClickException: Config file unreadable or invalid.
    """
    workspace_root = root.resolve()
    try:
        config = load_config(workspace_root, **overrides)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)

    app = TarusApp(workspace_root=workspace_root, config=config)
    for warning in app.mapping_warnings:
        err_console().print(f"[yellow]![/yellow] {warning.message}")
    return app


def scanned_app(ctx: click.Context, root: Path, **overrides: Any) -> TarusApp:
    """Build the app and run one full scan."""
    app = build_app(ctx, root, **overrides)
    asyncio.run(app.rescan())
    return app


def err_console() -> Console:
    return Console(stderr=True)


def format_location(location: Location | None) -> str:
    """``path:line:column`` (1-based), or ``unresolved``."""
    if location is None:
        return "unresolved"
    return f"{location.path}:{location.line + 1}:{location.column + 1}"


def summarize_usages(usages: list[Usage], limit: int) -> list[str]:
    """One line per usage up to ``limit``, then a count of the rest."""
    lines = [f"{format_location(u.location)}  [{u.behavior.value}]" for u in usages[:limit]]
    hidden = len(usages) - len(lines)
    if hidden > 0:
        lines.append(f"... and {hidden} more")
    return lines
