"""tarus counterpart / usages / classify / goto - one-shot queries."""

from __future__ import annotations

import json
from pathlib import Path

import click

from tarus.cli.utils import (
    KIND_CHOICE,
    format_location,
    json_option,
    root_option,
    scanned_app,
    summarize_usages,
)


@click.command()
@click.argument("language")
@click.argument("kind", type=KIND_CHOICE)
@click.argument("name")
@root_option
@json_option
@click.pass_context
def counterpart_command(
    ctx: click.Context, language: str, kind: str, name: str, root: Path, as_json: bool
) -> None:
    """Where is the counterpart of NAME as seen from LANGUAGE?"""
    app = scanned_app(ctx, root)
    location = app.counterpart_of(language, kind.lower(), name)
    if as_json:
        click.echo(json.dumps(location.to_dict() if location else None))
        return
    click.echo(format_location(location))
    if location is None:
        ctx.exit(1)


@click.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("name")
@root_option
@json_option
@click.option("--all", "show_all", is_flag=True, help="Ignore reference_limit")
@click.pass_context
def usages_command(
    ctx: click.Context, kind: str, name: str, root: Path, as_json: bool, show_all: bool
) -> None:
    """List the call sites of a command or event."""
    app = scanned_app(ctx, root)
    usages = app.usages_of(kind.lower(), name)
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "language": u.language,
                        "behavior": u.behavior.value,
                        "location": u.location.to_dict(),
                    }
                    for u in usages
                ]
            )
        )
        return
    limit = len(usages) if show_all else app.config.reference_limit
    for line in summarize_usages(usages, limit):
        click.echo(line)


@click.command()
@click.argument("kind", type=KIND_CHOICE)
@click.argument("name")
@root_option
@click.pass_context
def classify_command(ctx: click.Context, kind: str, name: str, root: Path) -> None:
    """Print the pairing classification of a command or event."""
    app = scanned_app(ctx, root)
    click.echo(app.classify(kind.lower(), name).value)


@click.command()
@click.argument("file")
@click.argument("offset", type=click.IntRange(min=0))
@root_option
@click.pass_context
def goto_command(ctx: click.Context, file: str, offset: int, root: Path) -> None:
    """Jump from the symbol at OFFSET (bytes) in FILE to its counterpart."""
    app = scanned_app(ctx, root)
    location = app.go_to_location(file, offset)
    if location is None:
        raise click.ClickException(f"No paired symbol at {file}:{offset}")
    if app.config.code_lens_action == "references":
        ref = app.query.symbol_at(app.coordinator.relative_path(file), offset)
        if ref is not None:
            for line in summarize_usages(
                app.usages_of(ref.kind, ref.name), app.config.reference_limit
            ):
                click.echo(line)
            return
    click.echo(format_location(location))
