"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich import print
from rich.table import Table

from .appctx import AppContext
from .errors import LibraryError, PhotoshelfError, SettingsError, StorageError
from .library.library import describe
from .settings.manager import SettingsManager
from .utils.logging import configure_logging

app = typer.Typer(help="Catalog a folder of photos and videos and render square previews")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (LibraryError, SettingsError, StorageError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except PhotoshelfError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


@contextmanager
def _open_context(ctx: typer.Context, root: Optional[Path]) -> Iterator[AppContext]:
    settings = SettingsManager(ctx.obj.get("settings_path"))
    settings.load()
    context = AppContext.create(root, settings)
    try:
        yield context
    finally:
        context.close()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
    settings_path: Optional[Path] = typer.Option(
        None, "--settings", help="Settings file to use instead of the per-user one"
    ),
) -> None:
    """Folder-native photo and video catalog."""

    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {"settings_path": settings_path, "verbose": verbose}


@app.command()
@_handle_errors
def scan(
    ctx: typer.Context,
    root: Optional[Path] = typer.Argument(None, help="Library folder; defaults to the configured one"),
) -> None:
    """Scan files and update the catalog."""

    with _open_context(ctx, root) as context:
        response = context.scan()
    print(
        f"[green]Scanned {response.scanned} files: {response.upserted} stored, "
        f"{response.failed} failed, {response.removed} removed"
    )
    for path, message in response.failures:
        print(f"[yellow]{path}: {message}")


@app.command()
@_handle_errors
def previews(
    ctx: typer.Context,
    root: Optional[Path] = typer.Argument(None, help="Library folder; defaults to the configured one"),
) -> None:
    """Render previews for every catalog entry that lacks one."""

    with _open_context(ctx, root) as context:
        response = context.render_previews()
    print(
        f"[green]Generated {response.generated} of {response.attempted} previews"
        + (f", [red]{response.failed} failed" if response.failed else "")
    )


@app.command("list")
@_handle_errors
def list_items(
    ctx: typer.Context,
    root: Optional[Path] = typer.Argument(None, help="Library folder; defaults to the configured one"),
) -> None:
    """List visual items, with Live Photos shown as one entry."""

    with _open_context(ctx, root) as context:
        context.library.refresh()
        table = Table("id", "kind", "path", "preview")
        for item in context.library.items():
            record = context.library.record(item.picture_id or item.video_id)
            has_preview = record is not None and record.has_preview
            table.add_row(item.visual_id, item.kind.value, str(item.path), "yes" if has_preview else "no")
    print(table)


@app.command()
@_handle_errors
def info(
    ctx: typer.Context,
    visual_id: str = typer.Argument(..., help="Identifier shown by the list command"),
    root: Optional[Path] = typer.Argument(None, help="Library folder; defaults to the configured one"),
) -> None:
    """Print the raw properties of one visual item."""

    with _open_context(ctx, root) as context:
        context.library.refresh()
        item = context.library.get(visual_id)
        if item is None:
            typer.echo(f"Error: no item {visual_id}", err=True)
            raise typer.Exit(1)
        details = describe(item, context.library)

    table = Table("property", "value")
    for name, value in vars(details).items():
        if value is not None:
            table.add_row(name, str(value))
    print(table)


if __name__ == "__main__":  # pragma: no cover
    app()
