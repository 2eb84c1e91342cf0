"""``repocache status`` and ``repocache verify`` — read-only index inspection."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from repocache.cli.commands._common import (
    EXIT_INCOMPLETE,
    HARD_FAILURES,
    build_manager,
    cache_root_option,
    console,
    fail,
)


def status_cmd(cache_root: Path = cache_root_option()) -> None:
    """List every indexed artifact and whether its file is present."""
    try:
        manager = build_manager(cache_root)
        entries = manager.entries()
        missing = set(manager.verify())
    except HARD_FAILURES as exc:
        raise fail(exc) from exc

    if not entries:
        console.print(f"[dim]Cache at {manager.cache_root} is empty.[/dim]")
        return

    table = Table(title=f"Cached artifacts ({len(entries)})")
    table.add_column("Coordinate", style="cyan")
    table.add_column("Path")
    table.add_column("Present", justify="center")
    for entry in entries:
        present = "[red]No[/red]" if entry.key in missing else "[green]Yes[/green]"
        table.add_row(entry.key, entry.relative_path, present)
    console.print(table)


def verify_cmd(cache_root: Path = cache_root_option()) -> None:
    """Exit with code 1 if any indexed artifact is missing from the store."""
    try:
        missing = build_manager(cache_root).verify()
    except HARD_FAILURES as exc:
        raise fail(exc) from exc

    if missing:
        for key in missing:
            console.print(f"[red]missing[/red] {key}")
        raise typer.Exit(code=EXIT_INCOMPLETE)
    console.print("[green]Cache index and store are consistent.[/green]")
