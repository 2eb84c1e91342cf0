"""``repocache populate COORD...`` — resolve and cache missing artifacts.

Coordinates are ``group:name:extension:classifier:version`` strings, given
as arguments and/or one per line in ``--file`` (``#`` starts a comment).
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from repocache.cli.commands._common import (
    EXIT_INCOMPLETE,
    HARD_FAILURES,
    build_manager,
    cache_root_option,
    console,
    fail,
)
from repocache.config import config
from repocache.models.repositories import RepositoryEndpoint


def _read_coordinate_file(path: Path) -> list[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [
        stripped
        for stripped in (line.split("#", 1)[0].strip() for line in lines)
        if stripped
    ]


def populate_cmd(
    coordinates: list[str] = typer.Argument(
        None,
        help="Artifact coordinates, group:name:extension:classifier:version.",
    ),
    coordinate_file: Path = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="File with one coordinate per line.",
    ),
    repositories: list[str] = typer.Option(
        None,
        "--repo",
        "-r",
        help="Repository URL or path; repeatable. Defaults to REPOCACHE_REMOTE_REPOSITORIES.",
    ),
    workers: int = typer.Option(
        None, "--workers", "-w", min=1, help="Concurrent resolutions."
    ),
    cache_root: Path = cache_root_option(),
) -> None:
    """Resolve every required coordinate not yet cached and add it to the cache.

    Coordinates that cannot be resolved are reported and skipped; the
    command then exits with code 1.
    """
    required = list(coordinates or [])
    if coordinate_file is not None:
        required.extend(_read_coordinate_file(coordinate_file))
    if not required:
        console.print("[yellow]No coordinates given.[/yellow]")
        raise typer.Exit(code=0)

    endpoints = (
        [RepositoryEndpoint.from_url(url) for url in repositories]
        if repositories
        else config.repository_endpoints()
    )

    overrides = {"max_workers": workers} if workers else {}
    try:
        manager = build_manager(cache_root, **overrides)
        result = manager.populate(required, endpoints)
    except HARD_FAILURES as exc:
        raise fail(exc) from exc

    console.print(
        f"[bold]Requested:[/bold] {result.requested}  "
        f"[bold]Already cached:[/bold] {result.already_cached}  "
        f"[bold green]Cached:[/bold green] {len(result.cached)}  "
        f"[bold red]Failed:[/bold red] {len(result.failures)}"
    )

    if result.failures:
        table = Table(title="Unresolved artifacts")
        table.add_column("Coordinate", style="cyan")
        table.add_column("Reason", style="red")
        for failure in result.failures:
            table.add_row(failure.coordinate.key, escape(failure.reason))
        console.print(table)
        raise typer.Exit(code=EXIT_INCOMPLETE)
