"""Main Typer application — imports and registers all CLI commands.

Entry point: ``repocache`` (configured via pyproject.toml scripts).

Exit codes: 0 success, 1 incomplete (unresolved or missing artifacts),
2 hard failure (corrupt index, deploy failure, lock timeout, bad input).
"""

from __future__ import annotations

import typer

from repocache import __version__
from repocache.cli.commands.inspect import status_cmd, verify_cmd
from repocache.cli.commands.populate import populate_cmd
from repocache.cli.commands.rebuild import rebuild_cmd
from repocache.config import config
from repocache.logging_setup import configure_logging

app = typer.Typer(
    name="repocache",
    help="repocache: offline artifact cache and repository rebuilder.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="populate", help="Resolve and cache required artifacts.")(populate_cmd)
app.command(name="rebuild", help="Rebuild a temporary offline repository from the cache.")(rebuild_cmd)
app.command(name="status", help="List cached artifacts.")(status_cmd)
app.command(name="verify", help="Check that every indexed artifact is in the store.")(verify_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"repocache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (defaults to REPOCACHE_LOG_LEVEL)."
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or config.log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
