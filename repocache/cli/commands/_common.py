"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from repocache.config import config
from repocache.core.cache_index import CorruptIndexError
from repocache.core.cache_manager import CacheManager, CachePopulationError
from repocache.core.locking import CacheLockError
from repocache.core.rebuilder import RebuildError
from repocache.models.coordinates import InvalidCoordinateError

EXIT_INCOMPLETE = 1
EXIT_FAILURE = 2

HARD_FAILURES = (
    CorruptIndexError,
    CachePopulationError,
    RebuildError,
    CacheLockError,
    InvalidCoordinateError,
)

console = Console()


def cache_root_option() -> Path:
    return typer.Option(
        None,
        "--cache-root",
        "-c",
        help="Cache root directory (defaults to REPOCACHE_CACHE_ROOT).",
    )


def build_manager(cache_root: Path | None, **overrides: Any) -> CacheManager:
    """CacheManager for *cache_root*, falling back to the configured root."""
    return CacheManager.from_config(config, cache_root=cache_root or config.cache_root, **overrides)


def fail(exc: Exception) -> typer.Exit:
    """Print a hard failure and return the Exit to raise."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=EXIT_FAILURE)
