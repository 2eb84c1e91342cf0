"""``repocache rebuild`` — materialize an offline repository from the cache.

The repository directory is left in place for the caller; the path is
printed on the last line for scripting.
"""

from __future__ import annotations

from pathlib import Path

from repocache.cli.commands._common import (
    HARD_FAILURES,
    build_manager,
    cache_root_option,
    console,
    fail,
)


def rebuild_cmd(cache_root: Path = cache_root_option()) -> None:
    """Rebuild a temporary repository holding every cached artifact."""
    try:
        repository = build_manager(cache_root).rebuild()
    except HARD_FAILURES as exc:
        raise fail(exc) from exc

    console.print(
        f"[bold green]Rebuilt repository[/bold green] with "
        f"{repository.artifact_count} artifact(s)."
    )
    console.print(str(repository.path), soft_wrap=True, highlight=False, markup=False)
