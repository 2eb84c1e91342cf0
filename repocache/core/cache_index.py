"""Durable cache index — ``<cacheRoot>/cache.properties``.

One UTF-8 line per cached artifact::

    group:name:extension:classifier:version:relativePath

``relativePath`` is relative to the cache root's *parent*, so the index
can be copied independently of the repository root.

Design:
- Coordinate keys (first five fields) are unique; re-adding a key replaces
  its path rather than writing a duplicate line.
- No in-place mutation: every write rewrites the whole file through a
  temporary sibling and ``os.replace``, so a crash leaves either the old or
  the new index, never a truncated one.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from repocache.models.cache import CacheEntry
from repocache.models.coordinates import (
    COORDINATE_FIELDS,
    FIELD_SEPARATOR,
    ArtifactCoordinate,
    InvalidCoordinateError,
)

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "cache.properties"
STORE_DIR_NAME = "cache"

_LINE_FIELDS = len(COORDINATE_FIELDS) + 1


class CorruptIndexError(RuntimeError):
    """Raised when the index is unreadable, malformed, or references a missing file."""


def coordinate_key_set(entries: Iterable[CacheEntry]) -> set[str]:
    """Return the ``group:name:extension:classifier:version`` keys of *entries*."""
    return {entry.key for entry in entries}


def parse_line(line: str, line_number: int = 0) -> CacheEntry:
    """Parse a single index line into a CacheEntry.

    Raises CorruptIndexError unless the line has exactly six fields.
    """
    parts = line.split(FIELD_SEPARATOR)
    if len(parts) != _LINE_FIELDS:
        raise CorruptIndexError(
            f"Index line {line_number}: expected {_LINE_FIELDS} fields, "
            f"got {len(parts)}: {line!r}"
        )
    *fields, relative_path = parts
    if not relative_path.strip():
        raise CorruptIndexError(f"Index line {line_number}: empty path: {line!r}")
    path = PurePosixPath(relative_path)
    if path.is_absolute() or ".." in path.parts:
        raise CorruptIndexError(
            f"Index line {line_number}: path escapes the cache parent: {relative_path!r}"
        )
    try:
        coordinate = ArtifactCoordinate.from_fields(fields)
    except InvalidCoordinateError as exc:
        raise CorruptIndexError(f"Index line {line_number}: {exc}") from exc
    return CacheEntry(coordinate=coordinate, relative_path=relative_path)


class CacheIndex:
    """The index of one cache root.

    Parameters
    ----------
    cache_root:
        Directory holding ``cache.properties`` and the ``cache/`` store.
        Created on first write.
    """

    def __init__(self, cache_root: Path) -> None:
        self._root = Path(cache_root)

    @property
    def cache_root(self) -> Path:
        return self._root

    @property
    def path(self) -> Path:
        return self._root / INDEX_FILE_NAME

    @property
    def store_path(self) -> Path:
        return self._root / STORE_DIR_NAME

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def resolve_path(self, entry: CacheEntry) -> Path:
        """Absolute location of an entry's backing file."""
        return self._root.parent / entry.relative_path

    def relative_path_for(self, file_path: Path) -> str:
        """POSIX path of a store file relative to the cache root's parent.

        Raises ValueError when *file_path* is not under the cache root.
        """
        file_path = Path(file_path)
        try:
            relative = file_path.relative_to(self._root.parent)
        except ValueError:
            # The deployer may hand back a resolved path; compare real locations.
            relative = file_path.resolve().relative_to(self._root.resolve().parent)
        return PurePosixPath(*relative.parts).as_posix()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(
        self, *, require_files: bool = False, require_index: bool = False
    ) -> list[CacheEntry]:
        """Read every entry in file order.

        A missing index file is an empty cache, unless ``require_index`` is
        set, in which case it is a CorruptIndexError. With ``require_files``,
        every entry's backing file must exist.
        """
        if not self.path.exists():
            if require_index:
                raise CorruptIndexError(f"Unable to read cache index {self.path}: no such file")
            return []
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CorruptIndexError(f"Unable to read cache index {self.path}: {exc}") from exc

        entries: list[CacheEntry] = []
        seen: set[str] = set()
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            entry = parse_line(line, line_number)
            if entry.key in seen:
                raise CorruptIndexError(
                    f"Index line {line_number}: duplicate coordinate {entry.key}"
                )
            seen.add(entry.key)
            if require_files and not self.resolve_path(entry).is_file():
                raise CorruptIndexError(
                    f"Indexed artifact {entry.key} is missing from the store: "
                    f"{self.resolve_path(entry)}"
                )
            entries.append(entry)

        logger.debug("Loaded %d index entries from %s", len(entries), self.path)
        return entries

    def coordinate_key_set(self) -> set[str]:
        """Keys of every indexed coordinate."""
        return coordinate_key_set(self.load())

    def missing_files(self) -> list[str]:
        """Keys whose backing file no longer exists, in index order."""
        return [
            entry.key for entry in self.load() if not self.resolve_path(entry).is_file()
        ]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, new_entries: Iterable[CacheEntry]) -> list[CacheEntry]:
        """Merge *new_entries* into the index and rewrite it atomically.

        Existing order is kept; a re-added key takes the new path in place.
        Returns the merged entries.
        """
        merged: dict[str, CacheEntry] = {entry.key: entry for entry in self.load()}
        added = 0
        for entry in new_entries:
            if entry.key not in merged:
                added += 1
            merged[entry.key] = entry

        entries = list(merged.values())
        self._write(entries)
        logger.info(
            "Cache index %s now holds %d entries (%d new)", self.path, len(entries), added
        )
        return entries

    def _write(self, entries: list[CacheEntry]) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{entry.to_line()}\n" for entry in entries)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{INDEX_FILE_NAME}.", suffix=".tmp", dir=self._root
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


def load(
    cache_root: Path, *, require_files: bool = False, require_index: bool = False
) -> list[CacheEntry]:
    """Read the index of *cache_root*."""
    return CacheIndex(cache_root).load(
        require_files=require_files, require_index=require_index
    )


def append(cache_root: Path, new_entries: Iterable[CacheEntry]) -> list[CacheEntry]:
    """Merge *new_entries* into the index of *cache_root*."""
    return CacheIndex(cache_root).append(new_entries)
