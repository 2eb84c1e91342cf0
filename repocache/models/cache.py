"""Cache records — index entries, resolution outcomes, populate results."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from repocache.models.coordinates import FIELD_SEPARATOR, ArtifactCoordinate


class CacheEntry(BaseModel):
    """One line of the cache index.

    ``relative_path`` is a POSIX path relative to the cache root's parent,
    so the index stays valid when the cache root is copied elsewhere.
    """

    model_config = ConfigDict(frozen=True)

    coordinate: ArtifactCoordinate
    relative_path: str

    @property
    def key(self) -> str:
        return self.coordinate.key

    def to_line(self) -> str:
        """``group:name:extension:classifier:version:relativePath``."""
        return f"{self.coordinate.key}{FIELD_SEPARATOR}{self.relative_path}"


class ResolvedArtifact(BaseModel):
    """A coordinate whose bytes are available in a local file."""

    model_config = ConfigDict(frozen=True)

    coordinate: ArtifactCoordinate
    path: Path


class ResolutionFailure(BaseModel):
    """A coordinate that could not be resolved from any repository."""

    model_config = ConfigDict(frozen=True)

    coordinate: ArtifactCoordinate
    reason: str
    repositories: list[str] = []  # endpoint ids that were tried


class PopulateResult(BaseModel):
    """Outcome of a populate call.

    Resolution failures are reported here rather than raised: one missing
    artifact does not block caching of the rest, but the caller must be
    able to see which coordinates are absent from the cache.
    """

    model_config = ConfigDict(frozen=True)

    requested: int
    already_cached: int
    cached: list[ArtifactCoordinate] = Field(default_factory=list)
    failures: list[ResolutionFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> list[str]:
        return sorted(f.coordinate.key for f in self.failures)


class CacheStatus(BaseModel):
    """Summary of a cache root's index and store."""

    model_config = ConfigDict(frozen=True)

    cache_root: Path
    index_path: Path
    entry_count: int
    missing_files: list[str] = []  # coordinate keys without a backing file

    @property
    def healthy(self) -> bool:
        return not self.missing_files
