"""repocache data models — all Pydantic v2, all frozen (immutable)."""

from repocache.models.cache import (
    CacheEntry,
    CacheStatus,
    PopulateResult,
    ResolutionFailure,
    ResolvedArtifact,
)
from repocache.models.coordinates import (
    ArtifactCoordinate,
    InvalidCoordinateError,
    coerce_coordinate,
)
from repocache.models.repositories import DEFAULT_REMOTE_REPOSITORIES, RepositoryEndpoint

__all__ = [
    # coordinates
    "ArtifactCoordinate",
    "InvalidCoordinateError",
    "coerce_coordinate",
    # repositories
    "RepositoryEndpoint",
    "DEFAULT_REMOTE_REPOSITORIES",
    # cache records
    "CacheEntry",
    "CacheStatus",
    "PopulateResult",
    "ResolutionFailure",
    "ResolvedArtifact",
]
