"""repocache: offline artifact cache for reproducible provisioning.

Tracks every artifact ever cached in a durable index, resolves and caches
the artifacts a provisioning run needs but the cache lacks, and rebuilds a
self-contained file repository from the cache for fully offline runs.
"""

__version__ = "0.1.0"
__description__ = "Local cache manager and offline repository rebuilder for resolved artifacts"

from repocache.core.cache_manager import CacheManager
from repocache.models.coordinates import ArtifactCoordinate
from repocache.models.repositories import RepositoryEndpoint

__all__ = ["ArtifactCoordinate", "CacheManager", "RepositoryEndpoint", "__version__"]
