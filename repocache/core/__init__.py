"""Cache index, resolution, deployment, locking, and rebuild."""

from repocache.core.cache_index import CacheIndex, CorruptIndexError, coordinate_key_set
from repocache.core.cache_manager import CacheManager, CachePopulationError
from repocache.core.deployer import ArtifactDeployer, DeployError, RepositoryLayoutDeployer
from repocache.core.locking import CacheLock, CacheLockError
from repocache.core.rebuilder import RebuildError, RepositoryRebuilder, TemporaryRepository
from repocache.core.resolver import ArtifactResolver, LocalRepositoryResolver, ResolutionError

__all__ = [
    "ArtifactDeployer",
    "ArtifactResolver",
    "CacheIndex",
    "CacheLock",
    "CacheLockError",
    "CacheManager",
    "CachePopulationError",
    "CorruptIndexError",
    "DeployError",
    "LocalRepositoryResolver",
    "RebuildError",
    "RepositoryLayoutDeployer",
    "RepositoryRebuilder",
    "ResolutionError",
    "TemporaryRepository",
    "coordinate_key_set",
]
