"""Cache manager — populate a local artifact cache and rebuild repositories from it.

Cache root layout::

    <cacheRoot>/cache.properties   index, one line per cached artifact
    <cacheRoot>/cache/...          store, repository-shaped
    <cacheRoot>/.lock              held by populate and rebuild

Population is best-effort per coordinate and all-or-nothing per batch:

- a coordinate that fails to resolve is skipped and reported in the
  ``PopulateResult``;
- a failed deploy of the resolved batch raises ``CachePopulationError`` and
  leaves the index untouched;
- the index is rewritten only after the deploy succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

from repocache.config import CacheConfig
from repocache.config import config as default_config
from repocache.core.cache_index import CacheIndex, coordinate_key_set
from repocache.core.deployer import ArtifactDeployer, RepositoryLayoutDeployer
from repocache.core.locking import CacheLock
from repocache.core.rebuilder import (
    DEFAULT_REBUILD_PREFIX,
    RepositoryRebuilder,
    TemporaryRepository,
)
from repocache.core.resolver import ArtifactResolver, LocalRepositoryResolver, ResolutionError
from repocache.models.cache import (
    CacheEntry,
    CacheStatus,
    PopulateResult,
    ResolutionFailure,
    ResolvedArtifact,
)
from repocache.models.coordinates import ArtifactCoordinate, coerce_coordinate
from repocache.models.repositories import RepositoryEndpoint

logger = logging.getLogger(__name__)


class CachePopulationError(RuntimeError):
    """Raised when resolved artifacts cannot be deployed into the cache store.

    The store may hold part of the batch; the index does not reference it.
    """


class CacheManager:
    """Orchestrates the cache index, the resolver, and the deployer for one cache root.

    Parameters
    ----------
    cache_root:
        Directory holding the index and the store.
    resolver:
        Resolution backend. Defaults to ``LocalRepositoryResolver``.
    deployer:
        Deployment backend, used for both population and rebuild. Defaults
        to ``RepositoryLayoutDeployer``.
    max_workers:
        Upper bound on concurrent resolutions.
    lock_timeout:
        Seconds to wait for the cache lock.
    """

    def __init__(
        self,
        cache_root: Path,
        resolver: ArtifactResolver | None = None,
        deployer: ArtifactDeployer | None = None,
        *,
        max_workers: int = 4,
        lock_timeout: float = 30.0,
        rebuild_prefix: str = DEFAULT_REBUILD_PREFIX,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._index = CacheIndex(cache_root)
        self._resolver = resolver or LocalRepositoryResolver()
        self._deployer = deployer or RepositoryLayoutDeployer()
        self._max_workers = max_workers
        self._lock = CacheLock(cache_root, timeout=lock_timeout)
        self._rebuilder = RepositoryRebuilder(self._deployer, prefix=rebuild_prefix)

    @classmethod
    def from_config(
        cls, settings: CacheConfig | None = None, **overrides: Any
    ) -> CacheManager:
        """Build a manager from ``CacheConfig`` (the module singleton by default)."""
        settings = settings or default_config
        kwargs: dict[str, Any] = {
            "max_workers": settings.max_workers,
            "lock_timeout": settings.lock_timeout_seconds,
            "rebuild_prefix": settings.rebuild_prefix,
            "resolver": LocalRepositoryResolver(verify=settings.verify_checksums),
        }
        kwargs.update(overrides)
        cache_root = kwargs.pop("cache_root", settings.cache_root)
        return cls(cache_root, **kwargs)

    @property
    def index(self) -> CacheIndex:
        return self._index

    @property
    def cache_root(self) -> Path:
        return self._index.cache_root

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    def missing(
        self, required: Iterable[ArtifactCoordinate | str]
    ) -> set[ArtifactCoordinate]:
        """Required coordinates that are not in the index."""
        cached = self._index.coordinate_key_set()
        return {c for c in map(coerce_coordinate, required) if c.key not in cached}

    # ------------------------------------------------------------------
    # Populate
    # ------------------------------------------------------------------

    def populate(
        self,
        required: Iterable[ArtifactCoordinate | str],
        remote_repositories: Sequence[RepositoryEndpoint],
    ) -> PopulateResult:
        """Resolve and cache every required coordinate not already indexed.

        Returns a PopulateResult listing what was cached and which
        coordinates failed to resolve. Raises CachePopulationError if the
        resolved batch cannot be deployed. Raises CorruptIndexError if the
        index is malformed or an indexed artifact is missing from the store;
        run ``verify()`` to list such entries. Raises CacheLockError if
        another operation holds the cache.
        """
        coordinates = {coerce_coordinate(c) for c in required}
        repositories = list(remote_repositories)

        with self._lock.hold("populate"):
            cached_keys = coordinate_key_set(self._index.load(require_files=True))
            missing = sorted(
                (c for c in coordinates if c.key not in cached_keys), key=lambda c: c.key
            )
            already_cached = len(coordinates) - len(missing)

            if not missing:
                logger.info(
                    "All %d required artifact(s) already cached in %s",
                    len(coordinates),
                    self.cache_root,
                )
                return PopulateResult(
                    requested=len(coordinates), already_cached=already_cached
                )

            logger.info(
                "Resolving %d of %d required artifact(s) from %d repositor%s",
                len(missing),
                len(coordinates),
                len(repositories),
                "y" if len(repositories) == 1 else "ies",
            )
            resolved, failures = self._resolve_all(missing, repositories)

            cached: list[ArtifactCoordinate] = []
            if resolved:
                entries = self._deploy_to_store(resolved)
                self._index.append(entries)
                cached = [entry.coordinate for entry in entries]

        for failure in failures:
            logger.warning(
                "Skipped %s: %s", failure.coordinate.key, failure.reason
            )
        logger.info(
            "Cached %d artifact(s), %d failed to resolve", len(cached), len(failures)
        )
        return PopulateResult(
            requested=len(coordinates),
            already_cached=already_cached,
            cached=cached,
            failures=failures,
        )

    def _resolve_all(
        self,
        missing: list[ArtifactCoordinate],
        repositories: list[RepositoryEndpoint],
    ) -> tuple[list[ResolvedArtifact], list[ResolutionFailure]]:
        """Resolve coordinates in parallel, collecting per-coordinate failures.

        Any exception escaping this method (e.g. KeyboardInterrupt) cancels
        the pending resolutions; nothing has been written at that point.
        """
        resolved: dict[str, ResolvedArtifact] = {}
        failures: dict[str, ResolutionFailure] = {}
        repo_ids = [r.id for r in repositories]

        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(missing)),
            thread_name_prefix="repocache-resolve",
        )
        try:
            futures: dict[Future[ResolvedArtifact], ArtifactCoordinate] = {
                executor.submit(self._resolver.resolve, c, repositories): c
                for c in missing
            }
            for future in as_completed(futures):
                coordinate = futures[future]
                try:
                    artifact = future.result()
                except ResolutionError as exc:
                    failures[coordinate.key] = ResolutionFailure(
                        coordinate=coordinate,
                        reason=exc.reason,
                        repositories=exc.repositories or repo_ids,
                    )
                    continue
                except Exception as exc:
                    failures[coordinate.key] = ResolutionFailure(
                        coordinate=coordinate,
                        reason=f"{type(exc).__name__}: {exc}",
                        repositories=repo_ids,
                    )
                    continue
                if artifact.coordinate != coordinate:
                    artifact = ResolvedArtifact(coordinate=coordinate, path=artifact.path)
                resolved[coordinate.key] = artifact
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        return (
            [resolved[k] for k in sorted(resolved)],
            [failures[k] for k in sorted(failures)],
        )

    def _deploy_to_store(self, artifacts: list[ResolvedArtifact]) -> list[CacheEntry]:
        store = self._index.store_path
        try:
            paths = self._deployer.deploy(store, artifacts)
        except Exception as exc:
            raise CachePopulationError(
                f"Unable to cache {len(artifacts)} resolved artifact(s) in {store}: {exc}"
            ) from exc
        if len(paths) != len(artifacts):
            raise CachePopulationError(
                f"Deployer reported {len(paths)} file(s) for {len(artifacts)} artifact(s)"
            )
        entries: list[CacheEntry] = []
        for artifact, path in zip(artifacts, paths):
            try:
                relative_path = self._index.relative_path_for(path)
            except ValueError as exc:
                raise CachePopulationError(
                    f"Deployer placed {artifact.coordinate.key} outside {store}: {path}"
                ) from exc
            entries.append(CacheEntry(coordinate=artifact.coordinate, relative_path=relative_path))
        return entries

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    def rebuild(self) -> TemporaryRepository:
        """Materialize a temporary, self-contained repository from the cache.

        The caller owns the returned directory and must dispose of it.
        """
        with self._lock.hold("rebuild"):
            return self._rebuilder.rebuild(self._index)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def entries(self) -> list[CacheEntry]:
        return self._index.load()

    def verify(self) -> list[str]:
        """Coordinate keys whose backing file is missing from the store."""
        return self._index.missing_files()

    def status(self) -> CacheStatus:
        entries = self._index.load()
        missing = [e.key for e in entries if not self._index.resolve_path(e).is_file()]
        return CacheStatus(
            cache_root=self.cache_root,
            index_path=self._index.path,
            entry_count=len(entries),
            missing_files=missing,
        )
