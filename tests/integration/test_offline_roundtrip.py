"""End-to-end: populate a cache from a repository, then provision offline from a rebuild.

Exercises CacheManager, CacheIndex, LocalRepositoryResolver,
RepositoryLayoutDeployer, and RepositoryRebuilder working together.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from pathlib import Path

from repocache.core.cache_manager import CacheManager
from repocache.core.resolver import LocalRepositoryResolver
from repocache.models.coordinates import ArtifactCoordinate
from repocache.models.repositories import RepositoryEndpoint


class TestOfflineRoundTrip:
    def test_rebuilt_repository_serves_every_cached_artifact(
        self,
        cache_root: Path,
        publish: Callable[..., ArtifactCoordinate],
        remote_repo: RepositoryEndpoint,
    ):
        required = {
            publish("org.wildfly.core:wildfly-core-galleon-pack:zip::19.0.0.Final"),
            publish("org.wildfly.core:wildfly-server:jar::19.0.0.Final"),
            publish("org.jboss.logging:jboss-logging:jar:sources:3.5.0.Final"),
        }
        manager = CacheManager(cache_root)
        result = manager.populate(required, [remote_repo])
        assert result.ok

        with manager.rebuild() as repo:
            offline = RepositoryEndpoint(id="offline", url=repo.url)
            resolver = LocalRepositoryResolver()
            for coordinate in required:
                artifact = resolver.resolve(coordinate, [offline])
                assert artifact.path.is_relative_to(repo.path)

    def test_remote_disappears_after_caching(
        self,
        cache_root: Path,
        remote_dir: Path,
        publish: Callable[..., ArtifactCoordinate],
        remote_repo: RepositoryEndpoint,
    ):
        lib = publish("org.example:lib:jar::1.0", b"original bytes")
        manager = CacheManager(cache_root)
        manager.populate({lib}, [remote_repo])

        shutil.rmtree(remote_dir)

        # Nothing missing, so the vanished remote is never consulted.
        assert manager.populate({lib}, [remote_repo]).ok
        with manager.rebuild() as repo:
            assert (repo.path / lib.repository_path()).read_bytes() == b"original bytes"

    def test_cache_root_relocates_with_its_parent(
        self,
        tmp_path: Path,
        cache_root: Path,
        publish: Callable[..., ArtifactCoordinate],
        remote_repo: RepositoryEndpoint,
    ):
        lib = publish("org.example:lib:jar::1.0")
        CacheManager(cache_root).populate({lib}, [remote_repo])

        moved_parent = tmp_path / "moved"
        shutil.copytree(cache_root.parent, moved_parent)
        moved = CacheManager(moved_parent / cache_root.name)

        assert moved.verify() == []
        with moved.rebuild() as repo:
            assert (repo.path / lib.repository_path()).is_file()

    def test_incremental_population(
        self,
        cache_root: Path,
        publish: Callable[..., ArtifactCoordinate],
        remote_repo: RepositoryEndpoint,
    ):
        first = publish("org.example:a:jar::1.0")
        second = publish("org.example:b:jar::1.0")
        manager = CacheManager(cache_root)

        manager.populate({first}, [remote_repo])
        result = manager.populate({first, second}, [remote_repo])

        assert result.already_cached == 1
        assert result.cached == [second]
        assert [e.key for e in manager.entries()] == [first.key, second.key]
        with manager.rebuild() as repo:
            assert repo.artifact_count == 2
