"""Shared test fixtures for repocache."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from repocache.core.cache_index import CacheIndex
from repocache.core.cache_manager import CacheManager
from repocache.core.deployer import DeployError, RepositoryLayoutDeployer
from repocache.core.resolver import LocalRepositoryResolver, ResolutionError
from repocache.models.cache import ResolvedArtifact
from repocache.models.coordinates import ArtifactCoordinate
from repocache.models.repositories import RepositoryEndpoint


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class RecordingResolver:
    """Wraps LocalRepositoryResolver, recording calls and failing on demand."""

    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail: set[str] = set(fail or ())
        self.calls: list[str] = []
        self._lock = threading.Lock()
        self._inner = LocalRepositoryResolver()

    def resolve(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RepositoryEndpoint],
    ) -> ResolvedArtifact:
        with self._lock:
            self.calls.append(coordinate.key)
        if coordinate.key in self.fail:
            raise ResolutionError(coordinate, "forced failure", repositories)
        return self._inner.resolve(coordinate, repositories)


class FailingDeployer(RepositoryLayoutDeployer):
    """Deploys normally until ``broken`` is set, then raises DeployError."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = False
        self.calls = 0

    def deploy(self, target_root: Path, artifacts: Sequence[ResolvedArtifact]) -> list[Path]:
        self.calls += 1
        if self.broken:
            raise DeployError("disk on fire")
        return super().deploy(target_root, artifacts)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """A not-yet-created cache root under a temp workspace."""
    return tmp_path / "workspace" / "repocache"


@pytest.fixture
def remote_dir(tmp_path: Path) -> Path:
    path = tmp_path / "remote"
    path.mkdir()
    return path


@pytest.fixture
def remote_repo(remote_dir: Path) -> RepositoryEndpoint:
    """A local directory standing in for a remote repository."""
    return RepositoryEndpoint(id="remote", url=str(remote_dir))


@pytest.fixture
def publish(remote_dir: Path) -> Callable[..., ArtifactCoordinate]:
    """Factory fixture: place an artifact in the remote repository."""

    def _factory(key: str, content: bytes | None = None) -> ArtifactCoordinate:
        coordinate = ArtifactCoordinate.parse(key)
        path = remote_dir / coordinate.repository_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if content is not None else f"bytes of {key}".encode())
        return coordinate

    return _factory


@pytest.fixture
def lib_a(publish: Callable[..., ArtifactCoordinate]) -> ArtifactCoordinate:
    return publish("org.example:lib-a:jar::1.0")


@pytest.fixture
def lib_b(publish: Callable[..., ArtifactCoordinate]) -> ArtifactCoordinate:
    return publish("org.example:lib-b:jar:sources:2.1")


@pytest.fixture
def resolver() -> RecordingResolver:
    return RecordingResolver()


@pytest.fixture
def deployer() -> FailingDeployer:
    return FailingDeployer()


@pytest.fixture
def manager(cache_root: Path, resolver: RecordingResolver, deployer: FailingDeployer) -> CacheManager:
    """A CacheManager wired to the recording resolver and breakable deployer."""
    return CacheManager(cache_root, resolver, deployer, max_workers=2, lock_timeout=1.0)


@pytest.fixture
def index(cache_root: Path) -> CacheIndex:
    return CacheIndex(cache_root)
