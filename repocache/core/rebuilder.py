"""Repository rebuild — replaying the cache index into a fresh repository.

The rebuild is a replay of the deployment log, not a directory copy: every
indexed artifact is re-deployed through the same ``ArtifactDeployer`` used
during population, so the rebuilt repository has exactly the layout a live
resolution would have produced.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from repocache.core.cache_index import CacheIndex
from repocache.core.deployer import ArtifactDeployer
from repocache.models.cache import ResolvedArtifact

logger = logging.getLogger(__name__)

DEFAULT_REBUILD_PREFIX = "repocache-rebuild-repo"


class RebuildError(RuntimeError):
    """Raised when cached artifacts cannot be deployed into the rebuilt repository."""


class TemporaryRepository:
    """Handle to a rebuilt repository directory.

    The caller owns the directory. Nothing removes it automatically; call
    ``cleanup()`` or use the handle as a context manager.
    """

    def __init__(self, path: Path, artifact_count: int = 0) -> None:
        self.path = Path(path)
        self.artifact_count = artifact_count

    @property
    def url(self) -> str:
        """``file://`` URL of the repository root."""
        return self.path.resolve().as_uri()

    def cleanup(self) -> None:
        """Delete the repository directory. Safe to call twice."""
        shutil.rmtree(self.path, ignore_errors=True)

    def __enter__(self) -> TemporaryRepository:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def __fspath__(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"TemporaryRepository({str(self.path)!r}, artifact_count={self.artifact_count})"


class RepositoryRebuilder:
    """Materialize a standalone repository from a cache index and store."""

    def __init__(self, deployer: ArtifactDeployer, *, prefix: str = DEFAULT_REBUILD_PREFIX) -> None:
        self._deployer = deployer
        self._prefix = prefix

    def rebuild(self, index: CacheIndex, target: Path | None = None) -> TemporaryRepository:
        """Deploy every indexed artifact into *target* (or a new temp dir).

        Raises CorruptIndexError if the index file is missing or malformed,
        or an entry's backing file is missing; nothing is created in that
        case. Raises RebuildError if deployment fails or leaves an artifact
        out of the rebuilt layout; a temp dir created here is removed first.
        """
        entries = index.load(require_files=True, require_index=True)
        artifacts = [
            ResolvedArtifact(coordinate=entry.coordinate, path=index.resolve_path(entry))
            for entry in entries
        ]

        created = target is None
        if target is None:
            root = Path(tempfile.mkdtemp(prefix=self._prefix))
        else:
            root = Path(target)
            root.mkdir(parents=True, exist_ok=True)

        try:
            self._deploy(root, artifacts)
        except BaseException:
            if created:
                shutil.rmtree(root, ignore_errors=True)
            raise

        logger.info("Rebuilt repository with %d artifact(s) at %s", len(artifacts), root)
        return TemporaryRepository(root, artifact_count=len(artifacts))

    def _deploy(self, root: Path, artifacts: list[ResolvedArtifact]) -> None:
        try:
            self._deployer.deploy(root, artifacts)
        except Exception as exc:
            raise RebuildError(
                f"Unable to deploy artifacts to rebuild repository {root}: {exc}"
            ) from exc

        # Every indexed artifact must be present in the rebuilt layout.
        for artifact in artifacts:
            if not (root / artifact.coordinate.repository_path()).is_file():
                raise RebuildError(
                    f"Rebuilt repository is missing {artifact.coordinate.key}"
                )
