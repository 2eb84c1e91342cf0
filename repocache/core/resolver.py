"""Artifact resolution — the capability that fetches artifact bytes.

The cache manager only orchestrates resolution; the protocol client that
talks to remote repositories is supplied by the caller. Any object with a
``resolve(coordinate, repositories) -> ResolvedArtifact`` method satisfies
``ArtifactResolver``.

``LocalRepositoryResolver`` is the default backend: it looks artifacts up in
repository-layout directories (plain paths or ``file://`` URLs) and skips
endpoints it cannot reach locally.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from repocache.core.hasher import verify_checksums
from repocache.models.cache import ResolvedArtifact
from repocache.models.coordinates import ArtifactCoordinate
from repocache.models.repositories import RepositoryEndpoint

logger = logging.getLogger(__name__)


class ResolutionError(RuntimeError):
    """Raised when a coordinate cannot be resolved from any repository."""

    def __init__(
        self,
        coordinate: ArtifactCoordinate,
        reason: str,
        repositories: Sequence[RepositoryEndpoint] = (),
    ) -> None:
        self.coordinate = coordinate
        self.reason = reason
        self.repositories = [r.id for r in repositories]
        super().__init__(f"Could not resolve {coordinate.key}: {reason}")


@runtime_checkable
class ArtifactResolver(Protocol):
    """Protocol for artifact resolution backends."""

    def resolve(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RepositoryEndpoint],
    ) -> ResolvedArtifact:
        """Resolve *coordinate* against *repositories*.

        Returns
        -------
        ResolvedArtifact
            The coordinate plus a local file holding its bytes.

        Raises
        ------
        ResolutionError
            When no repository can supply the artifact.
        """
        ...


class LocalRepositoryResolver:
    """Resolve artifacts from repository-layout directories.

    Repositories are tried in order; the first one holding the artifact
    wins. Remote (``http(s)://``) endpoints are skipped.

    Parameters
    ----------
    verify:
        When True, an artifact whose ``.sha1``/``.md5`` sidecar disagrees
        with its bytes is treated as absent from that repository.
    """

    def __init__(self, *, verify: bool = True) -> None:
        self._verify = verify

    def resolve(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RepositoryEndpoint],
    ) -> ResolvedArtifact:
        reasons: list[str] = []
        relative = coordinate.repository_path()
        for repo in repositories:
            if not repo.is_local:
                reasons.append(f"{repo.id}: not a local repository")
                continue
            candidate = repo.local_path() / relative
            if not candidate.is_file():
                reasons.append(f"{repo.id}: not found")
                continue
            if self._verify and not verify_checksums(candidate):
                logger.warning(
                    "Checksum mismatch for %s in repository %s", coordinate.key, repo.id
                )
                reasons.append(f"{repo.id}: checksum mismatch")
                continue
            logger.debug("Resolved %s from %s", coordinate.key, repo.id)
            return ResolvedArtifact(coordinate=coordinate, path=candidate)

        reason = "; ".join(reasons) if reasons else "no repositories given"
        raise ResolutionError(coordinate, reason, repositories)
