"""Artifact deployment — writing resolved bytes into a repository layout.

Both cache population and repository rebuild go through the same
``ArtifactDeployer`` so that the cache store and a rebuilt repository have
the same on-disk shape a live resolution would have produced.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from repocache.core.hasher import write_checksums
from repocache.models.cache import ResolvedArtifact

logger = logging.getLogger(__name__)


class DeployError(RuntimeError):
    """Raised when a batch of artifacts cannot be deployed."""


@runtime_checkable
class ArtifactDeployer(Protocol):
    """Protocol for deployment backends."""

    def deploy(
        self, target_root: Path, artifacts: Sequence[ResolvedArtifact]
    ) -> list[Path]:
        """Deploy *artifacts* under *target_root*.

        Returns
        -------
        list[Path]
            The deployed file of each artifact, in input order.

        Raises
        ------
        DeployError
            When any artifact in the batch cannot be written.
        """
        ...


class RepositoryLayoutDeployer:
    """Copy artifacts to ``group/path/name/version/name-version[-classifier].ext``.

    Each file is written through a temporary sibling and renamed into place,
    then ``.sha1`` and ``.md5`` sidecars are written next to it. If the
    batch fails, files this call created are removed again. Files that
    already existed are not restored: an artifact deployed over an existing
    one keeps the new bytes and its rewritten ``.sha1``/``.md5`` sidecars.
    """

    def __init__(self, *, checksums: bool = True) -> None:
        self._checksums = checksums

    def deploy(
        self, target_root: Path, artifacts: Sequence[ResolvedArtifact]
    ) -> list[Path]:
        target_root = Path(target_root)
        deployed: list[Path] = []
        created: list[Path] = []
        try:
            for artifact in artifacts:
                dest = target_root / artifact.coordinate.repository_path()
                existed = dest.exists()
                self._copy(artifact.path, dest)
                if not existed:
                    created.append(dest)
                if self._checksums:
                    created.extend(p for p in write_checksums(dest) if not existed)
                deployed.append(dest)
                logger.debug("Deployed %s to %s", artifact.coordinate.key, dest)
        except OSError as exc:
            for path in created:
                path.unlink(missing_ok=True)
            raise DeployError(
                f"Unable to deploy {len(artifacts)} artifact(s) to {target_root}: {exc}"
            ) from exc

        logger.info("Deployed %d artifact(s) to %s", len(deployed), target_root)
        return deployed

    @staticmethod
    def _copy(source: Path, dest: Path) -> None:
        if Path(source).resolve() == dest.resolve():
            return
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            shutil.copyfile(source, tmp_path)
            os.replace(tmp_path, dest)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
