"""File digest helpers for repository checksum sidecars.

A repository-layout deploy writes ``<file>.sha1`` and ``<file>.md5`` next to
every artifact, the way a standard remote repository publishes them.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

CHECKSUM_ALGORITHMS: tuple[str, ...] = ("sha1", "md5")

_CHUNK_SIZE = 1024 * 1024


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Return the hex digest of a file, read in 1 MiB chunks."""
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def checksum_path(path: Path, algorithm: str) -> Path:
    """Sidecar path for *path*, e.g. ``lib-1.0.jar.sha1``."""
    return path.with_name(f"{path.name}.{algorithm}")


def write_checksums(path: Path) -> list[Path]:
    """Write one sidecar per algorithm in CHECKSUM_ALGORITHMS."""
    written: list[Path] = []
    for algorithm in CHECKSUM_ALGORITHMS:
        sidecar = checksum_path(path, algorithm)
        sidecar.write_text(file_digest(path, algorithm), encoding="utf-8")
        written.append(sidecar)
    return written


def verify_checksums(path: Path) -> bool:
    """Re-hash *path* and compare against every sidecar that exists.

    Returns True when no sidecar disagrees.
    """
    for algorithm in CHECKSUM_ALGORITHMS:
        sidecar = checksum_path(path, algorithm)
        if not sidecar.exists():
            continue
        expected = sidecar.read_text(encoding="utf-8").strip().split()[0:1]
        if expected and expected[0] != file_digest(path, algorithm):
            return False
    return True
