"""Cache-root locking.

``populate`` and ``rebuild`` against the same cache root must never
overlap: populate rewrites the index and the store, rebuild reads both as
one snapshot. Every operation on a cache root takes ``<cacheRoot>/.lock``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".lock"


class CacheLockError(RuntimeError):
    """Raised when the cache lock cannot be acquired in time."""


class CacheLock:
    """Exclusive, inter-process lock on a cache root.

    Reentrant within a process, so a locked populate may call helpers that
    lock again.

    Parameters
    ----------
    cache_root:
        The cache root to guard. Created if missing.
    timeout:
        Seconds to wait before raising CacheLockError. ``-1`` waits forever.
    """

    def __init__(self, cache_root: Path, timeout: float = 30.0) -> None:
        self._root = Path(cache_root)
        self._timeout = timeout
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(self._root / LOCK_FILE_NAME)

    @property
    def path(self) -> Path:
        return self._root / LOCK_FILE_NAME

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    @contextmanager
    def hold(self, operation: str = "cache operation") -> Iterator[None]:
        """Hold the lock for the duration of the ``with`` block."""
        try:
            self._lock.acquire(timeout=self._timeout)
        except Timeout as exc:
            raise CacheLockError(
                f"Timeout acquiring lock on {self._root} for {operation} "
                f"after {self._timeout} seconds"
            ) from exc
        logger.debug("Acquired %s for %s", self.path, operation)
        try:
            yield
        finally:
            self._lock.release()
            logger.debug("Released %s", self.path)
