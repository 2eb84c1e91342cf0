"""Runtime configuration — env-driven via pydantic-settings.

Reads ``REPOCACHE_*`` environment variables and an optional ``.env`` file.

Examples
--------
Override via environment::

    export REPOCACHE_CACHE_ROOT=/var/cache/repocache
    export REPOCACHE_MAX_WORKERS=8
    export REPOCACHE_REMOTE_REPOSITORIES='["https://repo1.maven.org/maven2/"]'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from repocache.models.repositories import DEFAULT_REMOTE_REPOSITORIES, RepositoryEndpoint


class CacheConfig(BaseSettings):
    """Cache manager settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REPOCACHE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Storage
    cache_root: Path = Path(".repocache")
    rebuild_prefix: str = "repocache-rebuild-repo"

    # Population
    max_workers: int = Field(default=4, ge=1)
    lock_timeout_seconds: float = 30.0
    verify_checksums: bool = True
    remote_repositories: list[str] = Field(
        default_factory=lambda: [r.url for r in DEFAULT_REMOTE_REPOSITORIES]
    )

    def repository_endpoints(self) -> list[RepositoryEndpoint]:
        """``remote_repositories`` as endpoints, keeping the well-known ids."""
        known = {r.url: r for r in DEFAULT_REMOTE_REPOSITORIES}
        return [known.get(url) or RepositoryEndpoint.from_url(url) for url in self.remote_repositories]


# Module-level singleton: import as `from repocache.config import config`
config = CacheConfig()
