"""Remote repository endpoints."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict

class RepositoryEndpoint(BaseModel):
    """A remote (or local directory) artifact repository.

    ``url`` is a ``file://`` / ``http(s)://`` URL or a plain filesystem path.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    url: str

    @property
    def is_local(self) -> bool:
        """True for ``file://`` URLs and plain paths."""
        scheme = urlparse(self.url).scheme
        # Single-letter schemes are Windows drive letters.
        return scheme in ("", "file") or len(scheme) == 1

    def local_path(self) -> Path:
        """Filesystem root of a local repository."""
        if not self.is_local:
            raise ValueError(f"Repository {self.id!r} is not local: {self.url}")
        parsed = urlparse(self.url)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        return Path(self.url)

    @classmethod
    def from_url(cls, url: str, repo_id: str | None = None) -> RepositoryEndpoint:
        """Build an endpoint, deriving an id from the URL when none is given."""
        if repo_id is None:
            parsed = urlparse(url)
            repo_id = parsed.netloc or Path(parsed.path).name or "local"
        return cls(id=repo_id, url=url)

DEFAULT_REMOTE_REPOSITORIES: tuple[RepositoryEndpoint, ...] = (
    RepositoryEndpoint(id="maven-central", url="https://repo1.maven.org/maven2/"),
    RepositoryEndpoint(
        id="nexus",
        url="https://repository.jboss.org/nexus/content/groups/public-jboss",
    ),
    RepositoryEndpoint(id="maven-redhat-ga", url="https://maven.repository.redhat.com/ga"),
)
