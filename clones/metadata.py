# clones Metadata
# Optional repository metadata from the hosting service's API

import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import httpx

GITHUB_HOST = "github.com"
GITHUB_API_URL = "https://api.github.com"
USER_AGENT = "clones-cli"


@dataclass(frozen=True)
class RepoMetadata:
    """Descriptive metadata for a hosted repository."""

    description: Optional[str] = None
    topics: tuple[str, ...] = field(default_factory=tuple)
    stargazers_count: int = 0
    language: Optional[str] = None
    homepage: Optional[str] = None

    @property
    def tags(self) -> Optional[tuple[str, ...]]:
        """Topics in registry tag form (None when there are none)."""
        return tuple(sorted(set(self.topics))) or None


class MetadataProvider(Protocol):
    """Source of repository metadata. Failure is always reported as None."""

    def supports_host(self, host: str) -> bool: ...

    def fetch(self, host: str, owner: str, name: str) -> Optional[RepoMetadata]: ...

    def close(self) -> None: ...


class GitHubMetadataProvider:
    """MetadataProvider backed by the GitHub REST API."""

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        base_url: str = GITHUB_API_URL,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the provider.

        Args:
            token: API token (defaults to $GITHUB_TOKEN, anonymous if unset).
            timeout: Request timeout in seconds.
            base_url: API root.
            http_client: Pre-built client, mainly for tests.
        """
        if token is None:
            token = os.environ.get("GITHUB_TOKEN", "").strip() or None

        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._headers = headers
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._base_url = base_url.rstrip("/")

    def close(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "GitHubMetadataProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def supports_host(self, host: str) -> bool:
        return host.lower() == GITHUB_HOST

    def fetch(self, host: str, owner: str, name: str) -> Optional[RepoMetadata]:
        """
        Fetch metadata for a repository.

        Returns:
            RepoMetadata, or None for non-GitHub hosts and on any failure
            (network, rate limiting, unexpected payload).
        """
        if not self.supports_host(host):
            return None

        try:
            response = self._client.get(f"{self._base_url}/repos/{owner}/{name}", headers=self._headers)
        except httpx.HTTPError:
            return None

        if response.status_code != 200:
            return None

        try:
            payload = response.json()
        except ValueError:
            return None

        return _parse_repo_payload(payload)


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _parse_repo_payload(payload: Any) -> Optional[RepoMetadata]:
    if not isinstance(payload, dict):
        return None

    topics = payload.get("topics") or []
    if not isinstance(topics, list):
        topics = []

    stars = payload.get("stargazers_count")
    return RepoMetadata(
        description=_optional_str(payload.get("description")),
        topics=tuple(topic for topic in topics if isinstance(topic, str) and topic),
        stargazers_count=stars if isinstance(stars, int) else 0,
        language=_optional_str(payload.get("language")),
        homepage=_optional_str(payload.get("homepage")),
    )
