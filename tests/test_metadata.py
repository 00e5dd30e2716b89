# Tests for clones.metadata
# GitHub metadata provider over a mocked HTTP transport

import httpx
import pytest

from clones.metadata import GitHubMetadataProvider, RepoMetadata

REPO_PAYLOAD = {
    "full_name": "octo/hello",
    "description": "Hello world",
    "topics": ["python", "cli", "python"],
    "stargazers_count": 42,
    "language": "Python",
    "homepage": "",
}


def _provider(handler, **kwargs) -> GitHubMetadataProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GitHubMetadataProvider(http_client=client, **kwargs)


class TestRepoMetadata:
    """Tests for RepoMetadata."""

    def test_tags_sorted_and_unique(self):
        assert RepoMetadata(topics=("b", "a", "b")).tags == ("a", "b")

    def test_no_topics_means_no_tags(self):
        assert RepoMetadata().tags is None


class TestGitHubMetadataProvider:
    """Tests for GitHubMetadataProvider."""

    def test_fetch_parses_payload(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=REPO_PAYLOAD)

        metadata = _provider(handler, token="").fetch("github.com", "octo", "hello")

        assert metadata == RepoMetadata(
            description="Hello world",
            topics=("python", "cli", "python"),
            stargazers_count=42,
            language="Python",
            homepage=None,
        )
        assert metadata.tags == ("cli", "python")
        assert str(requests[0].url) == "https://api.github.com/repos/octo/hello"
        assert requests[0].headers["Accept"] == "application/vnd.github+json"

    def test_token_sent_as_bearer(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization", "")
            return httpx.Response(200, json=REPO_PAYLOAD)

        _provider(handler).fetch("github.com", "octo", "hello")
        assert seen["auth"] == "Bearer secret"

    def test_anonymous_without_token(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        seen: dict[str, bool] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = "Authorization" in request.headers
            return httpx.Response(200, json=REPO_PAYLOAD)

        _provider(handler).fetch("github.com", "octo", "hello")
        assert seen["auth"] is False

    def test_other_hosts_unsupported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = _provider(handler)
        assert provider.supports_host("GitHub.com")
        assert not provider.supports_host("gitlab.com")
        assert provider.fetch("gitlab.com", "team", "tool") is None

    @pytest.mark.parametrize("status_code", [403, 404, 500])
    def test_error_status_returns_none(self, status_code: int):
        provider = _provider(lambda request: httpx.Response(status_code, json={"message": "nope"}))
        assert provider.fetch("github.com", "octo", "hello") is None

    def test_network_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        assert _provider(handler).fetch("github.com", "octo", "hello") is None

    def test_invalid_json_returns_none(self):
        provider = _provider(lambda request: httpx.Response(200, content=b"<html>"))
        assert provider.fetch("github.com", "octo", "hello") is None

    def test_unexpected_payload(self):
        provider = _provider(lambda request: httpx.Response(200, json=["not", "a", "repo"]))
        assert provider.fetch("github.com", "octo", "hello") is None

    def test_tolerates_bad_field_types(self):
        payload = {"description": 7, "topics": "python", "stargazers_count": "many"}
        metadata = _provider(lambda request: httpx.Response(200, json=payload)).fetch("github.com", "o", "r")
        assert metadata == RepoMetadata()

    def test_context_manager_closes_owned_client(self):
        with GitHubMetadataProvider(token="") as provider:
            assert provider.supports_host("github.com")
