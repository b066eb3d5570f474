"""Integration tests for the GitHub HTTP client."""

import httpx
import pytest

from specref_mcp.core.errors import RateLimitExceededError, RepositoryFetchError
from specref_mcp.references.github import GitHubClient, format_reset_time

API = "https://api.github.com/repos/o/r"


class TestGet:
    """Tests for GitHubClient.get and friends."""

    @pytest.mark.asyncio
    async def test_not_found_is_none(self, network):
        async with network.client() as client:
            assert await GitHubClient(client).get(API) is None

    @pytest.mark.asyncio
    async def test_rate_limit(self, network):
        """Test 403 with no remaining requests raises the rate limit error."""
        network.add(API, status=403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "0"})

        async with network.client() as client:
            with pytest.raises(RateLimitExceededError) as exc_info:
                await GitHubClient(client).get(API)

        assert exc_info.value.url == API
        assert exc_info.value.reset_at == "1970-01-01 00:00:00 UTC"

    @pytest.mark.asyncio
    async def test_forbidden_without_exhausted_limit(self, network):
        """Test a plain 403 is an ordinary fetch error."""
        network.add(API, status=403, headers={"X-RateLimit-Remaining": "12"})

        async with network.client() as client:
            with pytest.raises(RepositoryFetchError) as exc_info:
                await GitHubClient(client).get(API)

        assert not isinstance(exc_info.value, RateLimitExceededError)
        assert "403" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, network):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        network.add_handler(API, refuse)

        async with network.client() as client:
            with pytest.raises(RepositoryFetchError) as exc_info:
                await GitHubClient(client).get(API)
        assert exc_info.value.url == API

    @pytest.mark.asyncio
    async def test_malformed_json(self, network):
        network.add(API, text="{broken")

        async with network.client() as client:
            with pytest.raises(RepositoryFetchError, match="Malformed JSON"):
                await GitHubClient(client).get_json(API)


class TestCredentials:
    """Tests for token handling."""

    @pytest.mark.asyncio
    async def test_token_only_sent_to_github(self, network):
        """Test the token reaches GitHub hosts but not published sites."""
        site = "https://example.github.io/spec/index.html"
        raw = "https://raw.githubusercontent.com/o/r/main/docs/index.html"
        for url in (API, site, raw):
            network.add(url, text="ok")

        async with network.client() as client:
            github = GitHubClient(client, token="secret")
            for url in (API, site, raw):
                await github.get(url)

        headers = {str(request.url): request.headers for request in network.requests}
        assert headers[API]["Authorization"] == "token secret"
        assert headers[raw]["Authorization"] == "token secret"
        assert "Authorization" not in headers[site]
        assert headers[API]["Accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self, network):
        network.add(API, json_data={})

        async with network.client() as client:
            await GitHubClient(client).get(API)

        assert "Authorization" not in network.requests[0].headers


class TestRepositoryHelpers:
    """Tests for specs.json, commit and avatar lookups."""

    @pytest.mark.asyncio
    async def test_specs_json_is_decoded(self, network):
        network.add_specs_json("o", "r", "./docs")

        async with network.client() as client:
            specs = await GitHubClient(client).fetch_specs_json("o", "r")

        assert specs == {"specs": [{"output_path": "./docs"}]}

    @pytest.mark.asyncio
    async def test_specs_json_bad_payload(self, network):
        network.add(f"{API}/contents/specs.json", json_data={"content": "!!!not base64"})

        async with network.client() as client:
            with pytest.raises(RepositoryFetchError, match="Malformed specs.json"):
                await GitHubClient(client).fetch_specs_json("o", "r")

    @pytest.mark.asyncio
    async def test_branch_sha_errors_are_swallowed(self, network):
        """Test a broken branch answer yields None rather than failing."""
        network.add(f"{API}/branches/main", status=500)

        async with network.client() as client:
            assert await GitHubClient(client).fetch_branch_sha("o", "r", "main") is None

    @pytest.mark.asyncio
    async def test_branch_sha_rate_limit_propagates(self, network):
        network.add(f"{API}/branches/main", status=429, headers={"X-RateLimit-Remaining": "0"})

        async with network.client() as client:
            with pytest.raises(RateLimitExceededError):
                await GitHubClient(client).fetch_branch_sha("o", "r", "main")

    @pytest.mark.asyncio
    async def test_file_commit_sha(self, network):
        network.add(f"{API}/commits?path=docs/index.html&per_page=1", json_data=[{"sha": "c0ffee"}])

        async with network.client() as client:
            sha = await GitHubClient(client).fetch_file_commit_sha("o", "r", "/docs/index.html")

        assert sha == "c0ffee"

    @pytest.mark.asyncio
    async def test_file_commit_sha_empty_history(self, network):
        network.add(f"{API}/commits?path=docs/index.html&per_page=1", json_data=[])

        async with network.client() as client:
            assert await GitHubClient(client).fetch_file_commit_sha("o", "r", "docs/index.html") is None

    @pytest.mark.asyncio
    async def test_avatar(self, network):
        network.add(API, json_data={"owner": {"avatar_url": "https://avatars.example/o.png"}})

        async with network.client() as client:
            assert await GitHubClient(client).fetch_avatar_url("o", "r") == "https://avatars.example/o.png"

    @pytest.mark.asyncio
    async def test_avatar_missing_owner(self, network):
        network.add(API, json_data={"name": "r"})

        async with network.client() as client:
            assert await GitHubClient(client).fetch_avatar_url("o", "r") is None

    def test_raw_file_url(self):
        github = GitHubClient(httpx.AsyncClient())
        assert github.raw_file_url("o", "r", "main", "/docs/index.html") == (
            "https://raw.githubusercontent.com/o/r/main/docs/index.html"
        )


@pytest.mark.parametrize("reset,expected", [
    ("1700000000", "2023-11-14 22:13:20 UTC"),
    (None, "an unknown time"),
    ("soon", "an unknown time"),
])
def test_format_reset_time(reset, expected):
    assert format_reset_time(reset) == expected
