"""Async HTTP access to GitHub and published specification sites.

404 answers are normal outcomes and come back as ``None``. Every other
failure raises a ``RepositoryFetchError`` carrying the offending URL; a
spent rate limit raises the distinct ``RateLimitExceededError``.
"""

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from ..constants import GITHUB_API_URL, GITHUB_RAW_URL, REQUEST_TIMEOUT, USER_AGENT
from ..core.errors import RateLimitExceededError, RepositoryFetchError

logger = logging.getLogger(__name__)


def format_reset_time(reset: str | None) -> str:
    """Render an ``X-RateLimit-Reset`` epoch value as a UTC timestamp."""
    try:
        return datetime.fromtimestamp(int(reset), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError, OSError):
        return "an unknown time"


def check_rate_limit(response: httpx.Response, url: str) -> None:
    """Raise when GitHub reports an exhausted rate limit.

    Raises:
        RateLimitExceededError: On 403/429 with ``X-RateLimit-Remaining: 0``
    """
    remaining = response.headers.get("X-RateLimit-Remaining")
    if response.status_code in (403, 429) and remaining == "0":
        raise RateLimitExceededError(url, format_reset_time(response.headers.get("X-RateLimit-Reset")))
    if remaining is not None:
        logger.debug("GitHub API rate limit: %s requests remaining", remaining)


def create_http_client(timeout: float = REQUEST_TIMEOUT, **kwargs: Any) -> httpx.AsyncClient:
    """Build the shared client used for one collection run."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        **kwargs,
    )


class GitHubClient:
    """Thin wrapper over ``httpx.AsyncClient`` for the requests a run needs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        api_url: str = GITHUB_API_URL,
        raw_url: str = GITHUB_RAW_URL,
    ):
        self.client = client
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")

    def _headers(self, url: str) -> dict[str, str]:
        # Credentials only go to GitHub hosts, never to arbitrary published sites
        headers: dict[str, str] = {}
        if url.startswith(self.api_url):
            headers["Accept"] = "application/vnd.github+json"
        if self.token and url.startswith((self.api_url, self.raw_url)):
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def get(self, url: str) -> httpx.Response | None:
        """GET ``url``; returns None on 404.

        Raises:
            RateLimitExceededError: If the rate limit is spent
            RepositoryFetchError: On timeouts, transport errors and other non-200 answers
        """
        try:
            response = await self.client.get(url, headers=self._headers(url))
        except httpx.TimeoutException as e:
            raise RepositoryFetchError(f"Timed out fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise RepositoryFetchError(f"Error fetching {url}: {e}", url=url) from e

        if response.status_code == 404:
            logger.warning("Resource not found: %s", url)
            return None

        check_rate_limit(response, url)

        if response.status_code != 200:
            raise RepositoryFetchError(
                f"HTTP {response.status_code} {response.reason_phrase} for {url}",
                url=url,
            )
        return response

    async def get_text(self, url: str) -> str | None:
        response = await self.get(url)
        return response.text if response is not None else None

    async def get_json(self, url: str) -> Any:
        response = await self.get(url)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RepositoryFetchError(f"Malformed JSON from {url}: {e}", url=url) from e

    def raw_file_url(self, owner: str, repo: str, branch: str, path: str) -> str:
        return f"{self.raw_url}/{owner}/{repo}/{branch}/{path.lstrip('/')}"

    async def fetch_specs_json(self, owner: str, repo: str) -> dict[str, Any] | None:
        """Read specs.json through the contents API (base64 payload)."""
        url = f"{self.api_url}/repos/{owner}/{repo}/contents/specs.json"
        logger.info("Fetching specs.json from: %s", url)
        payload = await self.get_json(url)
        if payload is None:
            return None

        try:
            content = base64.b64decode(payload["content"]).decode("utf-8")
            specs = json.loads(content)
        except (KeyError, TypeError, binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RepositoryFetchError(f"Malformed specs.json from {url}: {e}", url=url) from e

        if not isinstance(specs, dict):
            raise RepositoryFetchError(f"Malformed specs.json from {url}: not an object", url=url)
        return specs

    async def fetch_branch_sha(self, owner: str, repo: str, branch: str) -> str | None:
        """Head commit of a branch, or None when it cannot be determined.

        Raises:
            RateLimitExceededError: If the rate limit is spent
        """
        url = f"{self.api_url}/repos/{owner}/{repo}/branches/{quote(branch, safe='')}"
        try:
            data = await self.get_json(url)
            sha = data["commit"]["sha"] if data else None
        except RateLimitExceededError:
            raise
        except (RepositoryFetchError, KeyError, TypeError) as e:
            logger.error("Could not get commit hash from branch %s of %s/%s: %s", branch, owner, repo, e)
            return None

        if sha:
            logger.info("Got commit hash from %s branch: %s", branch, sha)
        return sha

    async def fetch_file_commit_sha(self, owner: str, repo: str, path: str) -> str | None:
        """Latest commit touching ``path``, or None when it cannot be determined.

        Raises:
            RateLimitExceededError: If the rate limit is spent
        """
        normalized = path.lstrip("/")
        url = f"{self.api_url}/repos/{owner}/{repo}/commits?path={quote(normalized)}&per_page=1"
        logger.info("Fetching latest commit for file: %s", url)
        try:
            data = await self.get_json(url)
        except RateLimitExceededError:
            raise
        except RepositoryFetchError as e:
            logger.error("Error fetching commit hash for %s: %s", normalized, e)
            return None

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            logger.error("Could not find commit information for %s", normalized)
            return None
        return data[0].get("sha")

    async def fetch_avatar_url(self, owner: str, repo: str) -> str | None:
        """Owner avatar of a repository; best effort.

        Raises:
            RateLimitExceededError: If the rate limit is spent
        """
        url = f"{self.api_url}/repos/{owner}/{repo}"
        try:
            data = await self.get_json(url)
            return data["owner"]["avatar_url"] if data else None
        except RateLimitExceededError:
            raise
        except (RepositoryFetchError, KeyError, TypeError) as e:
            logger.debug("No avatar for %s/%s: %s", owner, repo, e)
            return None
