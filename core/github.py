"""
core/github.py -- GitHub repository lookup for profile enrichment.

The API layer depends only on the RepositoryFetcher protocol; the concrete
GitHubClient is built once in the lifespan and stored on app.state.github.
Tests swap in a fake without touching the network.

Any non-200 answer or transport error surfaces as UpstreamFailure, which the
API renders as 404 "No GitHub profile found".
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from core.errors import UpstreamFailure

logger = logging.getLogger("devconnect.github")

_NOT_FOUND_MESSAGE = "No GitHub profile found"


class RepositoryFetcher(Protocol):
    def fetch_repositories(self, username: str) -> list[dict[str, Any]]: ...


class GitHubClient:
    """Fetch the five oldest public repositories of a GitHub user.

    Usage:
        client = GitHubClient("https://api.github.com", token="", timeout=10)
        repos = client.fetch_repositories("octocat")
        client.close()
    """

    def __init__(self, api_url: str, token: str = "", timeout: int = 10) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        # Shared session for connection pooling. max_redirects=3 replaces the
        # requests default of 30 -- one known API needs no long redirect chains.
        self._session = requests.Session()
        self._session.max_redirects = 3
        self._session.headers["Accept"] = "application/vnd.github+json"
        self._session.headers["User-Agent"] = "devconnect"
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def fetch_repositories(self, username: str) -> list[dict[str, Any]]:
        """Return the raw repository list for username.

        Raises UpstreamFailure if GitHub answers non-200 or cannot be reached.
        """
        url = f"{self.api_url}/users/{username}/repos"
        params = {"per_page": 5, "sort": "created", "direction": "asc"}
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("GitHub fetch failed for %s: %s", username, e)
            raise UpstreamFailure(_NOT_FOUND_MESSAGE) from e
        if resp.status_code != 200:
            logger.info("GitHub returned %d for %s", resp.status_code, username)
            raise UpstreamFailure(_NOT_FOUND_MESSAGE)
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFailure(_NOT_FOUND_MESSAGE) from e

    def close(self) -> None:
        self._session.close()
