"""Unit tests for core/github.py -- GitHubClient with the HTTP session mocked out."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from core.errors import UpstreamFailure
from core.github import GitHubClient


def _response(status_code, payload=None, bad_json=False):
    resp = MagicMock()
    resp.status_code = status_code
    if bad_json:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def client():
    c = GitHubClient("https://api.github.test/", timeout=3)
    yield c
    c.close()


class TestFetchRepositories:
    def test_returns_repo_list_and_sends_query(self, client):
        repos = [{"name": "one"}, {"name": "two"}]
        with patch.object(client._session, "get", return_value=_response(200, repos)) as get:
            assert client.fetch_repositories("octocat") == repos
        get.assert_called_once_with(
            "https://api.github.test/users/octocat/repos",
            params={"per_page": 5, "sort": "created", "direction": "asc"},
            timeout=3,
        )

    def test_non_200_is_upstream_failure(self, client):
        with patch.object(client._session, "get", return_value=_response(404, {"message": "Not Found"})):
            with pytest.raises(UpstreamFailure) as exc:
                client.fetch_repositories("ghost")
        assert exc.value.message == "No GitHub profile found"
        assert exc.value.status_code == 404

    def test_transport_error_is_upstream_failure(self, client):
        with patch.object(client._session, "get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(UpstreamFailure):
                client.fetch_repositories("octocat")

    def test_bad_json_is_upstream_failure(self, client):
        with patch.object(client._session, "get", return_value=_response(200, bad_json=True)):
            with pytest.raises(UpstreamFailure):
                client.fetch_repositories("octocat")


class TestSessionHeaders:
    def test_token_is_sent_as_bearer(self):
        c = GitHubClient("https://api.github.test", token="abc")
        try:
            assert c._session.headers["Authorization"] == "Bearer abc"
            assert c._session.max_redirects == 3
        finally:
            c.close()

    def test_no_token_no_authorization_header(self, client):
        assert "Authorization" not in client._session.headers
        assert client._session.headers["User-Agent"] == "devconnect"
