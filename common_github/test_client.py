"""
Pytest tests for GitHubAPIClient (no network: requests.get/post are replaced).

Run from the repository root:
    pytest common_github/test_client.py -v
"""

import json
import sys
from pathlib import Path

import pytest
import requests

# Set up path for imports
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import common_github
from common_github import GITHUB_API_STATS, GitHubAPIClient
from common_github.errors import GitHubAPIError, RateLimitedError


def _response(status, body=None, headers=None, raw=None):
    r = requests.Response()
    r.status_code = status
    r.reason = {200: "OK", 403: "Forbidden", 404: "Not Found", 502: "Bad Gateway"}.get(status, "")
    r.url = "https://api.github.com/test"
    r.encoding = "utf-8"
    if raw is not None:
        r._content = raw
    else:
        r._content = json.dumps(body if body is not None else {}).encode()
    r.headers.update(headers or {})
    return r


@pytest.fixture(autouse=True)
def _reset_stats():
    GITHUB_API_STATS.reset()
    yield
    GITHUB_API_STATS.reset()


class _Recorder:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


# ============================================================================
# Construction / headers
# ============================================================================

def test_anonymous_client_has_no_authorization_header():
    client = GitHubAPIClient()
    assert not client.has_token()
    assert "Authorization" not in client.headers
    assert client.headers["User-Agent"] == "PR-Contributor-Sorter/2.0"


def test_token_sets_bearer_header():
    client = GitHubAPIClient("  ghp_abc  ")
    assert client.has_token()
    assert client.headers["Authorization"] == "Bearer ghp_abc"


def test_blank_token_is_anonymous():
    assert not GitHubAPIClient("   ").has_token()


# ============================================================================
# REST get()
# ============================================================================

def test_get_returns_json_and_counts_call(monkeypatch):
    rec = _Recorder(_response(200, {"number": 5, "author_association": "NONE"},
                              headers={"X-RateLimit-Remaining": "59", "X-RateLimit-Limit": "60"}))
    monkeypatch.setattr(common_github.requests, "get", rec)

    client = GitHubAPIClient()
    data = client.get("/repos/o/r/pulls/5")

    assert data["author_association"] == "NONE"
    assert rec.calls[0][0] == "https://api.github.com/repos/o/r/pulls/5"
    assert rec.calls[0][1]["timeout"] == 10
    assert GITHUB_API_STATS.rest_calls_total == 1
    assert GITHUB_API_STATS.rest_calls_by_label == {"pull_request": 1}
    assert client.get_cached_rate_limit_info()["remaining"] == 59


@pytest.mark.parametrize("status", [403, 429])
def test_get_rate_limit_raises(monkeypatch, status):
    monkeypatch.setattr(common_github.requests, "get", _Recorder(
        _response(status, {"message": "API rate limit exceeded"},
                  headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1766903600"})))

    with pytest.raises(RateLimitedError) as exc:
        GitHubAPIClient().get("/repos/o/r/pulls/1")
    assert exc.value.remaining == 0
    assert exc.value.reset_epoch == 1766903600
    assert GITHUB_API_STATS.rest_errors_by_status == {status: 1}


def test_get_not_found_raises_api_error(monkeypatch):
    monkeypatch.setattr(common_github.requests, "get", _Recorder(_response(404, {"message": "Not Found"})))
    with pytest.raises(GitHubAPIError) as exc:
        GitHubAPIClient().get("/repos/o/r/pulls/999")
    assert exc.value.status_code == 404


def test_get_transport_error_wrapped(monkeypatch):
    monkeypatch.setattr(common_github.requests, "get", _Recorder(requests.exceptions.ConnectionError("boom")))
    with pytest.raises(GitHubAPIError):
        GitHubAPIClient().get("/repos/o/r/pulls/1")


def test_get_invalid_json(monkeypatch):
    monkeypatch.setattr(common_github.requests, "get", _Recorder(_response(200, raw=b"<html>")))
    with pytest.raises(GitHubAPIError):
        GitHubAPIClient().get("/repos/o/r/pulls/1")


def test_list_pull_requests_passes_params(monkeypatch):
    rec = _Recorder(_response(200, [{"number": 1, "html_url": "https://github.com/o/r/pull/1"}, "junk"]))
    monkeypatch.setattr(common_github.requests, "get", rec)

    pulls = GitHubAPIClient().list_pull_requests("o", "r")
    assert [p["number"] for p in pulls] == [1]
    assert rec.calls[0][1]["params"] == {"state": "open", "per_page": 30}
    assert GITHUB_API_STATS.rest_calls_by_label == {"pulls_list": 1}


# ============================================================================
# GraphQL
# ============================================================================

def test_graphql_requires_token(monkeypatch):
    monkeypatch.setattr(common_github.requests, "post", _Recorder(_response(200, {"data": {}})))
    with pytest.raises(GitHubAPIError):
        GitHubAPIClient().graphql("query { viewer { login } }")


def test_graphql_posts_query_and_variables(monkeypatch):
    rec = _Recorder(_response(200, {"data": {"repository": {}}}))
    monkeypatch.setattr(common_github.requests, "post", rec)

    body = GitHubAPIClient("ghp_x").graphql("query Q { x }", {"owner": "o", "name": "r"})

    assert body == {"data": {"repository": {}}}
    url, kwargs = rec.calls[0]
    assert url == "https://api.github.com/graphql"
    assert kwargs["json"] == {"query": "query Q { x }", "variables": {"owner": "o", "name": "r"}}
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert GITHUB_API_STATS.graphql_calls_total == 1


def test_graphql_http_error(monkeypatch):
    monkeypatch.setattr(common_github.requests, "post", _Recorder(_response(502, {"message": "bad gateway"})))
    with pytest.raises(GitHubAPIError) as exc:
        GitHubAPIClient("ghp_x").graphql("query Q { x }")
    assert exc.value.status_code == 502
    assert GITHUB_API_STATS.graphql_errors_total == 1


def test_graphql_returns_errors_payload_untouched(monkeypatch):
    payload = {"data": None, "errors": [{"message": "Something went wrong"}]}
    monkeypatch.setattr(common_github.requests, "post", _Recorder(_response(200, payload)))
    assert GitHubAPIClient("ghp_x").graphql("query Q { x }") == payload


# ============================================================================
# Token discovery
# ============================================================================

def test_token_from_token_file(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    (tmp_path / ".config").mkdir()
    (tmp_path / ".config" / "github-token").write_text("ghp_fromfile\n")
    assert GitHubAPIClient.get_github_token_from_file() == "ghp_fromfile"


def test_token_from_gh_hosts_yml(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    gh = tmp_path / ".config" / "gh"
    gh.mkdir(parents=True)
    (gh / "hosts.yml").write_text(
        "github.com:\n"
        "    git_protocol: https\n"
        "    users:\n"
        "        octocat:\n"
        "            oauth_token: gho_fromcli\n"
    )
    assert GitHubAPIClient.get_github_token_from_file() == "gho_fromcli"


def test_no_token_sources(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    assert GitHubAPIClient.get_github_token_from_file() is None
