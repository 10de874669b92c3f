# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""GitHub API client for the PR contributor sorter.

Two transports are used:

1. REST (core bucket)
   - GET /repos/{owner}/{repo}/pulls/{pr_number}   (one PR per call)
   - GET /repos/{owner}/{repo}/pulls?state=open    (listing, CLI only)
   - Anonymous limit is 60 calls/hour; 403/429 means the bucket is exhausted.

2. GraphQL (point-based bucket, token required)
   - POST /graphql with one aliased `pullRequest` sub-query per PR
   - One round trip regardless of the number of PRs.

All calls are counted in GITHUB_API_STATS so the CLI can print a per-run summary.
"""

# Standard library imports
import logging
import threading
import time
import urllib.parse
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Third-party imports
import requests
import yaml

from .errors import GitHubAPIError, RateLimitedError

# Module logger
_logger = logging.getLogger(__name__)

GITHUB_API_BASE_URL = "https://api.github.com"
USER_AGENT = "PR-Contributor-Sorter/2.0"


# ======================================================================================
# GLOBAL API STATISTICS
# ======================================================================================

class _GitHubAPIStats:
    """Global singleton for tracking GitHub API call statistics."""

    def __init__(self):
        self._api_call_log_mu = threading.Lock()
        self.reset()

    def reset(self):
        """Reset all statistics (useful for testing)."""
        # REST call stats
        self.rest_calls_total = 0
        self.rest_calls_by_label = {}  # Dict[str, int] - count by API endpoint label
        self.rest_success_total = 0
        self.rest_time_total_s = 0.0

        # GraphQL call stats
        self.graphql_calls_total = 0
        self.graphql_errors_total = 0
        self.graphql_time_total_s = 0.0

        # Error stats
        self.rest_errors_total = 0
        self.rest_errors_by_status = {}  # Dict[int, int]
        self.rest_last_error = {}  # Dict[str, Any]

        # Rate limit info (last seen in response headers)
        self.core_rate_limit = None  # Optional[Dict] - {remaining, limit, reset_epoch, reset_local}

        # Ordered log of issued calls, e.g. {"seq": 1, "kind": "rest", "text": "REST GET ..."}
        with self._api_call_log_mu:
            self._api_call_log_seq = 0
            self._api_call_log = []  # List[Dict[str, Any]]

    def log_actual_api_call(self, *, kind: str, text: str) -> None:
        """Append an ordered, human-readable API call record."""
        k = str(kind or "").strip() or "unknown"
        t = str(text or "").strip()
        if not t:
            return
        with self._api_call_log_mu:
            self._api_call_log_seq = int(self._api_call_log_seq) + 1
            self._api_call_log.append({"seq": int(self._api_call_log_seq), "kind": k, "text": t})

    def get_actual_api_call_log(self) -> List[Dict[str, Any]]:
        """Return a copy of ordered API call records."""
        with self._api_call_log_mu:
            return list(self._api_call_log)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rest_calls_total": self.rest_calls_total,
            "rest_calls_by_label": dict(self.rest_calls_by_label),
            "rest_success_total": self.rest_success_total,
            "rest_errors_total": self.rest_errors_total,
            "rest_errors_by_status": dict(self.rest_errors_by_status),
            "rest_time_total_s": round(self.rest_time_total_s, 3),
            "graphql_calls_total": self.graphql_calls_total,
            "graphql_errors_total": self.graphql_errors_total,
            "graphql_time_total_s": round(self.graphql_time_total_s, 3),
            "core_rate_limit": dict(self.core_rate_limit or {}),
        }


# Global instance - all code writes to this
GITHUB_API_STATS = _GitHubAPIStats()


def _safe_int(x: Any) -> Optional[int]:
    try:
        return int(x)
    except (ValueError, TypeError):
        return None


class GitHubAPIClient:
    """GitHub API client with rate limit handling.

    Authentication is explicit: the client is authenticated only when a token is
    passed in. Use get_github_token_from_file() to import a token from the local
    GitHub CLI configuration.

    Example:
        client = GitHubAPIClient(token="ghp_...")
        pr_data = client.get("/repos/owner/repo/pulls/123")
    """

    @staticmethod
    def get_github_token_from_file() -> Optional[str]:
        """Get a GitHub token from a local config file.

        Supported locations (first match wins):
        - ~/.config/github-token   (single line token)
        - ~/.config/gh/hosts.yml   (GitHub CLI login; oauth_token)
        """
        try:
            token_file = Path.home() / ".config" / "github-token"
            if token_file.exists():
                tok = (token_file.read_text() or "").strip()
                if tok:
                    return tok
        except OSError:  # File read errors
            pass
        return GitHubAPIClient.get_github_token_from_cli()

    @staticmethod
    def get_github_token_from_cli() -> Optional[str]:
        """Get GitHub token from GitHub CLI configuration (~/.config/gh/hosts.yml)."""
        try:
            gh_config_path = Path.home() / '.config' / 'gh' / 'hosts.yml'
            if gh_config_path.exists():
                with open(gh_config_path, 'r') as f:
                    config = yaml.safe_load(f)
                    if config and 'github.com' in config:
                        github_config = config['github.com'] or {}
                        if 'oauth_token' in github_config:
                            return github_config['oauth_token']
                        for _user, user_config in (github_config.get('users') or {}).items():
                            if isinstance(user_config, dict) and 'oauth_token' in user_config:
                                return user_config['oauth_token']
        except (OSError, yaml.YAMLError):  # File read or YAML parse errors
            pass
        return None

    def __init__(self, token: Optional[str] = None, *, debug_rest: bool = False):
        """Initialize GitHub API client.

        Args:
            token: GitHub personal access token. None means anonymous (REST only, 60/hour).
            debug_rest: Log every request/response at DEBUG level.
        """
        self.token = (token or "").strip() or None
        self.base_url = GITHUB_API_BASE_URL
        self.headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': USER_AGENT,
        }
        if self.token:
            self.headers['Authorization'] = f'Bearer {self.token}'
        self.logger = logging.getLogger(self.__class__.__name__)
        self._debug_rest = bool(debug_rest)

        # Rate limit info from the most recent response headers.
        # Format: {"remaining": 0, "limit": 60, "reset_epoch": 1766947200, "reset_local": "..."}
        self._cached_rate_limit_info: Optional[Dict[str, Any]] = None

    def has_token(self) -> bool:
        """Check if a GitHub token is configured."""
        return self.token is not None

    @staticmethod
    def _rest_label_for_url(url: str) -> str:
        """Short label for stats (e.g. 'pull_request', 'pulls_list')."""
        path = urllib.parse.urlparse(str(url or "")).path.rstrip("/")
        parts = [p for p in path.split("/") if p]
        if parts == ["rate_limit"]:
            return "rate_limit"
        if len(parts) == 5 and parts[0] == "repos" and parts[3] == "pulls":
            return "pull_request"
        if len(parts) == 4 and parts[0] == "repos" and parts[3] == "pulls":
            return "pulls_list"
        return "other"

    def _record_rate_limit_headers(self, resp: requests.Response) -> None:
        """Cache X-RateLimit-* headers (informational only)."""
        remaining = _safe_int(resp.headers.get("X-RateLimit-Remaining"))
        limit = _safe_int(resp.headers.get("X-RateLimit-Limit"))
        reset_epoch = _safe_int(resp.headers.get("X-RateLimit-Reset"))
        if remaining is None and limit is None and reset_epoch is None:
            return
        reset_local = "unknown"
        if reset_epoch is not None:
            try:
                reset_local = datetime.fromtimestamp(int(reset_epoch)).astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
            except (OverflowError, OSError, ValueError):
                reset_local = "unknown"
        self._cached_rate_limit_info = {
            "remaining": remaining,
            "limit": limit,
            "reset_epoch": reset_epoch,
            "reset_local": reset_local,
        }
        GITHUB_API_STATS.core_rate_limit = dict(self._cached_rate_limit_info)

    def get_cached_rate_limit_info(self) -> Optional[Dict[str, Any]]:
        return dict(self._cached_rate_limit_info) if self._cached_rate_limit_info else None

    def _rest_get(self, url: str, *, timeout: int = 10, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """requests.get wrapper that increments per-run counters."""
        label = self._rest_label_for_url(url)

        GITHUB_API_STATS.rest_calls_total += 1
        GITHUB_API_STATS.rest_calls_by_label[label] = int(GITHUB_API_STATS.rest_calls_by_label.get(label, 0) or 0) + 1
        url_full = str(url or "")
        if params:
            q = urllib.parse.urlencode(params, doseq=True)
            if q:
                url_full = f"{url_full}{'&' if '?' in url_full else '?'}{q}"
        GITHUB_API_STATS.log_actual_api_call(kind="rest", text=f"REST GET {url_full}  # {label}")
        if self._debug_rest:
            self.logger.debug("GH REST GET [%s] %s", label, url_full)

        t0 = time.monotonic()
        try:
            resp = requests.get(url, headers=dict(self.headers), params=params, timeout=timeout)
        finally:
            GITHUB_API_STATS.rest_time_total_s += max(0.0, time.monotonic() - t0)

        code = int(resp.status_code or 0)
        if code and code < 400:
            GITHUB_API_STATS.rest_success_total += 1
        else:
            GITHUB_API_STATS.rest_errors_total += 1
            GITHUB_API_STATS.rest_errors_by_status[code] = int(GITHUB_API_STATS.rest_errors_by_status.get(code, 0) or 0) + 1
            GITHUB_API_STATS.rest_last_error = {"status": code, "url": url_full, "body": (resp.text or "")[:300]}

        self._record_rate_limit_headers(resp)
        if self._debug_rest:
            self.logger.debug("GH REST RESP [%s] status=%s remaining=%s", label, code, resp.headers.get("X-RateLimit-Remaining"))
        return resp

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, timeout: int = 10) -> Any:
        """Make GET request to GitHub API.

        Args:
            endpoint: API endpoint (e.g., "/repos/owner/repo/pulls/123")
            params: Query parameters
            timeout: Request timeout in seconds

        Returns:
            Parsed JSON response.

            Example return value for the pull request endpoint (fields used here):
            {
                "number": 1234,
                "author_association": "FIRST_TIME_CONTRIBUTOR",
                "created_at": "2026-01-20T10:00:00Z",
                "user": {"login": "johndoe", "id": 583231}
            }

        Raises:
            RateLimitedError: 403 or 429 (rate limit bucket exhausted).
            GitHubAPIError: transport failure, any other non-2xx status, non-JSON body.
        """
        url = f"{self.base_url}{endpoint}" if endpoint.startswith('/') else f"{self.base_url}/{endpoint}"

        try:
            response = self._rest_get(url, timeout=timeout, params=params)
        except requests.exceptions.RequestException as e:
            raise GitHubAPIError(f"GitHub API request failed for {endpoint}: {e}") from e

        if response.status_code in (403, 429):
            info = self._cached_rate_limit_info or {}
            self.logger.warning(
                "Rate limit info - Remaining: %s, Reset: %s",
                info.get("remaining"),
                info.get("reset_local"),
            )
            raise RateLimitedError(
                f"GitHub API rate limit exceeded ({response.status_code}). Add a GitHub token for unlimited requests.",
                remaining=info.get("remaining"),
                reset_epoch=info.get("reset_epoch"),
            )

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {response.reason}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(f"GitHub API returned invalid JSON for {endpoint}", status_code=response.status_code) from e

    def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None, timeout: int = 30) -> Dict[str, Any]:
        """POST a GraphQL query and return the decoded response body.

        Response-level `errors` are NOT interpreted here; callers decide whether
        a partial `data` object is usable.

        Raises:
            GitHubAPIError: no token, transport failure, non-2xx status, non-JSON body.
        """
        if not self.token:
            raise GitHubAPIError("GitHub GraphQL API requires a token")

        url = f"{self.base_url}/graphql"
        GITHUB_API_STATS.graphql_calls_total += 1
        GITHUB_API_STATS.log_actual_api_call(kind="graphql", text=f"GraphQL POST {url}  # {len(query)} chars")
        if self._debug_rest:
            self.logger.debug("GH GraphQL POST %s variables=%s", url, variables)

        headers = dict(self.headers)
        headers['Content-Type'] = 'application/json'
        t0 = time.monotonic()
        try:
            response = requests.post(
                url,
                headers=headers,
                json={"query": query, "variables": dict(variables or {})},
                timeout=timeout,
            )
        except requests.exceptions.RequestException as e:
            GITHUB_API_STATS.graphql_errors_total += 1
            raise GitHubAPIError(f"GraphQL request failed: {e}") from e
        finally:
            GITHUB_API_STATS.graphql_time_total_s += max(0.0, time.monotonic() - t0)

        if not response.ok:
            GITHUB_API_STATS.graphql_errors_total += 1
            raise GitHubAPIError(
                f"GraphQL API error: {response.status_code} - {response.reason}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            GITHUB_API_STATS.graphql_errors_total += 1
            raise GitHubAPIError("GraphQL API returned invalid JSON", status_code=response.status_code) from e
        if not isinstance(body, dict):
            GITHUB_API_STATS.graphql_errors_total += 1
            raise GitHubAPIError("GraphQL API returned a non-object body", status_code=response.status_code)
        return body

    def list_pull_requests(self, owner: str, repo: str, *, state: str = "open", per_page: int = 30) -> List[Dict[str, Any]]:
        """First page of pull requests for a repository (REST pulls list)."""
        data = self.get(
            f"/repos/{owner}/{repo}/pulls",
            params={"state": state, "per_page": int(per_page)},
        )
        return [pr for pr in (data or []) if isinstance(pr, dict)]
