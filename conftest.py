"""
Shared pytest fixtures: fake clock, in-memory snapshot storage, scripted GitHub API.

Run from the repository root:
    pytest -v
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

_root = Path(__file__).resolve().parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from common_github.errors import GitHubAPIError, RateLimitedError  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1_766_900_000.0):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


class MemoryStorage:
    """SnapshotStorage that keeps the last saved snapshot in memory."""

    def __init__(self, initial: Optional[str] = None):
        self.snapshot = initial
        self.saves = 0

    def load(self) -> Optional[str]:
        return self.snapshot

    def save(self, snapshot: str) -> None:
        self.snapshot = snapshot
        self.saves += 1


def rest_pr(number: int, association: str, login: str = "someone") -> Dict[str, Any]:
    return {
        "number": number,
        "author_association": association,
        "created_at": "2026-01-20T10:00:00Z",
        "user": {"login": login, "id": number * 10},
    }


class FakeGitHubAPI:
    """Stand-in for GitHubAPIClient.

    rest: PR number -> payload dict, or an exception instance to raise.
    graphql_result: response body dict, an exception instance, or a callable(query, variables).
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        rest: Optional[Dict[int, Union[Dict[str, Any], Exception]]] = None,
        graphql_result: Union[None, Dict[str, Any], Exception, Callable[..., Dict[str, Any]]] = None,
    ):
        self.token = token
        self.rest = dict(rest or {})
        self.graphql_result = graphql_result
        self.rest_calls: List[int] = []
        self.graphql_calls: List[Dict[str, Any]] = []

    def has_token(self) -> bool:
        return self.token is not None

    def get(self, endpoint: str, params=None, timeout: int = 10):
        number = int(endpoint.rstrip("/").rsplit("/", 1)[-1])
        self.rest_calls.append(number)
        value = self.rest.get(number)
        if value is None:
            raise GitHubAPIError("GitHub API error: 404 - Not Found", status_code=404)
        if isinstance(value, Exception):
            raise value
        return value

    def graphql(self, query: str, variables=None, timeout: int = 30):
        self.graphql_calls.append({"query": query, "variables": dict(variables or {})})
        result = self.graphql_result
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(query, variables)
        if result is None:
            raise GitHubAPIError("GraphQL request failed: connection reset")
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def rate_limited() -> RateLimitedError:
    return RateLimitedError("GitHub API rate limit exceeded (403).", remaining=0, reset_epoch=1_766_903_600)
