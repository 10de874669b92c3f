"""Base class for cached contributor-record fetch strategies.

Goal: make each strategy readable + debuggable by enforcing a small interface:
- API call "display format"
- shared cache access pattern (re-check cache before any network call)
- consistent cache + network statistics
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, TYPE_CHECKING

from common_types import ContributorRecord

if TYPE_CHECKING:  # pragma: no cover
    from cache.cache_contributors import ContributorCache
    from .. import GitHubAPIClient


@dataclass
class FetchStats:
    """Per-strategy counters for one run."""

    cache_hit: int = 0
    cache_write: int = 0
    network_calls: int = 0
    not_found: int = 0
    failed: int = 0


class ContributorFetchStrategyBase(ABC):
    """Base class for a strategy that fills the contributor cache from GitHub.

    Subclasses define:
    - cache_name / api_call_format (for logs)
    - fetch_many(): the network flow for a list of PR numbers
    """

    def __init__(self, api: "GitHubAPIClient", cache: "ContributorCache"):
        self.api: GitHubAPIClient = api
        self.cache: ContributorCache = cache
        self.stats = FetchStats()

    @property
    @abstractmethod
    def cache_name(self) -> str:
        """Short name used in logs and FetchResult.strategy (e.g. 'rest')."""

    @abstractmethod
    def api_call_format(self) -> str:
        """Human-readable description of the API call(s) this strategy performs."""

    @abstractmethod
    def fetch_many(self, *, owner: str, repo: str, numbers: Sequence[int]) -> Dict[int, ContributorRecord]:
        """Fetch records for `numbers`, caching each one; returns the records obtained."""

    def cached(self, number: int) -> Optional[ContributorRecord]:
        rec = self.cache.get(number)
        if rec is not None:
            self.stats.cache_hit += 1
        return rec

    def store(self, record: ContributorRecord) -> None:
        self.cache.put(record.number, record)
        self.stats.cache_write += 1
