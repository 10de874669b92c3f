# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""PR author association, sequential strategy (REST, one call per PR).

Resource:
  GET /repos/{owner}/{repo}/pulls/{pr_number}

Example API Response (fields used):
  {
    "number": 1234,
    "author_association": "FIRST_TIME_CONTRIBUTOR",
    "created_at": "2026-01-20T10:00:00Z",
    "user": {"login": "contributor123", "id": 583231}
  }

Flow per PR:
  1) re-check the cache (a failed GraphQL batch may have run first)
  2) GET the PR, normalize, cache
  3) anonymous: sleep 0.5s before the next network call (60 calls/hour bucket)

Failures:
  - 403/429 -> RateLimitedError; the loop stops, remaining PRs are not attempted
  - anything else -> ItemFetchError, logged, loop continues with the next PR
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Sequence

from common import UNAUTHENTICATED_REQUEST_DELAY_S
from common_types import ContributorRecord

from ..errors import GitHubAPIError, ItemFetchError, RateLimitedError
from .base_cached import ContributorFetchStrategyBase

_logger = logging.getLogger(__name__)

CACHE_NAME = "rest"
API_CALL_FORMAT = "REST GET /repos/{owner}/{repo}/pulls/{pr_number}"


def record_from_rest(number: int, data: Any) -> ContributorRecord:
    """Normalize a REST pull request payload."""
    if not isinstance(data, dict):
        raise ItemFetchError(number, "unexpected response body")
    user = data.get("user")
    assoc = data.get("author_association")
    return ContributorRecord(
        number=int(number),
        author_association=str(assoc) if assoc is not None else None,
        created_at=data.get("created_at"),
        author=dict(user) if isinstance(user, dict) else None,
    )


class PRAuthorRestCached(ContributorFetchStrategyBase):
    def __init__(self, api, cache, *, sleep: Callable[[float], None] = time.sleep,
                 delay_s: float = UNAUTHENTICATED_REQUEST_DELAY_S):
        super().__init__(api, cache)
        self._sleep = sleep
        self._delay_s = float(delay_s)

    @property
    def cache_name(self) -> str:
        return CACHE_NAME

    def api_call_format(self) -> str:
        return API_CALL_FORMAT

    def fetch_one(self, *, owner: str, repo: str, number: int) -> ContributorRecord:
        self.stats.network_calls += 1
        try:
            data = self.api.get(f"/repos/{owner}/{repo}/pulls/{int(number)}")
        except GitHubAPIError as e:
            raise ItemFetchError(number, str(e)) from e
        return record_from_rest(number, data)

    def fetch_many(self, *, owner: str, repo: str, numbers: Sequence[int]) -> Dict[int, ContributorRecord]:
        out: Dict[int, ContributorRecord] = {}
        throttle = not self.api.has_token()
        requested_any = False

        for number in numbers:
            cached = self.cached(number)
            if cached is not None:
                out[number] = cached
                continue

            if throttle and requested_any:
                self._sleep(self._delay_s)
            requested_any = True

            try:
                rec = self.fetch_one(owner=owner, repo=repo, number=number)
            except RateLimitedError:
                _logger.warning("Hit GitHub rate limit at PR #%s. Stopping API requests.", number)
                raise
            except ItemFetchError as e:
                self.stats.failed += 1
                _logger.info("Failed to fetch data for %s", e)
                continue

            self.store(rec)
            out[number] = rec

        _logger.debug("Fetched %d PRs via REST (%d network calls)", len(out), self.stats.network_calls)
        return out
