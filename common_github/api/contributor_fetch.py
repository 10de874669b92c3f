# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Fill contributor records for a list of PR numbers (cache first, then network).

Strategy selection:
  - token present AND more than 3 PRs outstanding -> GraphQL batch
      - BatchFetchError -> REST sequential over the same outstanding PRs
  - otherwise -> REST sequential

RateLimitedError from the REST strategy propagates to the caller. Records
cached before the abort remain cached.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, TYPE_CHECKING

from common import BATCH_MIN_OUTSTANDING
from common_types import ContributorRecord

from ..errors import BatchFetchError
from .pr_author_graphql_cached import PRAuthorGraphQLCached
from .pr_author_rest_cached import PRAuthorRestCached

if TYPE_CHECKING:  # pragma: no cover
    from cache.cache_contributors import ContributorCache
    from .. import GitHubAPIClient

_logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of fetch_contributor_records()."""

    records: Dict[int, ContributorRecord] = field(default_factory=dict)
    fetched: List[int] = field(default_factory=list)
    strategy: str = "cache"

    def missing(self, numbers: Sequence[int]) -> List[int]:
        return [n for n in numbers if n not in self.records]


def _collect_cached(cache: "ContributorCache", numbers: Sequence[int], into: Dict[int, ContributorRecord]) -> None:
    for n in numbers:
        if n in into:
            continue
        rec = cache.get(n)
        if rec is not None:
            into[n] = rec


def fetch_contributor_records(
    api: "GitHubAPIClient",
    cache: "ContributorCache",
    *,
    owner: str,
    repo: str,
    numbers: Sequence[int],
    sleep: Callable[[float], None] = time.sleep,
) -> FetchResult:
    """Return records for `numbers`, fetching the ones not cached."""
    cache.sweep_expired()

    result = FetchResult()
    _collect_cached(cache, numbers, result.records)
    outstanding = [n for n in numbers if n not in result.records]

    if not outstanding:
        _logger.info("All PR data available from cache")
        return result

    mode = "authenticated" if api.has_token() else "rate limited"
    _logger.info("Fetching %d new PRs from API (%s)", len(outstanding), mode)

    strategies: List[str] = []
    try:
        if api.has_token() and len(outstanding) > BATCH_MIN_OUTSTANDING:
            batch = PRAuthorGraphQLCached(api, cache)
            strategies.append(batch.cache_name)
            _logger.debug("Trying %s", batch.api_call_format())
            try:
                got = batch.fetch_many(owner=owner, repo=repo, numbers=outstanding)
                result.records.update(got)
                result.fetched.extend(n for n in outstanding if n in got)
                return result
            except BatchFetchError as e:
                _logger.warning("GraphQL failed, falling back to REST API: %s", e)

        rest = PRAuthorRestCached(api, cache, sleep=sleep)
        strategies.append(rest.cache_name)
        _logger.debug("Trying %s", rest.api_call_format())
        got = rest.fetch_many(owner=owner, repo=repo, numbers=outstanding)
        result.records.update(got)
        result.fetched.extend(n for n in outstanding if n in got)
        return result
    finally:
        result.strategy = "+".join(strategies) or "cache"
