# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""PR author association, batch strategy (GraphQL, one call for many PRs).

Resource:
  POST /graphql   (token required)

Query shape (one aliased sub-query per PR, keyed by position):
  query GetPullRequests($owner: String!, $name: String!) {
    repository(owner: $owner, name: $name) {
      pr0: pullRequest(number: 101) { number authorAssociation createdAt author { login ... on User { id } } }
      pr1: pullRequest(number: 102) { ... }
    }
  }

Example API Response:
  {
    "data": {
      "repository": {
        "pr0": {"number": 101, "authorAssociation": "NONE", "createdAt": "2026-01-20T10:00:00Z",
                "author": {"login": "newbie", "id": "MDQ6VXNlcjE="}},
        "pr1": null
      }
    }
  }

Failure policy:
  - transport error / non-2xx / `errors` in the body / no `repository` object
    -> BatchFetchError, nothing from this response is cached
  - a missing or null alias -> that PR is left unfetched (not an error)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from common_types import ContributorRecord

from ..errors import BatchFetchError, GitHubAPIError, RateLimitedError
from .base_cached import ContributorFetchStrategyBase

_logger = logging.getLogger(__name__)

CACHE_NAME = "graphql"
API_CALL_FORMAT = "GraphQL POST /graphql repository(owner, name) { prN: pullRequest(number) ... }"
MAX_BATCH_SIZE = 50

_PR_FIELDS = "number authorAssociation createdAt author { login ... on User { id } }"


def build_batch_query(numbers: Sequence[int]) -> str:
    subqueries = "\n".join(
        f"    pr{idx}: pullRequest(number: {int(n)}) {{ {_PR_FIELDS} }}"
        for idx, n in enumerate(numbers)
    )
    return (
        "query GetPullRequests($owner: String!, $name: String!) {\n"
        "  repository(owner: $owner, name: $name) {\n"
        f"{subqueries}\n"
        "  }\n"
        "}"
    )


def record_from_graphql(number: int, node: Dict[str, Any]) -> ContributorRecord:
    """Normalize a GraphQL pullRequest node into the REST-shaped record."""
    author = node.get("author")
    assoc = node.get("authorAssociation")
    return ContributorRecord(
        number=int(number),
        author_association=str(assoc) if assoc is not None else None,
        created_at=node.get("createdAt"),
        author=dict(author) if isinstance(author, dict) else None,
    )


class PRAuthorGraphQLCached(ContributorFetchStrategyBase):
    @property
    def cache_name(self) -> str:
        return CACHE_NAME

    def api_call_format(self) -> str:
        return API_CALL_FORMAT

    def _query_repository(self, *, owner: str, repo: str, numbers: List[int]) -> Dict[str, Any]:
        self.stats.network_calls += 1
        try:
            body = self.api.graphql(build_batch_query(numbers), {"owner": owner, "name": repo})
        except (GitHubAPIError, RateLimitedError) as e:
            raise BatchFetchError(str(e)) from e

        errors = body.get("errors")
        if errors:
            raise BatchFetchError(f"GraphQL errors: {errors}")
        data = body.get("data")
        repository = data.get("repository") if isinstance(data, dict) else None
        if not isinstance(repository, dict):
            raise BatchFetchError(f"GraphQL response has no repository object for {owner}/{repo}")
        return repository

    def fetch_many(self, *, owner: str, repo: str, numbers: Sequence[int]) -> Dict[int, ContributorRecord]:
        batch = [int(n) for n in numbers][:MAX_BATCH_SIZE]
        if len(numbers) > len(batch):
            _logger.debug("GraphQL batch capped at %d PRs; %d left unfetched", MAX_BATCH_SIZE, len(numbers) - len(batch))
        if not batch:
            return {}

        repository = self._query_repository(owner=owner, repo=repo, numbers=batch)

        out: Dict[int, ContributorRecord] = {}
        for idx, number in enumerate(batch):
            node = repository.get(f"pr{idx}")
            if not isinstance(node, dict):
                self.stats.not_found += 1
                continue
            rec = record_from_graphql(number, node)
            self.store(rec)
            out[number] = rec

        _logger.debug("Fetched %d of %d PRs via GraphQL", len(out), len(batch))
        return out
