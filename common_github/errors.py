# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Error types raised by the GitHub client and the sorter core.

Propagation:
  - WrongContextError, RateLimitedError: reach the caller as a failed SortResponse.
  - BatchFetchError: caught by fetch_contributor_records(); falls back to REST.
  - ItemFetchError: logged and skipped by the sequential (REST) fetcher.
  - GitHubAPIError: raised by GitHubAPIClient; the fetchers translate it into
    BatchFetchError / ItemFetchError.
"""

from __future__ import annotations

from typing import Optional


class PRSorterError(Exception):
    """Base class for sorter errors."""


class WrongContextError(PRSorterError):
    """The trigger was sent for a page that is not a pull request listing."""


class InvalidTokenError(PRSorterError):
    """A GitHub token was rejected before being stored."""


class GitHubAPIError(PRSorterError):
    """A GitHub request failed (transport error, non-2xx status, undecodable body)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(PRSorterError):
    """GitHub refused a request because the rate limit is exhausted (403/429)."""

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded",
        *,
        remaining: Optional[int] = None,
        reset_epoch: Optional[int] = None,
    ):
        super().__init__(message)
        self.remaining = remaining
        self.reset_epoch = reset_epoch


class BatchFetchError(PRSorterError):
    """A GraphQL batch request failed as a whole (transport or response-level errors)."""


class ItemFetchError(PRSorterError):
    """A single pull request could not be fetched."""

    def __init__(self, number: int, message: str):
        super().__init__(f"PR #{number}: {message}")
        self.number = number
