# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""PR number extraction from listing links, and listing-page context parsing."""

from __future__ import annotations

import logging
import re
import urllib.parse
from typing import Iterable, List, Optional, Tuple

from common_github.errors import WrongContextError

_logger = logging.getLogger(__name__)

PR_LINK_REGEX = re.compile(r"/pull/(\d+)")

MAX_PRS_AUTHENTICATED = 50
MAX_PRS_ANONYMOUS = 10


def max_pr_count(authenticated: bool) -> int:
    return MAX_PRS_AUTHENTICATED if authenticated else MAX_PRS_ANONYMOUS


def extract_pr_number(ref: Optional[str]) -> Optional[int]:
    """PR number from a reference like "https://github.com/o/r/pull/123/files", else None."""
    if not ref:
        return None
    m = PR_LINK_REGEX.search(str(ref))
    if not m:
        return None
    number = int(m.group(1))
    return number if number > 0 else None


def extract_pr_numbers(refs: Iterable[Optional[str]], *, authenticated: bool) -> List[int]:
    """Unique PR numbers in first-seen order, capped at max_pr_count(authenticated)."""
    limit = max_pr_count(authenticated)
    seen = set()
    out: List[int] = []
    for ref in refs:
        number = extract_pr_number(ref)
        if number is None:
            _logger.debug("Skipping reference without a PR number: %r", ref)
            continue
        if number in seen:
            continue
        seen.add(number)
        out.append(number)
        if len(out) >= limit:
            break
    _logger.debug(
        "Processing %d PRs (%s)", len(out), "authenticated" if authenticated else "rate limited"
    )
    return out


def parse_pulls_page_url(url: str) -> Tuple[str, str]:
    """(owner, repo) for a GitHub pull request listing URL.

    Raises WrongContextError for anything that is not github.com/<owner>/<repo>/pulls[...].
    """
    parsed = urllib.parse.urlparse(str(url or "").strip())
    host = (parsed.hostname or "").lower()
    if host not in ("github.com", "www.github.com"):
        raise WrongContextError("Not on a GitHub pull requests page")
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 3 or parts[2] != "pulls":
        raise WrongContextError("Not on a GitHub pull requests page")
    return parts[0], parts[1]
