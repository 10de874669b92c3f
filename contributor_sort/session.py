# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Sort trigger handling and persisted settings.

A SortSession is the explicit context for one listing page: the settings
store, the contributor cache, the API client, the listing rows and the
records known so far. handle_sort_request() is the request -> response
contract used by the CLI (one request at a time per session).

Responses:
  default order               -> (True,  "Restored to default order")          no fetch
  new-first / existing-first  -> (True,  "Sorted by ... successfully!")
  not a pulls page            -> (False, "Not on a GitHub pull requests page")
  rate limit                  -> (False, "GitHub API rate limit exceeded. ...")
  anything else               -> (False, "Error sorting PRs. See log for details.")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from cache.cache_base import BaseDiskStore
from cache.cache_contributors import ContributorCache, SettingsSnapshotStorage
from cache.cache_settings import KEY_GITHUB_TOKEN, KEY_SORT_ORDER
from common_github import GitHubAPIClient
from common_github.api.contributor_fetch import fetch_contributor_records
from common_github.errors import InvalidTokenError, RateLimitedError, WrongContextError
from common_types import ContributorRecord, SortOrder

from .classify import badge_for
from .extract import extract_pr_number, extract_pr_numbers, parse_pulls_page_url
from .order import DisplayItem, PRListing, apply_sort, restore_default
from .render import ListingRenderer

_logger = logging.getLogger(__name__)

WRONG_CONTEXT_MESSAGE = "Not on a GitHub pull requests page"
RESTORED_MESSAGE = "Restored to default order"
RATE_LIMIT_MESSAGE = "GitHub API rate limit exceeded. Please add a GitHub token for unlimited requests."
GENERIC_ERROR_MESSAGE = "Error sorting PRs. See log for details."

VALID_TOKEN_PREFIXES = ("ghp_", "github_pat_", "gho_")

SORT_ORDER_LABELS = {
    SortOrder.NEW_FIRST: "New Contributors First",
    SortOrder.EXISTING_FIRST: "Existing Contributors First",
    SortOrder.DEFAULT: "Default",
}


# =============================================================================
# Persisted settings
# =============================================================================

def load_sort_order(store: BaseDiskStore) -> SortOrder:
    return SortOrder.parse(store.get(KEY_SORT_ORDER))


def save_sort_order(store: BaseDiskStore, order: SortOrder) -> None:
    store.set(KEY_SORT_ORDER, SortOrder(order).value)


def load_token(store: BaseDiskStore) -> Optional[str]:
    tok = store.get(KEY_GITHUB_TOKEN)
    if not isinstance(tok, str):
        return None
    return tok.strip() or None


def save_token(store: BaseDiskStore, token: Optional[str]) -> Optional[str]:
    """Validate and store a token; an empty token clears it. Returns what was stored."""
    tok = (token or "").strip()
    if not tok:
        clear_token(store)
        return None
    if not tok.startswith(VALID_TOKEN_PREFIXES):
        raise InvalidTokenError(
            "Invalid token format. Must start with " + ", ".join(VALID_TOKEN_PREFIXES)
        )
    store.set(KEY_GITHUB_TOKEN, tok)
    return tok


def clear_token(store: BaseDiskStore) -> None:
    store.remove(KEY_GITHUB_TOKEN)


def sort_order_label(order: SortOrder) -> str:
    return SORT_ORDER_LABELS.get(order, "Default")


def token_status_label(token: Optional[str]) -> str:
    return "Set (Authenticated)" if token else "Not Set"


def api_mode_label(token: Optional[str]) -> str:
    return "GraphQL API (Unlimited)" if token else "REST API (Limited)"


# =============================================================================
# Listing construction
# =============================================================================

def listing_from_links(links: Iterable[str]) -> PRListing:
    """One row per distinct PR, in first-seen order; rows keep their raw link as payload."""
    items: List[DisplayItem] = []
    seen = set()
    for link in links:
        number = extract_pr_number(link)
        if number is not None and number in seen:
            continue
        if number is not None:
            seen.add(number)
        items.append(DisplayItem(number=number, payload=link))
    return PRListing(items=items)


def listing_from_pulls(pulls: Iterable[Dict[str, Any]]) -> PRListing:
    """Rows from REST pulls-list payloads (payload keeps the PR dict for rendering)."""
    items = [
        DisplayItem(number=extract_pr_number(str(pr.get("html_url") or "")), payload=pr)
        for pr in pulls
    ]
    return PRListing(items=items)


def _row_link(item: DisplayItem) -> Optional[str]:
    if isinstance(item.payload, dict):
        return str(item.payload.get("html_url") or "")
    if isinstance(item.payload, str):
        return item.payload
    return f"/pull/{item.number}" if item.number is not None else None


# =============================================================================
# Session + trigger contract
# =============================================================================

@dataclass(frozen=True)
class SortRequest:
    sort_order: SortOrder


@dataclass(frozen=True)
class SortResponse:
    success: bool
    message: str


@dataclass
class SortSession:
    page_url: str
    listing: PRListing
    settings: BaseDiskStore
    cache: ContributorCache
    api: GitHubAPIClient
    renderer: ListingRenderer
    records: Dict[int, ContributorRecord] = field(default_factory=dict)
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def open(
        cls,
        page_url: str,
        listing: PRListing,
        settings: BaseDiskStore,
        *,
        renderer: ListingRenderer,
        token: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
        debug_rest: bool = False,
    ) -> "SortSession":
        """Build a session; the cache snapshot is read from settings exactly once here."""
        tok = (token or "").strip() or load_token(settings)
        cache = ContributorCache(SettingsSnapshotStorage(settings))
        loaded = cache.load()
        _logger.debug("Loaded %d cached PR entries", loaded)
        if tok:
            _logger.debug("Using GitHub token (authenticated)")
        return cls(
            page_url=page_url,
            listing=listing,
            settings=settings,
            cache=cache,
            api=GitHubAPIClient(tok, debug_rest=debug_rest),
            renderer=renderer,
            sleep=sleep,
        )

    @property
    def authenticated(self) -> bool:
        return self.api.has_token()

    def links(self) -> List[str]:
        return [link for link in (_row_link(item) for item in self.listing.items) if link]


def _apply_and_render(session: SortSession, order: SortOrder) -> None:
    ordered = apply_sort(session.listing, order, session.records)
    session.renderer.reorder(ordered)
    for item in ordered:
        rec = session.records.get(item.number) if item.number is not None else None
        if rec is not None:
            _logger.debug("PR #%s by %s: %s", item.number, rec.author_login or "?", rec.author_association)
            session.renderer.annotate(item, badge_for(rec.author_association))


def _fetch_records(session: SortSession, owner: str, repo: str) -> None:
    numbers = extract_pr_numbers(session.links(), authenticated=session.authenticated)
    try:
        result = fetch_contributor_records(
            session.api,
            session.cache,
            owner=owner,
            repo=repo,
            numbers=numbers,
            sleep=session.sleep,
        )
        session.records.update(result.records)
    except RateLimitedError:
        # Keep whatever made it into the cache before the abort.
        for n in numbers:
            rec = session.cache.get(n)
            if rec is not None:
                session.records[n] = rec
        raise


def handle_sort_request(session: SortSession, request: SortRequest) -> SortResponse:
    """Apply the requested order to the session's listing."""
    order = SortOrder(request.sort_order)
    _logger.debug("Processing sort request: %s", order.value)

    try:
        owner, repo = parse_pulls_page_url(session.page_url)
    except WrongContextError:
        return SortResponse(success=False, message=WRONG_CONTEXT_MESSAGE)

    try:
        save_sort_order(session.settings, order)

        if order == SortOrder.DEFAULT:
            session.renderer.reorder(restore_default(session.listing))
            return SortResponse(success=True, message=RESTORED_MESSAGE)

        try:
            _fetch_records(session, owner, repo)
        except RateLimitedError as e:
            _logger.warning("%s", e)
            _apply_and_render(session, order)
            return SortResponse(success=False, message=RATE_LIMIT_MESSAGE)

        _apply_and_render(session, order)
        label = "new contributors" if order == SortOrder.NEW_FIRST else "existing contributors"
        return SortResponse(success=True, message=f"Sorted by {label} successfully!")
    except Exception:
        _logger.exception("Error in handle_sort_request")
        return SortResponse(success=False, message=GENERIC_ERROR_MESSAGE)
