# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Stable, reversible reordering of PR listing rows by contributor tier.

The first sort of a listing stamps every row with its position; restore_default()
sorts by that stamp. Rows whose record is unknown compare equal to every other
row, so they keep whatever place the stable sort leaves them in.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from common_types import ContributorRecord, SortOrder

from .classify import contributor_tier

_logger = logging.getLogger(__name__)


@dataclass(eq=False)
class DisplayItem:
    """One row of a PR listing.

    payload is opaque to the sorter (the renderer's row object).
    original_position is set once, by the first sort, and never changed.
    """

    number: Optional[int]
    payload: Any = None
    original_position: Optional[int] = None


@dataclass
class PRListing:
    """Rows of one pull request listing page, in display order."""

    items: List[DisplayItem] = field(default_factory=list)
    stamped: bool = False


def stamp_original_positions(listing: PRListing) -> None:
    if listing.stamped:
        return
    listing.stamped = True
    for index, item in enumerate(listing.items):
        if item.original_position is None:
            item.original_position = index


def _tier_comparator(order: SortOrder, records: Mapping[int, ContributorRecord]):
    def compare(a: DisplayItem, b: DisplayItem) -> int:
        rec_a = records.get(a.number) if a.number is not None else None
        rec_b = records.get(b.number) if b.number is not None else None
        if rec_a is None or rec_b is None:
            return 0
        tier_a = int(contributor_tier(rec_a.author_association))
        tier_b = int(contributor_tier(rec_b.author_association))
        if order == SortOrder.NEW_FIRST:
            return tier_a - tier_b
        return tier_b - tier_a

    return compare


def apply_sort(listing: PRListing, order: SortOrder, records: Mapping[int, ContributorRecord]) -> List[DisplayItem]:
    """Reorder listing.items by tier (stable); returns the new order."""
    if order == SortOrder.DEFAULT:
        return restore_default(listing)

    stamp_original_positions(listing)
    listing.items = sorted(listing.items, key=functools.cmp_to_key(_tier_comparator(order, records)))
    _logger.debug("Sorted %d PR rows (%s)", len(listing.items), order.value)
    return list(listing.items)


def restore_default(listing: PRListing) -> List[DisplayItem]:
    """Reorder listing.items by original position; unstamped rows count as position 0."""
    listing.items = sorted(listing.items, key=lambda item: item.original_position or 0)
    _logger.debug("Restored %d PR rows to default order", len(listing.items))
    return list(listing.items)
