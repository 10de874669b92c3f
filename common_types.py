#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Common shared enums/types used by:
- `cache/*` (contributor record persistence)
- `common_github/*` (API/data layer)
- `contributor_sort/*` (extraction, ordering, session)

This module MUST NOT import any of the packages above to avoid cycles.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class SortOrder(str, Enum):
    """Persisted sort preference. Values are the on-disk form."""

    DEFAULT = "default"
    NEW_FIRST = "new-first"
    EXISTING_FIRST = "existing-first"

    @classmethod
    def parse(cls, value: Any) -> "SortOrder":
        """Parse a persisted value; anything unknown is DEFAULT."""
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.DEFAULT


class ContributorTier(IntEnum):
    """Binary priority class derived from the author association."""

    NEW = 1
    EXISTING = 2


class AuthorAssociation(str, Enum):
    """GitHub `author_association` values (REST) / `authorAssociation` (GraphQL)."""

    FIRST_TIMER = "FIRST_TIMER"
    FIRST_TIME_CONTRIBUTOR = "FIRST_TIME_CONTRIBUTOR"
    NONE = "NONE"
    CONTRIBUTOR = "CONTRIBUTOR"
    COLLABORATOR = "COLLABORATOR"
    MEMBER = "MEMBER"
    OWNER = "OWNER"
    MANNEQUIN = "MANNEQUIN"


NEW_CONTRIBUTOR_ASSOCIATIONS = frozenset(
    {
        AuthorAssociation.FIRST_TIMER.value,
        AuthorAssociation.FIRST_TIME_CONTRIBUTOR.value,
        AuthorAssociation.NONE.value,
    }
)


@dataclass(frozen=True)
class ContributorRecord:
    """Author data for one pull request.

    Serialized with the REST field names so REST payloads and cache entries
    share one shape:
      {"number": 123, "author_association": "NONE",
       "created_at": "2026-01-20T10:00:00Z", "user": {"login": "octocat"}}
    """

    number: int
    author_association: Optional[str]
    created_at: Optional[str] = None
    author: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": int(self.number),
            "author_association": self.author_association,
            "created_at": self.created_at,
            "user": dict(self.author) if isinstance(self.author, dict) else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Optional["ContributorRecord"]:
        """Hydrate from a cache/REST dict; None if the dict has no usable number."""
        if not isinstance(d, dict):
            return None
        try:
            number = int(d.get("number"))
        except (ValueError, TypeError):
            return None
        if number <= 0:
            return None
        user = d.get("user")
        assoc = d.get("author_association")
        return cls(
            number=number,
            author_association=str(assoc) if assoc is not None else None,
            created_at=d.get("created_at"),
            author=dict(user) if isinstance(user, dict) else None,
        )

    @property
    def author_login(self) -> str:
        if isinstance(self.author, dict):
            return str(self.author.get("login") or "")
        return ""
