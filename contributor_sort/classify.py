# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Contributor tier classification.

  FIRST_TIMER, FIRST_TIME_CONTRIBUTOR, NONE -> NEW (1)
  CONTRIBUTOR, COLLABORATOR, MEMBER, OWNER, anything else -> EXISTING (2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from common_types import NEW_CONTRIBUTOR_ASSOCIATIONS, ContributorTier


def is_new_contributor(association: Optional[str]) -> bool:
    return association in NEW_CONTRIBUTOR_ASSOCIATIONS


def contributor_tier(association: Optional[str]) -> ContributorTier:
    return ContributorTier.NEW if is_new_contributor(association) else ContributorTier.EXISTING


@dataclass(frozen=True)
class Badge:
    tier: ContributorTier
    text: str
    title: str


def badge_for(association: Optional[str]) -> Badge:
    """Badge label for a PR row."""
    tier = contributor_tier(association)
    if tier == ContributorTier.NEW:
        return Badge(tier=tier, text="New", title=f"New contributor ({association})")
    return Badge(tier=tier, text="Existing", title=f"Existing contributor ({association})")
