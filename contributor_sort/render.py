# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Renderer interface consumed by the sorter, plus a plain-text implementation for the CLI."""

from __future__ import annotations

from typing import Dict, List, Protocol, Sequence

from .classify import Badge
from .order import DisplayItem

_BADGE_ICON = {"New": "🆕", "Existing": "🔄"}


class ListingRenderer(Protocol):
    """What the sorter needs from whatever displays the listing."""

    def reorder(self, items: Sequence[DisplayItem]) -> None:
        """Show the rows in exactly this sequence."""

    def annotate(self, item: DisplayItem, badge: Badge) -> None:
        """Attach a contributor badge to a row."""


class TextListingRenderer:
    """Keeps the listing as text lines; a row is badged at most once."""

    def __init__(self) -> None:
        self.items: List[DisplayItem] = []
        self.badges: Dict[int, Badge] = {}

    def reorder(self, items: Sequence[DisplayItem]) -> None:
        self.items = list(items)

    def annotate(self, item: DisplayItem, badge: Badge) -> None:
        self.badges.setdefault(id(item), badge)

    def _row_text(self, item: DisplayItem) -> str:
        payload = item.payload
        if isinstance(payload, dict):
            title = str(payload.get("title") or "")
            login = str((payload.get("user") or {}).get("login") or "")
            text = f"{title} ({login})" if login else title
        else:
            text = str(payload or "")
        return text.strip()

    def render_lines(self) -> List[str]:
        lines: List[str] = []
        for item in self.items:
            number = f"#{item.number}" if item.number is not None else "#?"
            badge = self.badges.get(id(item))
            label = f"[{_BADGE_ICON.get(badge.text, '')} {badge.text}]" if badge else ""
            lines.append(" ".join(part for part in (f"{number:>7}", label, self._row_text(item)) if part))
        return lines
