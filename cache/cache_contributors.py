#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Contributor record cache (PR number -> author association).

Caching strategy:
  - Key: PR number (int)
  - Value: {"data": <ContributorRecord.to_dict()>, "timestamp": <epoch seconds>}
  - TTL: 30 minutes, checked lazily on get() and proactively by sweep_expired()
  - Capacity: more than 200 entries collapses to the 150 newest by timestamp
    (capacity wins over freshness: fresh entries are dropped too)

Persistence:
  The full snapshot is written through a SnapshotStorage after every mutation
  (no batching). The default storage is the "pr_cache" key of the settings file:
    "{\"entries\": [[1234, {\"data\": {...}, \"timestamp\": 1766947200.5}], ...]}"
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from cache.cache_base import BaseDiskStore
from cache.cache_settings import KEY_PR_CACHE
from common import (
    DEFAULT_CACHE_KEEP_ENTRIES,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CONTRIBUTOR_TTL_S,
)
from common_types import ContributorRecord

_logger = logging.getLogger(__name__)


class SnapshotStorage(Protocol):
    """Load/save capability for the serialized cache snapshot."""

    def load(self) -> Optional[str]:
        ...

    def save(self, snapshot: str) -> None:
        ...


class SettingsSnapshotStorage:
    """Stores the snapshot string under one key of a BaseDiskStore."""

    def __init__(self, store: BaseDiskStore, *, key: str = KEY_PR_CACHE):
        self._store = store
        self._key = key

    def load(self) -> Optional[str]:
        value = self._store.get(self._key)
        return value if isinstance(value, str) else None

    def save(self, snapshot: str) -> None:
        self._store.set(self._key, snapshot)


class ContributorCache:
    """TTL + capacity bounded cache of ContributorRecords, mirrored to storage."""

    def __init__(
        self,
        storage: SnapshotStorage,
        *,
        ttl_s: float = DEFAULT_CONTRIBUTOR_TTL_S,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        keep_entries: int = DEFAULT_CACHE_KEEP_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self._ttl_s = float(ttl_s)
        self._max_entries = int(max_entries)
        self._keep_entries = int(keep_entries)
        self._clock = clock
        self._entries: Dict[int, Dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Snapshot (de)serialization
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Replace the in-memory entries with the persisted snapshot.

        Returns the number of entries loaded. A missing or unreadable snapshot
        leaves the cache empty.
        """
        self._entries = {}
        raw = self._storage.load()
        if not raw:
            return 0
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            _logger.warning("Discarding unreadable PR cache snapshot: %s", e)
            return 0

        entries = parsed.get("entries") if isinstance(parsed, dict) else None
        if not isinstance(entries, list):
            _logger.warning("Discarding PR cache snapshot without an entries list")
            return 0

        for pair in entries:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                continue
            number, entry = pair
            try:
                number = int(number)
            except (ValueError, TypeError):
                continue
            if not isinstance(entry, dict) or not isinstance(entry.get("data"), dict):
                continue
            try:
                ts = float(entry.get("timestamp"))
            except (ValueError, TypeError):
                continue
            self._entries[number] = {"data": entry["data"], "timestamp": ts}

        _logger.debug("Loaded %d cached PR entries", len(self._entries))
        return len(self._entries)

    def snapshot(self) -> str:
        return json.dumps({"entries": [[n, e] for (n, e) in self._entries.items()]}, separators=(",", ":"))

    def _save(self) -> None:
        self._storage.save(self.snapshot())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def _is_fresh(self, entry: Dict[str, Any], now: float) -> bool:
        return (now - float(entry.get("timestamp", 0.0))) < self._ttl_s

    def get(self, number: int) -> Optional[ContributorRecord]:
        """Return the cached record if fresh; expired entries are dropped."""
        entry = self._entries.get(int(number))
        if entry is None:
            return None
        if self._is_fresh(entry, self._clock()):
            _logger.debug("Cache hit for PR #%s", number)
            return ContributorRecord.from_dict(entry["data"])
        del self._entries[int(number)]
        self._save()
        return None

    def put(self, number: int, record: ContributorRecord) -> None:
        """Insert or replace the record stamped with the current time."""
        self._entries[int(number)] = {"data": record.to_dict(), "timestamp": float(self._clock())}
        self.evict_if_over_capacity(persist=False)
        self._save()

    def sweep_expired(self) -> int:
        """Drop every entry whose age is >= TTL. Returns the number removed."""
        now = self._clock()
        expired = [n for (n, e) in self._entries.items() if not self._is_fresh(e, now)]
        for n in expired:
            del self._entries[n]
        if expired:
            _logger.debug("Cleared %d expired cache entries", len(expired))
            self._save()
        return len(expired)

    def evict_if_over_capacity(self, *, persist: bool = True) -> int:
        """Collapse to the newest keep_entries when over max_entries. Returns the number evicted."""
        if len(self._entries) <= self._max_entries:
            return 0
        newest = sorted(self._entries.items(), key=lambda kv: kv[1]["timestamp"], reverse=True)
        kept = newest[: self._keep_entries]
        evicted = len(self._entries) - len(kept)
        self._entries = dict(kept)
        _logger.debug("Evicted %d cache entries over capacity (kept %d)", evicted, len(kept))
        if persist:
            self._save()
        return evicted

    def numbers(self) -> List[int]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, number: object) -> bool:
        return number in self._entries
