#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Base class for the disk-backed key-value settings store.

One JSON file holds every persisted value of the sorter:
- sort_order      (last requested SortOrder)
- github_token    (optional credential)
- pr_cache        (serialized ContributorCache snapshot)
- install_date    (epoch seconds; written once, when the file is first created)
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

try:
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - best-effort on non-POSIX
    fcntl = None  # type: ignore

_logger = logging.getLogger(__name__)


@dataclass
class BaseStoreStats:
    """Basic store statistics tracked automatically by BaseDiskStore."""
    hit: int = 0
    miss: int = 0
    write: int = 0


class BaseDiskStore:
    """Disk-backed key-value store with inter-process locking.

    Provides:
    - Thread-safe in-memory dict with Lock
    - Lazy loading (load on first access)
    - Synchronous persistence on every mutation (atomic tmp file + rename)
    - Best-effort inter-process lock (fcntl) around writes

    The in-memory copy is the only writer after the first load, so a write
    replaces the file instead of merging with it (a removed key stays removed).
    """

    def __init__(self, *, store_file: Path, schema_version: int = 1):
        self._mu = Lock()
        self._store_file = Path(store_file)
        self._schema_version = schema_version
        self._data: Dict[str, Any] = {}
        self._loaded = False
        self.stats = BaseStoreStats()

    @property
    def path(self) -> Path:
        return self._store_file

    def _lock_file_path(self) -> Path:
        """Path to lock file (next to the store file)."""
        return self._store_file.with_name(f".{self._store_file.name}.lock")

    def _acquire_disk_lock(self, *, timeout_s: float = 10.0) -> Optional[object]:
        """Best-effort inter-process lock for the store file.

        Returns file handle on success, None on failure/timeout.
        """
        if fcntl is None:
            return None

        lock_path = self._lock_file_path()
        lock_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            fh = open(lock_path, "w")
        except OSError:
            return None

        start = time.monotonic()
        while time.monotonic() - start < float(timeout_s):
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                return fh
            except OSError:
                time.sleep(0.1)

        fh.close()
        _logger.warning("Timed out waiting for lock on %s; writing without it", self._store_file)
        return None

    def _release_disk_lock(self, lock_fh: Optional[object]) -> None:
        """Release inter-process lock."""
        if lock_fh is None:
            return
        try:
            if fcntl is not None:
                fcntl.flock(lock_fh.fileno(), fcntl.LOCK_UN)
        finally:
            lock_fh.close()

    def _load_once(self) -> None:
        """Load the store from disk (once per instance)."""
        if self._loaded:
            return
        self._loaded = True

        if not self._store_file.exists():
            self._data = self._create_empty_store()
            return

        try:
            raw = json.loads(self._store_file.read_text() or "{}")
        except (OSError, ValueError) as e:
            _logger.warning("Ignoring unreadable settings file %s: %s", self._store_file, e)
            raw = {}

        items = raw.get("items") if isinstance(raw, dict) else None
        if not isinstance(items, dict):
            items = {}
        self._data = {"version": self._schema_version, "items": dict(items)}

    def _create_empty_store(self) -> Dict[str, Any]:
        """Create empty store structure. Subclasses can override."""
        return {"version": self._schema_version, "items": {}}

    def _persist(self) -> None:
        """Write the whole store to disk (atomic replace)."""
        self._store_file.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": self._schema_version, "items": self._get_items()}

        lock_fh = self._acquire_disk_lock(timeout_s=10.0)
        try:
            tmp = f"{self._store_file}.tmp.{os.getpid()}"
            Path(tmp).write_text(json.dumps(payload, separators=(",", ":")))
            os.replace(str(tmp), str(self._store_file))
        finally:
            self._release_disk_lock(lock_fh)

    def _get_items(self) -> Dict[str, Any]:
        items = self._data.get("items") if isinstance(self._data, dict) else None
        if not isinstance(items, dict):
            items = {}
            self._data = {"version": self._schema_version, "items": items}
        return items

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key (default if absent)."""
        with self._mu:
            self._load_once()
            items = self._get_items()
            if key in items:
                self.stats.hit += 1
                return items[key]
            self.stats.miss += 1
            return default

    def set(self, key: str, value: Any) -> None:
        """Store value under key and persist immediately."""
        with self._mu:
            self._load_once()
            self._get_items()[key] = value
            self.stats.write += 1
            self._persist()

    def remove(self, key: str) -> None:
        """Delete key (no-op when absent) and persist immediately."""
        with self._mu:
            self._load_once()
            items = self._get_items()
            if key not in items:
                return
            del items[key]
            self.stats.write += 1
            self._persist()
