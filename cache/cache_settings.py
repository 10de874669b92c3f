#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Settings store (sort preference, token, cache snapshot).

Cache file: ~/.cache/pr-sorter/settings.json

Layout:
  {
    "version": 1,
    "items": {
      "sort_order": "new-first",
      "github_token": "ghp_...",
      "pr_cache": "{\"entries\": [[1234, {\"data\": {...}, \"timestamp\": 1766947200.5}]]}",
      "install_date": 1766940000
    }
  }
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, Optional

from cache.cache_base import BaseDiskStore
from common import default_settings_file, resolve_cache_path

KEY_SORT_ORDER = "sort_order"
KEY_GITHUB_TOKEN = "github_token"
KEY_PR_CACHE = "pr_cache"
KEY_INSTALL_DATE = "install_date"


class SettingsStore(BaseDiskStore):
    """Persisted key-value settings for the sorter.

    Stats (hit/miss/write) are tracked automatically by BaseDiskStore.
    """

    _SCHEMA_VERSION = 1

    def __init__(self, *, store_file: Optional[Path] = None):
        super().__init__(
            store_file=resolve_cache_path(str(store_file)) if store_file is not None else default_settings_file(),
            schema_version=self._SCHEMA_VERSION,
        )

    def _create_empty_store(self) -> Dict[str, Any]:
        # First run: remember when the sorter was set up (only written on first persist).
        return {
            "version": self._SCHEMA_VERSION,
            "items": {
                KEY_SORT_ORDER: "default",
                KEY_INSTALL_DATE: int(time.time()),
            },
        }
