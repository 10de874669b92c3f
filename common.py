"""
PR contributor sorter package.

Shared constants and utilities for the sorter scripts.
"""

import logging
import os
from pathlib import Path

# Global logger for the module
_logger = logging.getLogger(__name__)

#
# Cache policy constants (single source of truth)
#
DEFAULT_CONTRIBUTOR_TTL_S: int = 30 * 60
# ^ TTL (seconds) for cached pull-request author records.
#   Example: a record fetched at 10:00 is served from cache until 10:30, then refetched.
DEFAULT_CACHE_MAX_ENTRIES: int = 200
# ^ Hard cap on cached records. Exceeding it triggers eviction down to DEFAULT_CACHE_KEEP_ENTRIES.
DEFAULT_CACHE_KEEP_ENTRIES: int = 150
# ^ Number of newest records kept when the hard cap is exceeded (older ones are dropped even if fresh).
UNAUTHENTICATED_REQUEST_DELAY_S: float = 0.5
# ^ Spacing between anonymous REST requests (anonymous core limit is 60/hour).
BATCH_MIN_OUTSTANDING: int = 3
# ^ GraphQL batching is used only when MORE than this many PRs still need fetching.

SETTINGS_FILE_NAME = "settings.json"


# ======================================================================================
# IMPORTANT: Cache location policy
#
# All *persistent* state for the sorter MUST live under:
#   - $PR_SORTER_CACHE_DIR     (explicit override), else
#   - ~/.cache/pr-sorter       (default)
# ======================================================================================

def pr_sorter_cache_dir() -> Path:
    """Return the cache directory for the sorter.

    Resolution order:
    - PR_SORTER_CACHE_DIR (explicit override)
    - ~/.cache/pr-sorter
    """
    override = os.environ.get("PR_SORTER_CACHE_DIR")
    if override:
        return Path(override).expanduser()

    return Path.home() / ".cache" / "pr-sorter"


def resolve_cache_path(cache_file: str) -> Path:
    """Resolve a cache file path into the global sorter cache directory.

    - Absolute paths are used as-is.
    - Relative paths are rooted under `pr_sorter_cache_dir()`.
    - A leading ".cache/" is stripped so ".cache/foo.json" lands in ~/.cache/pr-sorter/foo.json.
    """
    p = Path(cache_file).expanduser()
    if p.is_absolute():
        return p

    rel = Path(*p.parts[1:]) if p.parts[:1] == (".",) else p

    if rel.parts[:1] == (".cache",):
        rel = Path(*rel.parts[1:])

    return pr_sorter_cache_dir() / rel


def default_settings_file() -> Path:
    return pr_sorter_cache_dir() / SETTINGS_FILE_NAME


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for command-line entry points."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='[%(levelname)s] %(message)s',
    )
    # urllib3 connection chatter is noise even in verbose mode.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
