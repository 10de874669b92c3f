#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Sort a GitHub pull request listing by contributor tenure (new vs. existing)."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from cache.cache_settings import SettingsStore
from common import setup_logging
from common_github import GITHUB_API_STATS, GitHubAPIClient
from common_github.errors import GitHubAPIError, InvalidTokenError, RateLimitedError, WrongContextError
from common_types import SortOrder
from contributor_sort.extract import parse_pulls_page_url
from contributor_sort.render import TextListingRenderer
from contributor_sort.session import (
    SortRequest,
    SortSession,
    api_mode_label,
    clear_token,
    handle_sort_request,
    listing_from_links,
    listing_from_pulls,
    load_sort_order,
    load_token,
    save_token,
    sort_order_label,
    token_status_label,
)


def _read_links(path: str) -> List[str]:
    """One reference per line; '-' reads stdin. Blank lines and '#' comments are skipped."""
    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).expanduser().read_text()
    return [ln.strip() for ln in text.splitlines() if ln.strip() and not ln.strip().startswith("#")]


def _print_status(settings: SettingsStore) -> None:
    token = load_token(settings)
    print(f"Settings file:   {settings.path}")
    print(f"Current sort:    {sort_order_label(load_sort_order(settings))}")
    print(f"GitHub token:    {token_status_label(token)}")
    print(f"API mode:        {api_mode_label(token)}")


def _handle_settings_args(args: argparse.Namespace, settings: SettingsStore) -> Optional[int]:
    """Token/status commands. Returns an exit code when the command is complete."""
    if args.clear_token:
        clear_token(settings)
        print("Token cleared successfully!")
        return 0
    if args.set_token is not None or args.import_gh_token:
        token = args.set_token
        if args.import_gh_token:
            token = GitHubAPIClient.get_github_token_from_file()
            if not token:
                print("No GitHub token found in ~/.config/github-token or ~/.config/gh/hosts.yml", file=sys.stderr)
                return 1
        try:
            stored = save_token(settings, token)
        except InvalidTokenError as e:
            print(str(e), file=sys.stderr)
            return 1
        print("Token saved successfully!" if stored else "Token cleared!")
        return 0
    if args.status:
        _print_status(settings)
        return 0
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sort a GitHub pull request listing by contributor status (new vs. existing contributors).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Contributor types:
  New:      FIRST_TIMER, FIRST_TIME_CONTRIBUTOR, NONE
  Existing: CONTRIBUTOR, COLLABORATOR, MEMBER, OWNER

Examples:
  # Sort the open PRs of a repository, new contributors first
  %(prog)s --url https://github.com/owner/repo/pulls --list-open --order new-first

  # Sort links scraped from a listing page (one per line on stdin)
  %(prog)s --url https://github.com/owner/repo/pulls --links - --order existing-first < links.txt

  # Store a token (GraphQL batching, 50 PRs per sort instead of 10)
  %(prog)s --set-token ghp_xxxxxxxx
  %(prog)s --import-gh-token

  # Show stored settings
  %(prog)s --status
""",
    )
    parser.add_argument("--url", help="Pull request listing URL (https://github.com/<owner>/<repo>/pulls)")
    parser.add_argument(
        "--order",
        choices=[o.value for o in SortOrder],
        help="Sort order (default: the last stored preference)",
    )
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--links", metavar="FILE", help="File with one PR link per line ('-' for stdin)")
    src.add_argument("--list-open", action="store_true", help="Use the first page of open PRs from the REST API")
    parser.add_argument("--token", help="GitHub token for this run only (not stored)")
    parser.add_argument("--set-token", metavar="TOKEN", help="Validate and store a GitHub token ('' clears it)")
    parser.add_argument("--clear-token", action="store_true", help="Remove the stored GitHub token")
    parser.add_argument("--import-gh-token", action="store_true", help="Store the token from the GitHub CLI config")
    parser.add_argument("--status", action="store_true", help="Show stored sort preference and token status")
    parser.add_argument(
        "--settings-file",
        type=Path,
        help="Settings file (default: ~/.cache/pr-sorter/settings.json; relative paths land in that directory)",
    )
    parser.add_argument("--stats", action="store_true", help="Print GitHub API call statistics after sorting")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging (includes every API call)")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    settings = SettingsStore(store_file=args.settings_file)

    rc = _handle_settings_args(args, settings)
    if rc is not None:
        return rc

    if not args.url:
        parser.error("--url is required to sort")
    if not args.links and not args.list_open:
        parser.error("one of --links or --list-open is required to sort")

    order = SortOrder(args.order) if args.order else load_sort_order(settings)
    renderer = TextListingRenderer()

    if args.list_open:
        try:
            owner, repo = parse_pulls_page_url(args.url)
        except WrongContextError as e:
            print(str(e), file=sys.stderr)
            return 1
        token = (args.token or "").strip() or load_token(settings)
        try:
            pulls = GitHubAPIClient(token, debug_rest=args.verbose).list_pull_requests(owner, repo)
        except (GitHubAPIError, RateLimitedError) as e:
            print(f"Could not list pull requests: {e}", file=sys.stderr)
            return 1
        listing = listing_from_pulls(pulls)
    else:
        listing = listing_from_links(_read_links(args.links))

    session = SortSession.open(
        args.url,
        listing,
        settings,
        renderer=renderer,
        token=args.token,
        debug_rest=args.verbose,
    )
    renderer.reorder(listing.items)

    response = handle_sort_request(session, SortRequest(sort_order=order))

    for line in renderer.render_lines():
        print(line)
    print()
    print(response.message, file=sys.stdout if response.success else sys.stderr)

    if args.stats:
        print(json.dumps(GITHUB_API_STATS.to_dict(), indent=2, sort_keys=True))
        for call in GITHUB_API_STATS.get_actual_api_call_log():
            print(f"  {call['seq']:>3}. {call['text']}")

    return 0 if response.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
