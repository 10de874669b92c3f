"""
Pytest tests for PR number extraction and listing URL parsing.

Run from the repository root:
    pytest contributor_sort/test_extract.py -v
"""

import sys
from pathlib import Path

import pytest

# Set up path for imports
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

from common_github.errors import WrongContextError
from contributor_sort.extract import (
    extract_pr_number,
    extract_pr_numbers,
    max_pr_count,
    parse_pulls_page_url,
)


@pytest.mark.parametrize("ref,expected", [
    ("https://github.com/o/r/pull/123", 123),
    ("/o/r/pull/77/files", 77),
    ("https://github.com/o/r/pull/9#issuecomment-1", 9),
    ("https://github.com/o/r/issues/5", None),
    ("https://github.com/o/r/pulls", None),
    ("/o/r/pull/0", None),
    ("", None),
    (None, None),
])
def test_extract_pr_number(ref, expected):
    assert extract_pr_number(ref) == expected


def test_numbers_are_unique_in_first_seen_order():
    refs = ["/o/r/pull/3", "/o/r/pull/1", "/o/r/pull/3/files", "/o/r/issues/2", "/o/r/pull/2"]
    assert extract_pr_numbers(refs, authenticated=True) == [3, 1, 2]


def test_anonymous_cap_is_ten():
    refs = [f"/o/r/pull/{n}" for n in range(1, 26)]
    assert extract_pr_numbers(refs, authenticated=False) == list(range(1, 11))


def test_authenticated_cap_is_fifty():
    refs = [f"/o/r/pull/{n}" for n in range(1, 80)]
    assert len(extract_pr_numbers(refs, authenticated=True)) == 50
    assert (max_pr_count(True), max_pr_count(False)) == (50, 10)


def test_duplicates_do_not_count_against_cap():
    refs = ["/o/r/pull/1"] * 20 + [f"/o/r/pull/{n}" for n in range(2, 12)]
    assert extract_pr_numbers(refs, authenticated=False) == list(range(1, 11))


@pytest.mark.parametrize("url", [
    "https://github.com/NVIDIA/dynamo/pulls",
    "https://github.com/NVIDIA/dynamo/pulls?q=is%3Aopen",
    "https://www.github.com/NVIDIA/dynamo/pulls/",
])
def test_parse_pulls_page_url(url):
    assert parse_pulls_page_url(url) == ("NVIDIA", "dynamo")


@pytest.mark.parametrize("url", [
    "https://github.com/NVIDIA/dynamo",
    "https://github.com/NVIDIA/dynamo/issues",
    "https://github.com/NVIDIA/dynamo/pull/12",
    "https://gitlab.com/NVIDIA/dynamo/pulls",
    "not a url",
    "",
])
def test_parse_rejects_other_pages(url):
    with pytest.raises(WrongContextError):
        parse_pulls_page_url(url)
