"""
Pytest tests for the sort_prs command line (network replaced by a fake requests.get).

Run from the repository root:
    pytest test_sort_prs.py -v
"""

import json
import sys
from pathlib import Path

import pytest
import requests

# Set up path for imports
parent_dir = Path(__file__).parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import common_github
import sort_prs
from common_github import GITHUB_API_STATS
from conftest import rest_pr

PULLS_URL = "https://github.com/o/r/pulls"


def _json_response(status, body):
    r = requests.Response()
    r.status_code = status
    r.url = "https://api.github.com/test"
    r.encoding = "utf-8"
    r._content = json.dumps(body).encode()
    return r


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def fake_github(monkeypatch):
    payloads = {
        1: rest_pr(1, "MEMBER", login="maintainer"),
        2: rest_pr(2, "FIRST_TIME_CONTRIBUTOR", login="newbie"),
        3: rest_pr(3, "OWNER", login="owner"),
    }
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        if url.endswith("/repos/o/r/pulls"):
            return _json_response(200, [
                dict(payloads[n], html_url=f"https://github.com/o/r/pull/{n}", title=f"PR {n}") for n in (1, 2, 3)
            ])
        number = int(url.rsplit("/", 1)[-1])
        if number in payloads:
            return _json_response(200, payloads[number])
        return _json_response(404, {"message": "Not Found"})

    monkeypatch.setattr(common_github.requests, "get", fake_get)
    GITHUB_API_STATS.reset()
    yield calls
    GITHUB_API_STATS.reset()


def test_status_shows_defaults(settings_file, capsys):
    assert sort_prs.main(["--settings-file", str(settings_file), "--status"]) == 0
    out = capsys.readouterr().out
    assert "Current sort:    Default" in out
    assert "GitHub token:    Not Set" in out
    assert "API mode:        REST API (Limited)" in out


def test_set_token_then_status(settings_file, capsys):
    assert sort_prs.main(["--settings-file", str(settings_file), "--set-token", "ghp_abc"]) == 0
    assert "Token saved successfully!" in capsys.readouterr().out

    sort_prs.main(["--settings-file", str(settings_file), "--status"])
    out = capsys.readouterr().out
    assert "Set (Authenticated)" in out
    assert "GraphQL API (Unlimited)" in out


def test_set_invalid_token_fails(settings_file, capsys):
    assert sort_prs.main(["--settings-file", str(settings_file), "--set-token", "nope"]) == 1
    assert "Invalid token format" in capsys.readouterr().err
    assert not settings_file.exists()


def test_clear_token(settings_file, capsys):
    sort_prs.main(["--settings-file", str(settings_file), "--set-token", "ghp_abc"])
    assert sort_prs.main(["--settings-file", str(settings_file), "--clear-token"]) == 0
    assert "github_token" not in json.loads(settings_file.read_text())["items"]


def test_sort_links_new_first(settings_file, fake_github, tmp_path, capsys):
    links = tmp_path / "links.txt"
    links.write_text("# scraped\n" + "\n".join(f"https://github.com/o/r/pull/{n}" for n in (1, 2, 3)) + "\n")

    rc = sort_prs.main([
        "--settings-file", str(settings_file), "--url", PULLS_URL, "--links", str(links),
        "--order", "new-first", "--token", "ghp_once",
    ])

    out = capsys.readouterr().out
    assert rc == 0
    rows = [ln for ln in out.splitlines() if ln.strip().startswith("#")]
    assert [r.split()[0] for r in rows] == ["#2", "#1", "#3"]
    assert "Sorted by new contributors successfully!" in out
    assert len(fake_github) == 3
    stored = json.loads(settings_file.read_text())["items"]
    assert stored["sort_order"] == "new-first"
    assert "github_token" not in stored
    assert isinstance(stored["pr_cache"], str)


def test_sort_uses_stored_preference(settings_file, fake_github, capsys):
    sort_prs.main(["--settings-file", str(settings_file), "--set-token", "ghp_abc"])
    capsys.readouterr()
    sort_prs.main([
        "--settings-file", str(settings_file), "--url", PULLS_URL, "--list-open", "--order", "existing-first",
    ])
    capsys.readouterr()

    rc = sort_prs.main(["--settings-file", str(settings_file), "--url", PULLS_URL, "--list-open"])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Sorted by existing contributors successfully!" in out
    # second sort served from the cache: only the listing is requested again
    assert sum(1 for u in fake_github if u.endswith("/pulls")) == 2
    assert len(fake_github) == 5


def test_wrong_page_fails(settings_file, fake_github, tmp_path, capsys):
    links = tmp_path / "links.txt"
    links.write_text("https://github.com/o/r/pull/1\n")

    rc = sort_prs.main([
        "--settings-file", str(settings_file), "--url", "https://github.com/o/r/issues",
        "--links", str(links), "--order", "new-first",
    ])

    assert rc == 1
    assert "Not on a GitHub pull requests page" in capsys.readouterr().err
    assert fake_github == []


def test_url_required_to_sort(settings_file):
    with pytest.raises(SystemExit):
        sort_prs.main(["--settings-file", str(settings_file), "--list-open"])
