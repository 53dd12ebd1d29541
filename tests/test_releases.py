"""Tests for the release notes artifact."""

import json
from unittest.mock import patch

import pytest

from leaderboard import releases as releases_mod
from leaderboard.releases import (
    DEFAULT_SUMMARY,
    build_releases,
    release_contributors,
    release_summary,
    write_releases,
)
from tests.fakes import FakeResponse


def commit(login):
    return {"sha": "x", "author": {"login": login} if login else None}


RELEASES = [
    {"tag_name": "v3.0", "draft": False, "published_at": "2024-03-01T10:00:00Z",
     "body": "\n  Faster simulator\nMore notes", "html_url": "https://gh/app/releases/v3.0"},
    {"tag_name": "v2.9-rc", "draft": True, "published_at": None, "body": "wip"},
    {"tag_name": "v2.0", "draft": False, "published_at": "2024-02-01T10:00:00Z",
     "body": "", "html_url": "https://gh/app/releases/v2.0"},
    {"tag_name": "v1.0", "draft": False, "published_at": "2024-01-01T10:00:00Z",
     "body": None, "html_url": "https://gh/app/releases/v1.0"},
]


@pytest.mark.parametrize(
    "body, expected",
    [
        ("Big fix\nDetails", "Big fix"),
        ("\n\n   \n  Trimmed  \n", "Trimmed"),
        ("", DEFAULT_SUMMARY),
        ("   \n\n", DEFAULT_SUMMARY),
        (None, DEFAULT_SUMMARY),
    ],
)
def test_release_summary(body, expected):
    assert release_summary(body) == expected


def test_release_contributors_top_five_without_bots():
    commits = (
        [commit("alice")] * 3
        + [commit("bob")] * 4
        + [commit("dependabot[bot]")] * 9
        + [commit("RoBot-ci")] * 2
        + [commit(None)]
        + [commit(u) for u in ("carol", "dave", "erin", "frank")]
    )

    assert release_contributors(commits) == [
        {"username": "bob", "commits": 4},
        {"username": "alice", "commits": 3},
        {"username": "carol", "commits": 1},
        {"username": "dave", "commits": 1},
        {"username": "erin", "commits": 1},
    ]


def test_build_releases_compares_against_previous_published(make_client, sleeps):
    client, session = make_client([
        FakeResponse(json_data=RELEASES),
        FakeResponse(json_data={"commits": [commit("alice"), commit("bob"), commit("alice")]}),
        FakeResponse(json_data={"commits": [commit("carol")]}),
    ])

    out = build_releases(client, [("App", "org/app")])

    urls = [c["url"] for c in session.calls]
    assert urls == [
        "https://api.github.com/repos/org/app/releases",
        "https://api.github.com/repos/org/app/compare/v2.0...v3.0",
        "https://api.github.com/repos/org/app/compare/v1.0...v2.0",
    ]
    assert [r["version"] for r in out] == ["v3.0", "v2.0", "v1.0"]
    assert out[0] == {
        "repo": "App",
        "repoSlug": "org/app",
        "version": "v3.0",
        "date": "2024-03-01",
        "summary": "Faster simulator",
        "contributors": [{"username": "alice", "commits": 2}, {"username": "bob", "commits": 1}],
        "githubUrl": "https://gh/app/releases/v3.0",
    }
    assert out[1]["summary"] == DEFAULT_SUMMARY
    assert out[2]["contributors"] == []


def test_failed_compare_leaves_contributors_empty(make_client, sleeps, caplog):
    client, _ = make_client([
        FakeResponse(json_data=RELEASES[2:]),
        FakeResponse(status_code=404, text="Not Found"),
    ])

    with caplog.at_level("WARNING", logger=releases_mod.__name__):
        out = build_releases(client, [("App", "org/app")])

    assert [r["contributors"] for r in out] == [[], []]
    assert "No contributors for org/app v2.0" in caplog.text


def test_failed_release_listing_skips_repo(make_client, sleeps, caplog):
    client, _ = make_client([
        FakeResponse(status_code=404, text="Not Found"),
        FakeResponse(json_data=RELEASES[3:]),
    ])

    with caplog.at_level("WARNING", logger=releases_mod.__name__):
        out = build_releases(client, [("Gone", "org/gone"), ("App", "org/app")])

    assert [(r["repo"], r["version"]) for r in out] == [("App", "v1.0")]
    assert "Skipping releases for org/gone" in caplog.text


def test_write_releases_replaces_atomically(tmp_path):
    path = tmp_path / "releases" / "releases.json"
    write_releases([{"version": "v1.0"}], path)

    with patch("leaderboard.report.json.dump", side_effect=RuntimeError("disk full")):
        with pytest.raises(RuntimeError):
            write_releases([{"version": "v2.0"}], path)

    assert json.loads(path.read_text()) == [{"version": "v1.0"}]
    assert [p.name for p in path.parent.iterdir()] == ["releases.json"]
