"""Tests for the scheduled-run entry script."""

import json
from datetime import datetime, timezone

import pytest

import generate_leaderboard
from leaderboard.github import UpstreamError

END = datetime(2024, 6, 30, tzinfo=timezone.utc)

EVENTS = [
    {"login": "alice", "type": "PR merged", "occurred_at": "2024-06-29T00:00:00Z",
     "points": 5, "link": "pr/1"},
    {"login": "alice", "type": "PR merged", "occurred_at": "2024-06-29T00:00:00Z",
     "points": 5, "link": "pr/1"},
    {"login": "bob", "type": "Issue opened", "occurred_at": "2024-06-10T00:00:00Z",
     "points": 1, "link": "is/1"},
    {"login": "carol", "type": "PR opened", "occurred_at": "2024-01-10T00:00:00Z",
     "points": 2, "link": "pr/2"},
]


def test_build_reports_per_period():
    reports = generate_leaderboard.build_reports(EVENTS, END, now=END)

    assert set(reports) == {"week", "month", "year"}
    assert [e["username"] for e in reports["week"]["entries"]] == ["alice"]
    assert reports["week"]["entries"][0]["total_points"] == 5
    assert [e["username"] for e in reports["month"]["entries"]] == ["alice", "bob"]
    assert [e["username"] for e in reports["year"]["entries"]] == ["alice", "carol", "bob"]


def test_get_token_requires_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    with pytest.raises(EnvironmentError):
        generate_leaderboard.get_token()


def test_main_writes_every_period(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setattr(generate_leaderboard, "OUTPUT_DIR", tmp_path)
    monkeypatch.setattr(generate_leaderboard, "RELEASE_REPOS", [])
    monkeypatch.setattr(generate_leaderboard, "utc_now", lambda: END)
    monkeypatch.setattr(generate_leaderboard, "collect_events", lambda *a, **k: EVENTS)

    generate_leaderboard.main()

    assert sorted(p.name for p in tmp_path.iterdir()) == ["month.json", "week.json", "year.json"]
    week = json.loads((tmp_path / "week.json").read_text())
    assert week["period"] == "week"
    assert week["entries"][0]["username"] == "alice"
    assert "Top Contributors" in capsys.readouterr().out


def test_main_aborts_without_touching_artifacts(monkeypatch, tmp_path):
    previous = tmp_path / "week.json"
    previous.write_text('{"period": "week"}')

    def boom(*args, **kwargs):
        raise UpstreamError(502, "Bad Gateway")

    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setattr(generate_leaderboard, "OUTPUT_DIR", tmp_path)
    monkeypatch.setattr(generate_leaderboard, "collect_events", boom)

    with pytest.raises(UpstreamError):
        generate_leaderboard.main()

    assert previous.read_text() == '{"period": "week"}'
    assert [p.name for p in tmp_path.iterdir()] == ["week.json"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("", []),
        ("org/app", [("app", "org/app")]),
        ("Mobile App=org/mobile, org/web ,", [("Mobile App", "org/mobile"), ("web", "org/web")]),
    ],
)
def test_parse_release_repos(value, expected):
    assert generate_leaderboard.parse_release_repos(value) == expected


def test_main_writes_releases_when_configured(monkeypatch, tmp_path):
    releases_file = tmp_path / "releases" / "releases.json"
    seen = []

    def fake_build_releases(client, repos):
        seen.extend(repos)
        return [{"repo": "app", "version": "v1.0"}]

    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setattr(generate_leaderboard, "OUTPUT_DIR", tmp_path / "leaderboard")
    monkeypatch.setattr(generate_leaderboard, "RELEASES_FILE", releases_file)
    monkeypatch.setattr(generate_leaderboard, "RELEASE_REPOS", [("app", "org/app")])
    monkeypatch.setattr(generate_leaderboard, "utc_now", lambda: END)
    monkeypatch.setattr(generate_leaderboard, "collect_events", lambda *a, **k: EVENTS)
    monkeypatch.setattr(generate_leaderboard, "build_releases", fake_build_releases)

    generate_leaderboard.main()

    assert seen == [("app", "org/app")]
    assert json.loads(releases_file.read_text()) == [{"repo": "app", "version": "v1.0"}]
