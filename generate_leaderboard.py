#!/usr/bin/env python3
"""
generate_leaderboard.py

Pulls the last year of GitHub activity (PRs, issues, reviews, issue triage)
for every repository of an organization, scores it per contributor, and
writes one leaderboard artifact per period (week, month, year).

Output: <OUTPUT_DIR>/week.json, month.json, year.json
        <RELEASES_FILE> when LEADERBOARD_RELEASE_REPOS lists any repositories

Every period is built in memory before anything is written; a failed run
leaves the previous artifacts in place.

Usage:
    export GITHUB_TOKEN=ghp_...
    export LEADERBOARD_ORG=my-org
    export LEADERBOARD_RELEASE_REPOS="Mobile App=my-org/mobile,my-org/web"   # optional
    python generate_leaderboard.py
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from leaderboard.config import PERIOD_DAYS
from leaderboard.dates import utc_now
from leaderboard.github import GITHUB_API, GitHubClient
from leaderboard.ingest import collect_events
from leaderboard.releases import build_releases, write_releases
from leaderboard.report import build_report, filter_events, write_report
from leaderboard.scoring import ScoringEngine
from leaderboard.stats import build_entries_df

# ── Config ───────────────────────────────────────────────────────────────────
ORG           = os.environ.get("LEADERBOARD_ORG", "ohcnetwork")
OUTPUT_DIR    = Path(os.environ.get("LEADERBOARD_OUTPUT_DIR", "public/leaderboard"))
API_BASE      = os.environ.get("GITHUB_API_URL", GITHUB_API)
RELEASES_FILE = Path(os.environ.get("LEADERBOARD_RELEASES_FILE", "public/releases/releases.json"))


def parse_release_repos(value: str) -> list[tuple[str, str]]:
    """
    "Display Name=owner/repo,owner/other" → [(name, slug), ...].
    Without a display name the repository name is used.
    """
    repos = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        name, _, slug = part.rpartition("=")
        slug = slug.strip()
        repos.append((name.strip() or slug.split("/")[-1], slug))
    return repos


RELEASE_REPOS = parse_release_repos(os.environ.get("LEADERBOARD_RELEASE_REPOS", ""))

log = logging.getLogger(__name__)


def get_token() -> str:
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if not token:
        raise EnvironmentError(
            "GITHUB_TOKEN environment variable is required but not set. "
            "Create a token at https://github.com/settings/tokens (read:org + repo scopes)."
        )
    return token


def build_reports(
    events: list[dict],
    end: datetime,
    now: Optional[datetime] = None,
) -> dict[str, dict]:
    """One finished report per period; each period gets its own fresh engine."""
    reports: dict[str, dict] = {}
    for period, days in PERIOD_DAYS.items():
        start = end - timedelta(days=days)
        engine = ScoringEngine()
        contributors = engine.score_events(filter_events(events, start, end))
        reports[period] = build_report(period, contributors, start, end, now=now)
        log.info(f"  {period}: {len(contributors)} contributors")
    return reports


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    token = get_token()
    client = GitHubClient(token, API_BASE)

    end = utc_now()
    start = end - timedelta(days=max(PERIOD_DAYS.values()))

    log.info(f"Pulling activity for {ORG} from {start:%Y-%m-%d} to {end:%Y-%m-%d}…")
    events = collect_events(client, ORG, start, end)

    log.info("Scoring periods…")
    reports = build_reports(events, end)

    releases = None
    if RELEASE_REPOS:
        log.info(f"Collecting releases for {len(RELEASE_REPOS)} repositories…")
        releases = build_releases(client, RELEASE_REPOS)

    for period, report in reports.items():
        path = write_report(report, OUTPUT_DIR / f"{period}.json")
        log.info(f"✓ Saved {path} ({path.stat().st_size / 1024:.1f} KB)")
    if releases is not None:
        path = write_releases(releases, RELEASES_FILE)
        log.info(f"✓ Saved {path} ({len(releases)} releases)")

    # ── Quick summary table ──────────────────────────────────────────────────
    df = build_entries_df(reports["year"]).head(20)
    print("\n── Top Contributors (year) ──────────────────────────────────────────────")
    print(df.to_string(index=False) if not df.empty else "(no activity)")


if __name__ == "__main__":
    main()
