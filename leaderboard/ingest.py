"""
Ingestion: raw GitHub records → flat list of scored activity events.

Every event looks like
    {login, name, avatar_url, type, occurred_at, points, title, link}
and carries its points from the points table. Sources overlap (a merged PR
can show up more than once); the scoring engine removes duplicates later.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Optional

from leaderboard.config import (
    ISSUE_EVENT_TYPES,
    ISSUE_OPENED,
    POINTS,
    PR_MERGED,
    PR_OPENED,
    REVIEW_SUBMITTED,
)
from leaderboard.dates import parse_dt
from leaderboard.github import GitHubClient, UpstreamError

log = logging.getLogger(__name__)


def is_bot(user: Optional[Mapping]) -> bool:
    if not user:
        return True
    return user.get("type") == "Bot" or user.get("login", "").endswith("[bot]")


def in_window(ts: Optional[str], start: datetime, end: datetime) -> bool:
    dt = parse_dt(ts)
    return dt is not None and start <= dt <= end


def make_event(
    user: Mapping,
    activity_type: str,
    occurred_at: str,
    title: Optional[str] = None,
    link: Optional[str] = None,
) -> dict:
    return {
        "login":       user["login"],
        "name":        user.get("name"),
        "avatar_url":  user.get("avatar_url"),
        "type":        activity_type,
        "occurred_at": occurred_at,
        "points":      POINTS[activity_type],
        "title":       title,
        "link":        link,
    }


# ─────────────────────────────────────────────────────────────────────────────
# Search-backed sources (org-wide)
# ─────────────────────────────────────────────────────────────────────────────

def search_item_events(
    items: list[dict],
    activity_type: str,
    start: datetime,
    end: datetime,
) -> list[dict]:
    """Turn issue-search items into events dated by `activity_type`."""
    events: list[dict] = []
    for item in items:
        user = item.get("user")
        if is_bot(user):
            continue
        if activity_type == PR_MERGED:
            occurred_at = (
                (item.get("pull_request") or {}).get("merged_at")
                or item.get("closed_at")
            )
        else:
            occurred_at = item.get("created_at")
        if not in_window(occurred_at, start, end):
            continue
        events.append(make_event(
            user, activity_type, occurred_at,
            item.get("title"), item.get("html_url"),
        ))
    return events


def collect_search_events(
    client: GitHubClient, org: str, start: datetime, end: datetime,
) -> list[dict]:
    events: list[dict] = []

    log.info("Searching opened PRs…")
    items = client.search_by_date_windows(f"org:{org} is:pr", start, end)
    events += search_item_events(items, PR_OPENED, start, end)

    log.info("Searching merged PRs…")
    items = client.search_by_date_windows(
        f"org:{org} is:pr is:merged", start, end, date_field="merged",
    )
    events += search_item_events(items, PR_MERGED, start, end)

    log.info("Searching opened issues…")
    items = client.search_by_date_windows(f"org:{org} is:issue", start, end)
    events += search_item_events(items, ISSUE_OPENED, start, end)

    return events


# ─────────────────────────────────────────────────────────────────────────────
# Per-repository sources
# ─────────────────────────────────────────────────────────────────────────────

def review_events(
    pr: dict, reviews: list[dict], start: datetime, end: datetime,
) -> list[dict]:
    author = (pr.get("user") or {}).get("login")
    events: list[dict] = []
    for r in reviews:
        reviewer = r.get("user")
        if is_bot(reviewer) or reviewer["login"] == author:
            continue
        submitted = r.get("submitted_at")
        if r.get("state") == "PENDING" or not in_window(submitted, start, end):
            continue
        events.append(make_event(
            reviewer, REVIEW_SUBMITTED, submitted,
            pr.get("title"), pr.get("html_url"),
        ))
    return events


def issue_triage_events(
    issue: dict, timeline: list[dict], start: datetime, end: datetime,
) -> list[dict]:
    events: list[dict] = []
    for ev in timeline:
        activity_type = ISSUE_EVENT_TYPES.get(ev.get("event"))
        actor = ev.get("actor")
        if activity_type is None or is_bot(actor):
            continue
        if not in_window(ev.get("created_at"), start, end):
            continue
        events.append(make_event(
            actor, activity_type, ev["created_at"],
            issue.get("title"), issue.get("html_url"),
        ))
    return events


def collect_repo_events(
    client: GitHubClient, org: str, repo: str, start: datetime, end: datetime,
) -> list[dict]:
    events: list[dict] = []

    prs = client.fetch_repo_pull_requests_since(org, repo, start)
    for pr in prs:
        reviews = client.fetch_pr_reviews(org, repo, pr["number"])
        events += review_events(pr, reviews, start, end)

    issues = client.fetch_repo_issues_since(org, repo, start)
    for issue in issues:
        timeline = client.fetch_issue_events(org, repo, issue["number"])
        events += issue_triage_events(issue, timeline, start, end)

    log.info(f"  {repo}: {len(prs)} PRs, {len(issues)} issues, {len(events)} events")
    return events


def collect_events(
    client: GitHubClient,
    org: str,
    start: datetime,
    end: datetime,
    repos: Optional[list[str]] = None,
) -> list[dict]:
    """
    All scored events for `org` in [start, end].

    Search failures abort the run; a repository whose own fetches fail is
    skipped and logged.
    """
    events = collect_search_events(client, org, start, end)

    if repos is None:
        repos = client.fetch_org_repos(org)

    skipped: list[str] = []
    for repo in repos:
        try:
            events += collect_repo_events(client, org, repo, start, end)
        except UpstreamError as exc:
            log.warning(f"Skipping {org}/{repo}: {exc}")
            skipped.append(repo)

    log.info(
        f"Collected {len(events)} events from {len(repos) - len(skipped)} repos"
        + (f" ({len(skipped)} skipped)" if skipped else "")
    )
    return events
