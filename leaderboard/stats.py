"""
Derived statistics read from a finished leaderboard artifact:
  - per-contributor profile (streaks, PR turnaround, badges)
  - time buckets (last four weeks, previous month)
  - weekly trend table
  - activities grouped by type
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pandas as pd

from leaderboard.config import (
    BADGE_DEFINITIONS,
    POINTS_BADGE_TIERS,
    PR_MERGED,
    PR_OPENED,
    ROLE_MAINTAINER,
    STREAK_BADGE_TIERS,
)
from leaderboard.dates import parse_dt, utc_now
from leaderboard.streaks import calculate_streaks

ACTIVITY_COLUMNS = [
    "username", "name", "avatar_url", "role",
    "type", "occurred_at", "title", "link", "points",
]


def build_activity_df(report: dict) -> pd.DataFrame:
    """One row per raw activity across all entries."""
    rows = []
    for c in report.get("entries", []):
        for act in c.get("raw_activities", []):
            rows.append({
                "username":   c["username"],
                "name":       c.get("name"),
                "avatar_url": c.get("avatar_url"),
                "role":       c.get("role"),
                **act,
            })
    df = pd.DataFrame(rows, columns=ACTIVITY_COLUMNS)
    df["occurred_at"] = pd.to_datetime(df["occurred_at"], utc=True)
    return df


def build_entries_df(report: dict) -> pd.DataFrame:
    rows = [
        {
            "contributor": c["username"],
            "role":        c.get("role"),
            "points":      c["total_points"],
            "activities":  len(c.get("raw_activities", [])),
            "active_days": len(c.get("daily_activity", [])),
        }
        for c in report.get("entries", [])
    ]
    df = pd.DataFrame(rows, columns=["contributor", "role", "points", "activities", "active_days"])
    return df.sort_values("points", ascending=False).reset_index(drop=True)


# ── Per-contributor ───────────────────────────────────────────────────────────

def average_pr_turnaround_ms(activities: list[dict]) -> float:
    """Mean time from 'PR opened' to 'PR merged' for PRs with both records."""
    opened: dict[str, datetime] = {}
    durations: list[float] = []
    for act in sorted(activities, key=lambda a: parse_dt(a["occurred_at"])):
        link = act.get("link")
        if not link:
            continue
        if act["type"] == PR_OPENED:
            opened[link] = parse_dt(act["occurred_at"])
        elif act["type"] == PR_MERGED and link in opened:
            delta = parse_dt(act["occurred_at"]) - opened[link]
            durations.append(delta.total_seconds() * 1000)
    return sum(durations) / len(durations) if durations else 0.0


def _highest_tier(value: int, tiers) -> Optional[str]:
    return next((slug for threshold, slug in tiers if value >= threshold), None)


def contributor_badges(contributor: dict, streaks: dict) -> list[dict]:
    """
    Badges earned by one contributor: the best streak tier (current or
    longest, whichever is higher), the best points tier, and Core Team for
    maintainers.
    """
    slugs = [
        _highest_tier(max(streaks.get("current", 0), streaks.get("longest", 0)), STREAK_BADGE_TIERS),
        _highest_tier(contributor.get("total_points", 0), POINTS_BADGE_TIERS),
    ]
    if contributor.get("role") == ROLE_MAINTAINER:
        slugs.append("core_team")
    return [dict(BADGE_DEFINITIONS[s]) for s in slugs if s]


def contributor_profile(
    report: dict, username: str, now: Optional[datetime] = None,
) -> dict:
    contributor = next(
        (c for c in report.get("entries", [])
         if c["username"].lower() == username.lower()),
        None,
    )
    if contributor is None:
        return {
            "contributor":   None,
            "activities":    [],
            "totalPoints":   0,
            "dailyActivity": [],
            "badges":        [],
            "stats":         {"currentStreak": 0, "longestStreak": 0, "avgTurnAroundMs": 0.0},
        }

    activities = contributor.get("raw_activities", [])
    daily = contributor.get("daily_activity", [])
    streaks = calculate_streaks(daily, now=now)
    return {
        "contributor":   contributor,
        "activities":    activities,
        "totalPoints":   contributor["total_points"],
        "dailyActivity": daily,
        "badges":        contributor_badges(contributor, streaks),
        "stats": {
            "currentStreak":   streaks["current"],
            "longestStreak":   streaks["longest"],
            "avgTurnAroundMs": average_pr_turnaround_ms(activities),
        },
    }


# ── Time buckets ──────────────────────────────────────────────────────────────

def _days_ago(df: pd.DataFrame, now: Optional[datetime]) -> pd.Series:
    ref = pd.Timestamp(now or utc_now())
    return (ref - df["occurred_at"]).dt.days


def monthly_activity_buckets(report: dict, now: Optional[datetime] = None) -> dict[str, int]:
    """Activity counts for each of the last four 7-day windows (w1 = most recent)."""
    days = _days_ago(build_activity_df(report), now)
    return {
        f"w{i + 1}": int(((days >= 7 * i) & (days < 7 * (i + 1))).sum())
        for i in range(4)
    }


def previous_month_activity_count(report: dict, now: Optional[datetime] = None) -> int:
    days = _days_ago(build_activity_df(report), now)
    return int(((days >= 30) & (days < 60)).sum())


def weekly_trend(report: dict) -> pd.DataFrame:
    """Activity count and points per contributor per ISO week (Monday start)."""
    df = build_activity_df(report)
    if df.empty:
        return pd.DataFrame(columns=["username", "week", "count", "points"])

    day = df["occurred_at"].dt.floor("D")
    df["week"] = (day - pd.to_timedelta(day.dt.weekday, unit="D")).dt.strftime("%Y-%m-%d")
    trend = (
        df.groupby(["username", "week"])
        .agg(count=("points", "size"), points=("points", "sum"))
        .reset_index()
    )
    return trend.sort_values(["week", "username"]).reset_index(drop=True)


# ── Grouping ──────────────────────────────────────────────────────────────────

def recent_activities_grouped_by_type(report: dict) -> list[dict]:
    groups: dict[str, dict] = {}
    for c in report.get("entries", []):
        for act in c.get("raw_activities", []):
            group = groups.setdefault(act["type"], {
                "activity_definition": act["type"],
                "activity_name":       act["type"],
                "activities":          [],
            })
            group["activities"].append({
                "slug":                   f"{c['username']}-{act['type']}-{act['occurred_at']}-{len(group['activities'])}",
                "contributor":            c["username"],
                "contributor_name":       c.get("name"),
                "contributor_avatar_url": c.get("avatar_url"),
                "contributor_role":       c.get("role"),
                "occurred_at":            act["occurred_at"],
                "title":                  act.get("title"),
                "link":                   act.get("link"),
                "points":                 act.get("points") or 0,
            })

    for group in groups.values():
        group["activities"].sort(key=lambda a: parse_dt(a["occurred_at"]), reverse=True)
    return list(groups.values())
