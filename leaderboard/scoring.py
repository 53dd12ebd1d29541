"""
Contributor scoring engine.

Folds a stream of activities into one aggregate record per contributor.
Ingestion is two-pass: `record_activity` updates totals incrementally and
tolerates duplicates coming from overlapping sources, then a single
`deduplicate_and_recompute` pass drops duplicates and rebuilds every
aggregate from the surviving raw activities.

The engine trusts its input: activity types and timestamps are not
validated here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Optional

from leaderboard.config import (
    ALUMNI,
    MAINTAINERS,
    ROLE_ALUMNI,
    ROLE_CONTRIBUTOR,
    ROLE_MAINTAINER,
)
from leaderboard.dates import utc_day

_BRACKETS_RE   = re.compile(r"[\[\]]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return None
    title = _BRACKETS_RE.sub("", title).replace(":", " - ")
    return _WHITESPACE_RE.sub(" ", title).strip() or None


def dedup_key(activity: dict) -> tuple:
    link = activity.get("link")
    return (
        activity["type"],
        activity["occurred_at"],
        link if link is not None else activity.get("title"),
    )


def derive_role(
    username: str,
    maintainers: frozenset[str] = MAINTAINERS,
    alumni: frozenset[str] = ALUMNI,
) -> str:
    login = username.lower()
    if login in maintainers:
        return ROLE_MAINTAINER
    if login in alumni:
        return ROLE_ALUMNI
    return ROLE_CONTRIBUTOR


class ScoringEngine:
    """Registry of contributors for a single run."""

    def __init__(
        self,
        maintainers: frozenset[str] = MAINTAINERS,
        alumni: frozenset[str] = ALUMNI,
    ) -> None:
        self.maintainers = frozenset(m.lower() for m in maintainers)
        self.alumni = frozenset(a.lower() for a in alumni)
        self.contributors: dict[str, dict] = {}
        # username → {day → daily_activity entry}
        self._days: dict[str, dict[str, dict]] = {}

    def ensure_contributor(self, user: Mapping) -> dict:
        """Return the contributor for `user["login"]`, creating it on first sight."""
        login = user["login"]
        entry = self.contributors.get(login)
        if entry is None:
            entry = {
                "username":           login,
                "name":               user.get("name"),
                "avatar_url":         user.get("avatar_url"),
                "role":               derive_role(login, self.maintainers, self.alumni),
                "total_points":       0,
                "activity_breakdown": {},
                "daily_activity":     [],
                "raw_activities":     [],
            }
            self.contributors[login] = entry
            self._days[login] = {}
        return entry

    def record_activity(
        self,
        contributor: dict,
        activity_type: str,
        occurred_at: str,
        points: int,
        meta: Optional[Mapping] = None,
    ) -> None:
        meta = meta or {}
        day = utc_day(occurred_at)

        contributor["total_points"] += points

        breakdown = contributor["activity_breakdown"].setdefault(
            activity_type, {"count": 0, "points": 0}
        )
        breakdown["count"] += 1
        breakdown["points"] += points

        days = self._days.setdefault(contributor["username"], {})
        bucket = days.get(day)
        if bucket is None:
            bucket = {"date": day, "count": 0, "points": 0}
            days[day] = bucket
            contributor["daily_activity"].append(bucket)
        bucket["count"] += 1
        bucket["points"] += points

        contributor["raw_activities"].append({
            "type":        activity_type,
            "occurred_at": occurred_at,
            "title":       sanitize_title(meta.get("title")),
            "link":        meta.get("link"),
            "points":      points,
        })

    def deduplicate_and_recompute(self) -> None:
        """Drop duplicate raw activities and rebuild every aggregate from them."""
        for username, entry in self.contributors.items():
            seen: set[tuple] = set()
            unique: list[dict] = []
            for act in entry["raw_activities"]:
                key = dedup_key(act)
                if key in seen:
                    continue
                seen.add(key)
                unique.append(act)

            breakdown: dict[str, dict] = {}
            days: dict[str, dict] = {}
            total = 0
            for act in unique:
                total += act["points"]

                b = breakdown.setdefault(act["type"], {"count": 0, "points": 0})
                b["count"] += 1
                b["points"] += act["points"]

                day = utc_day(act["occurred_at"])
                d = days.setdefault(day, {"date": day, "count": 0, "points": 0})
                d["count"] += 1
                d["points"] += act["points"]

            entry["raw_activities"] = unique
            entry["total_points"] = total
            entry["activity_breakdown"] = breakdown
            entry["daily_activity"] = sorted(
                days.values(), key=lambda d: d["date"], reverse=True
            )
            self._days[username] = days

    def score_events(self, events: Iterable[Mapping]) -> dict[str, dict]:
        """Fold ingestion events into the registry and finalize it."""
        for ev in events:
            entry = self.ensure_contributor(ev)
            self.record_activity(
                entry, ev["type"], ev["occurred_at"], ev["points"],
                {"title": ev.get("title"), "link": ev.get("link")},
            )
        self.deduplicate_and_recompute()
        return self.contributors
