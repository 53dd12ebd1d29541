"""Shared constants: activity types, points table, team membership, periods."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType

PR_OPENED        = "PR opened"
PR_MERGED        = "PR merged"
ISSUE_OPENED     = "Issue opened"
REVIEW_SUBMITTED = "Review submitted"
ISSUE_LABELED    = "Issue labeled"
ISSUE_ASSIGNED   = "Issue assigned"
ISSUE_CLOSED     = "Issue closed"

ACTIVITY_TYPES = (
    PR_OPENED, PR_MERGED, ISSUE_OPENED, REVIEW_SUBMITTED,
    ISSUE_LABELED, ISSUE_ASSIGNED, ISSUE_CLOSED,
)

# Points awarded per activity at ingestion time
POINTS = MappingProxyType({
    PR_OPENED:        2,
    PR_MERGED:        5,
    ISSUE_OPENED:     1,
    REVIEW_SUBMITTED: 4,
    ISSUE_LABELED:    2,
    ISSUE_ASSIGNED:   2,
    ISSUE_CLOSED:     1,
})

# Issue event name → activity type
ISSUE_EVENT_TYPES = MappingProxyType({
    "labeled":  ISSUE_LABELED,
    "assigned": ISSUE_ASSIGNED,
    "closed":   ISSUE_CLOSED,
})

ROLE_MAINTAINER  = "Maintainer"
ROLE_ALUMNI      = "Alumni"
ROLE_CONTRIBUTOR = "Contributor"

# Membership lists live in team.json beside this module
TEAM_FILE = Path(__file__).with_name("team.json")

with TEAM_FILE.open() as _f:
    _team = json.load(_f)

MAINTAINERS = frozenset(u.lower() for u in _team.get("maintainers", []))
ALUMNI      = frozenset(u.lower() for u in _team.get("alumni", []))

# Roles the leaderboard hides unless explicitly selected
HIDDEN_ROLES = (ROLE_MAINTAINER, ROLE_ALUMNI)

PERIOD_DAYS = MappingProxyType({
    "week":  7,
    "month": 30,
    "year":  365,
})

TOP_PER_ACTIVITY = 10

# ── Badges ────────────────────────────────────────────────────────────────────
# Thresholds are inclusive; only the highest tier of each category is awarded.
STREAK_BADGE_TIERS = ((30, "streak_30"), (10, "streak_10"), (5, "streak_5"))
POINTS_BADGE_TIERS = ((500, "points_500"), (100, "points_100"))


def _badge(slug: str, name: str, description: str, icon: str, color: str, category: str):
    return MappingProxyType({
        "slug":        slug,
        "name":        name,
        "description": description,
        "icon":        icon,
        "color":       color,
        "category":    category,
    })


BADGE_DEFINITIONS = MappingProxyType({
    "streak_5":   _badge("streak_5", "Consistency Starter",
                         "Maintained a 5-day contribution streak",
                         "🔥", "from-orange-400 to-red-500", "streak"),
    "streak_10":  _badge("streak_10", "Regular Contributor",
                         "Maintained a 10-day contribution streak",
                         "⚡", "from-blue-400 to-indigo-600", "streak"),
    "streak_30":  _badge("streak_30", "Streak Master",
                         "Maintained a 30-day contribution streak",
                         "👑", "from-yellow-400 to-amber-600", "streak"),
    "points_100": _badge("points_100", "Century Club",
                         "Earned 100 or more points",
                         "💯", "from-green-400 to-emerald-600", "points"),
    "points_500": _badge("points_500", "High Achiever",
                         "Earned 500 or more points",
                         "🚀", "from-purple-400 to-violet-600", "points"),
    "core_team":  _badge("core_team", "Core Team",
                         "Member of the maintainer team",
                         "🛡️", "from-red-500 to-rose-700", "special"),
})
