"""Contribution streaks over a daily-activity series."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Optional

from leaderboard.dates import parse_day


def calculate_streaks(
    daily_activity: Iterable[Mapping],
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """
    Returns {'current': int, 'longest': int}.

    A streak is a run of consecutive UTC days with at least one activity.
    The current streak only counts if the last active day is today or
    yesterday; a repeated date neither extends nor breaks a streak.
    """
    active = sorted(
        parse_day(d["date"]) for d in (daily_activity or []) if d.get("count", 0) > 0
    )
    if not active:
        return {"current": 0, "longest": 0}

    longest = 0
    run = 0
    prev = None
    for day in active:
        if prev is None:
            run = 1
        else:
            gap = (day - prev).days
            if gap == 1:
                run += 1
            elif gap > 1:
                run = 1
        prev = day
        longest = max(longest, run)

    now = now or datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    current = 0
    if active[-1] in (today, today - timedelta(days=1)):
        current = 1
        for i in range(len(active) - 1, 0, -1):
            gap = (active[i] - active[i - 1]).days
            if gap == 1:
                current += 1
            elif gap > 1:
                break

    return {"current": current, "longest": longest}
