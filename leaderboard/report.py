"""Leaderboard artifact: assembly, atomic writes, tolerant loading."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Optional

from leaderboard.config import HIDDEN_ROLES, PERIOD_DAYS, TOP_PER_ACTIVITY
from leaderboard.dates import parse_dt, utc_now


def filter_events(events: Iterable[Mapping], start: datetime, end: datetime) -> list[dict]:
    """Events whose timestamp falls in [start, end]."""
    out = []
    for ev in events:
        dt = parse_dt(ev["occurred_at"])
        if start <= dt <= end:
            out.append(dict(ev))
    return out


def rank_entries(contributors: Mapping[str, dict]) -> list[dict]:
    return sorted(
        contributors.values(),
        key=lambda c: (-c["total_points"], c["username"]),
    )


def top_by_activity(
    entries: list[dict], limit: int = TOP_PER_ACTIVITY,
) -> dict[str, list[dict]]:
    """Top contributors for each observed activity type, by points."""
    by_type: dict[str, list[dict]] = {}
    for c in entries:
        for activity_type, stats in c["activity_breakdown"].items():
            by_type.setdefault(activity_type, []).append({
                "username":   c["username"],
                "name":       c["name"],
                "avatar_url": c["avatar_url"],
                "points":     stats["points"],
                "count":      stats["count"],
            })
    return {
        t: sorted(rows, key=lambda r: (-r["points"], -r["count"], r["username"]))[:limit]
        for t, rows in sorted(by_type.items())
    }


def build_report(
    period: str,
    contributors: Mapping[str, dict],
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> dict:
    now = now or utc_now()
    entries = rank_entries(contributors)
    return {
        "period":        period,
        "updatedAt":     int(now.timestamp() * 1000),
        "startDate":     start.isoformat(),
        "endDate":       end.isoformat(),
        "entries":       entries,
        "topByActivity": top_by_activity(entries),
        "hiddenRoles":   list(HIDDEN_ROLES),
    }


def empty_report(period: str, now: Optional[datetime] = None) -> dict:
    now = now or utc_now()
    return {
        "period":        period,
        "updatedAt":     int(now.timestamp() * 1000),
        "startDate":     now.isoformat(),
        "endDate":       now.isoformat(),
        "entries":       [],
        "topByActivity": {},
        "hiddenRoles":   [],
    }


def is_valid_report(data) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("entries"), list)
        and isinstance(data.get("topByActivity"), dict)
        and isinstance(data.get("hiddenRoles"), list)
        and data.get("period") in PERIOD_DAYS
    )


def write_json(data, path: Path) -> Path:
    """
    Write `data` to `path` via a temp file + rename, so readers only ever
    see the previous artifact or the complete new one.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2, default=str)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return path


def write_report(report: dict, path: Path) -> Path:
    return write_json(report, path)


def load_report(path: Path, period: str) -> dict:
    """Load an artifact; missing or corrupt files degrade to an empty board."""
    p = Path(path)
    if not p.exists():
        return empty_report(period)
    try:
        with p.open() as f:
            data = json.load(f)
    except (OSError, ValueError):
        return empty_report(period)
    return data if is_valid_report(data) else empty_report(period)
