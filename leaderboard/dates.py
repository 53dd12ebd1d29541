"""Timestamp helpers. Every calendar day in this package is a UTC day."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def parse_dt(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are read as UTC."""
    if not s:
        return None
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_day(s: str) -> str:
    """Truncate a timestamp to its UTC calendar day as YYYY-MM-DD."""
    return parse_dt(s).astimezone(timezone.utc).strftime("%Y-%m-%d")


def parse_day(s: str) -> date:
    return date.fromisoformat(s[:10])


def iso_day(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")


def iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
