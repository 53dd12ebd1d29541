"""
Release notes artifact: one entry per published release of each configured
repository, with its top committers since the previous published release.

Output is a JSON list of
  {repo, repoSlug, version, date, summary, contributors, githubUrl}
where contributors is [{username, commits}], at most five, most commits first.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from leaderboard.github import UpstreamError
from leaderboard.report import write_json

log = logging.getLogger(__name__)

DEFAULT_SUMMARY = (
    "This release includes internal improvements, bug fixes, and contributor updates."
)
TOP_RELEASE_CONTRIBUTORS = 5


def release_summary(body: Optional[str]) -> str:
    """First non-blank line of the release notes."""
    for line in (body or "").splitlines():
        if line.strip():
            return line.strip()
    return DEFAULT_SUMMARY


def release_contributors(
    commits: Iterable[dict], limit: int = TOP_RELEASE_CONTRIBUTORS,
) -> list[dict]:
    """Commit counts per author login; unlinked authors and bots are skipped."""
    counts: Counter = Counter()
    for commit in commits:
        login = (commit.get("author") or {}).get("login")
        if not login or "bot" in login.lower():
            continue
        counts[login] += 1
    return [{"username": u, "commits": n} for u, n in counts.most_common(limit)]


def _previous_published(releases: list[dict], index: int) -> Optional[dict]:
    return next((r for r in releases[index + 1:] if not r.get("draft")), None)


def repo_releases(client, name: str, slug: str) -> list[dict]:
    """Entries for every non-draft release of one repository."""
    releases = client.fetch_releases(slug)
    entries = []
    for i, current in enumerate(releases):
        if current.get("draft"):
            continue

        contributors: list[dict] = []
        previous = _previous_published(releases, i)
        if previous is not None:
            try:
                compare = client.fetch_compare(slug, previous["tag_name"], current["tag_name"])
                contributors = release_contributors(compare.get("commits") or [])
            except UpstreamError as e:
                log.warning(
                    f"No contributors for {slug} {current['tag_name']}: {e}"
                )

        entries.append({
            "repo":         name,
            "repoSlug":     slug,
            "version":      current["tag_name"],
            "date":         (current.get("published_at") or "")[:10] or None,
            "summary":      release_summary(current.get("body")),
            "contributors": contributors,
            "githubUrl":    current.get("html_url"),
        })
    return entries


def build_releases(client, repos: Iterable[tuple[str, str]]) -> list[dict]:
    """
    Release entries for each (display name, "owner/name") pair, in the order
    given. A repository whose release list cannot be fetched is skipped.
    """
    out: list[dict] = []
    for name, slug in repos:
        log.info(f"  releases: {slug}")
        try:
            out.extend(repo_releases(client, name, slug))
        except UpstreamError as e:
            log.warning(f"Skipping releases for {slug}: {e}")
    return out


def write_releases(releases: list[dict], path: Path) -> Path:
    return write_json(releases, path)
