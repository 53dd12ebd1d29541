"""
GitHub REST client.

Pages through collection endpoints 100 items at a time and paces itself
against the X-RateLimit-Remaining header. Search requests get a fixed,
stricter delay because the search API allows only 30 requests per minute.

Non-success responses raise UpstreamError; the client never retries.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Optional

import requests

from leaderboard.dates import iso_day, iso_utc, parse_dt

log = logging.getLogger(__name__)

GITHUB_API      = "https://api.github.com"
PAGE_SIZE       = 100
REQUEST_TIMEOUT = 60
SEARCH_DELAY    = 2.5           # seconds after every search request
SEARCH_CEILING  = 1000          # search API never returns more than this per query


class UpstreamError(RuntimeError):
    """Non-success HTTP status returned by the GitHub API."""

    def __init__(self, status: int, body: str = "", url: str = "") -> None:
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"GitHub API {status}: {body[:200]}")


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_base: str = GITHUB_API,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }

    # ── Pacing ────────────────────────────────────────────────────────────────

    def _smart_sleep(self, resp: requests.Response, default: float = 0.5) -> None:
        """Sleep longer the closer we are to exhausting the rate-limit budget."""
        remaining = resp.headers.get("X-RateLimit-Remaining")
        try:
            count = int(remaining) if remaining is not None else None
        except ValueError:
            count = None

        if count is None:
            time.sleep(default)
        elif count > 500:
            time.sleep(0.2)
        elif count > 100:
            time.sleep(0.4)
        else:
            time.sleep(1.0)

    # ── Core fetchers ─────────────────────────────────────────────────────────

    def _request(self, url: str, params: Optional[dict] = None) -> requests.Response:
        return self.session.get(
            url, params=params, headers=self.headers, timeout=REQUEST_TIMEOUT,
        )

    def _check(self, resp: requests.Response, url: str) -> None:
        if not resp.ok:
            raise UpstreamError(resp.status_code, resp.text or "", url)

    def get(self, url: str) -> requests.Response:
        """Single GET; the caller inspects the status itself."""
        resp = self._request(url)
        if resp.ok:
            self._smart_sleep(resp, 0.3)
        return resp

    def fetch_all_pages(self, url: str, default_sleep: float = 0.5) -> list:
        """Fetch every page of a collection endpoint, in request order."""
        page = 1
        results: list = []
        while True:
            resp = self._request(url, {"per_page": PAGE_SIZE, "page": page})
            self._check(resp, url)
            self._smart_sleep(resp, default_sleep)

            data = resp.json()
            results.extend(data)
            if len(data) < PAGE_SIZE:
                break
            page += 1
        return results

    def fetch_org_repos(self, org: str) -> list[str]:
        """Names of all non-archived repositories in an organization."""
        url = f"{self.api_base}/orgs/{org}/repos"
        repos: list[str] = []
        page = 1

        log.info(f"Fetching all repositories for {org}…")
        while True:
            resp = self._request(url, {"per_page": PAGE_SIZE, "page": page})
            self._check(resp, url)
            self._smart_sleep(resp, 0.5)

            data = resp.json()
            if not data:
                break
            repos.extend(r["name"] for r in data if not r.get("archived"))
            page += 1

        log.info(f"  {len(repos)} active repositories")
        return repos

    # ── Specific fetchers ─────────────────────────────────────────────────────

    def fetch_repo_pull_requests_since(
        self, org: str, repo: str, since: datetime,
    ) -> list[dict]:
        """
        PRs updated on/after `since`, newest first.
        Stops paging as soon as a page reaches past `since`, so only the
        recently-touched head of the PR history is scanned.
        """
        url = f"{self.api_base}/repos/{org}/{repo}/pulls"
        prs: list[dict] = []
        page = 1

        while True:
            resp = self._request(url, {
                "state": "all",
                "sort": "updated",
                "direction": "desc",
                "per_page": PAGE_SIZE,
                "page": page,
            })
            self._check(resp, url)

            data = resp.json()
            if not data:
                break

            for pr in data:
                updated = parse_dt(pr.get("updated_at"))
                if updated and updated >= since:
                    prs.append(pr)

            last_updated = parse_dt(data[-1].get("updated_at"))
            if last_updated and last_updated < since:
                break

            page += 1
            self._smart_sleep(resp, 1.0)

        return prs

    def fetch_repo_issues_since(
        self, org: str, repo: str, since: datetime,
    ) -> list[dict]:
        """Issues (pull requests excluded) updated on/after `since`."""
        url = (
            f"{self.api_base}/repos/{org}/{repo}/issues"
            f"?state=all&since={iso_utc(since)}"
        )
        return [i for i in self.fetch_all_pages(url) if "pull_request" not in i]

    def fetch_pr_reviews(self, org: str, repo: str, number: int) -> list[dict]:
        return self.fetch_all_pages(
            f"{self.api_base}/repos/{org}/{repo}/pulls/{number}/reviews"
        )

    def fetch_issue_events(self, org: str, repo: str, number: int) -> list[dict]:
        return self.fetch_all_pages(
            f"{self.api_base}/repos/{org}/{repo}/issues/{number}/events"
        )

    # ── Releases ──────────────────────────────────────────────────────────────

    def fetch_releases(self, repo: str) -> list[dict]:
        """Every release of `repo` ("owner/name"), newest first as GitHub lists them."""
        return self.fetch_all_pages(f"{self.api_base}/repos/{repo}/releases")

    def fetch_compare(self, repo: str, base: str, head: str) -> dict:
        """Commit comparison between two refs of `repo` ("owner/name")."""
        url = f"{self.api_base}/repos/{repo}/compare/{base}...{head}"
        resp = self.get(url)
        self._check(resp, url)
        return resp.json()

    # ── Search ────────────────────────────────────────────────────────────────

    def search(self, url: str, params: Optional[dict] = None) -> dict:
        resp = self._request(url, params)
        self._check(resp, url)
        # Search budget is 30 req/min regardless of the core budget
        time.sleep(SEARCH_DELAY)
        return resp.json()

    def search_by_date_windows(
        self,
        query: str,
        start: datetime,
        end: datetime,
        window_days: int = 30,
        date_field: str = "created",
    ) -> list[dict]:
        """
        Run one paginated issue search per `window_days` slice of [start, end].
        Windows keep each query under the search API's result ceiling.
        """
        url = f"{self.api_base}/search/issues"
        items: list[dict] = []
        cursor = start

        while cursor < end:
            to = min(cursor + timedelta(days=window_days), end)
            window = f"{iso_day(cursor)}..{iso_day(to)}"
            log.info(f"  → {query} {date_field}:{window}")

            page = 1
            while True:
                data = self.search(url, {
                    "q": f"{query} {date_field}:{window}",
                    "per_page": PAGE_SIZE,
                    "page": page,
                })
                if page == 1 and data.get("total_count", 0) > SEARCH_CEILING:
                    log.warning(
                        f"Search window {window} has {data['total_count']} results; "
                        f"only the first {SEARCH_CEILING} are reachable"
                    )
                page_items = data.get("items") or []
                items.extend(page_items)
                if len(page_items) < PAGE_SIZE or page * PAGE_SIZE >= SEARCH_CEILING:
                    break
                page += 1

            cursor = to

        return items
