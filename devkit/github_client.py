"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads / pagination headers

List endpoints are paginated with RFC 5988 `Link` headers; `paginate()` follows the
`rel="next"` URL until GitHub stops sending one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import requests
from requests.utils import parse_header_links

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubError(RuntimeError):
    pass


@dataclass(frozen=True)
class Milestone:
    number: int
    title: str
    state: str
    description: str = ""
    html_url: str = ""
    due_on: str | None = None
    closed_at: str | None = None


@dataclass(frozen=True)
class IssueInfo:
    number: int
    title: str
    html_url: str
    state: str
    labels: tuple[str, ...] = ()
    user: str = ""
    closed_at: str | None = None
    is_pull_request: bool = False


def parse_link_header(value: str | None) -> dict[str, str]:
    """
    Map each `rel` of a `Link` header to its URL.

    Example: `<https://api.github.com/...&page=2>; rel="next"` -> {"next": "https://..."}
    """
    if not value:
        return {}
    links: dict[str, str] = {}
    for link in parse_header_links(value):
        rel = link.get("rel")
        url = link.get("url")
        if rel and url:
            for name in rel.split():
                links[name] = url
    return links


def _milestone(data: dict[str, Any]) -> Milestone:
    return Milestone(
        number=int(data["number"]),
        title=str(data.get("title") or ""),
        state=str(data.get("state") or "open"),
        description=str(data.get("description") or ""),
        html_url=str(data.get("html_url") or ""),
        due_on=data.get("due_on"),
        closed_at=data.get("closed_at"),
    )


def _issue(data: dict[str, Any]) -> IssueInfo:
    return IssueInfo(
        number=int(data["number"]),
        title=str(data.get("title") or ""),
        html_url=str(data.get("html_url") or ""),
        state=str(data.get("state") or "open"),
        labels=tuple(str(label["name"]) for label in data.get("labels") or [] if isinstance(label, dict) and label.get("name")),
        user=str((data.get("user") or {}).get("login") or ""),
        closed_at=data.get("closed_at"),
        is_pull_request="pull_request" in data,
    )


class GitHubClient:
    def __init__(
        self,
        token: str | None = None,
        api_base: str = "https://api.github.com",
        session: requests.Session | None = None,
    ) -> None:
        self._token = (token or "").strip() or None
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "devkit",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._api_base}{path}"

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        try:
            r = self._session.get(url, headers=self._headers(), params=params, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub request failed: GET {url}: {e}") from e
        if r.status_code >= 400:
            raise GitHubError(self._error_message(r, url))
        return r

    @staticmethod
    def _json(r: requests.Response, url: str) -> Any:
        # Proxies and captive portals answer 200 with an HTML page.
        try:
            return r.json()
        except ValueError as e:
            raise GitHubError(f"Invalid JSON from GET {url}") from e

    @staticmethod
    def _error_message(r: requests.Response, url: str) -> str:
        try:
            payload = r.json()
        except ValueError:
            payload = {"message": r.text}
        message = payload.get("message", payload) if isinstance(payload, dict) else payload
        if r.status_code in (403, 429) and r.headers.get("X-RateLimit-Remaining") == "0":
            reset = r.headers.get("X-RateLimit-Reset")
            when = ""
            if reset and reset.isdigit():
                when = " until " + datetime.fromtimestamp(int(reset), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
            return f"GitHub API rate limit exceeded{when} (set a token to raise the limit): GET {url}"
        return f"GitHub API error {r.status_code} GET {url}: {message}"

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = self._url(path)
        return self._json(self._get(url, params), url)

    def paginate(self, path: str, params: dict[str, Any] | None = None) -> Iterator[Any]:
        """
        Yield every item of a paginated list endpoint, following `Link: rel="next"`.

        The next URL already carries the query string, so params are only sent once.
        """
        url: str | None = self._url(path)
        query: dict[str, Any] | None = {"per_page": PER_PAGE, **(params or {})}
        page = 0
        while url:
            r = self._get(url, query)
            page += 1
            data = self._json(r, url)
            if not isinstance(data, list):
                raise GitHubError(f"Expected a JSON array from GET {url}, got {type(data).__name__}")
            logger.debug("Fetched page %d of %s (%d items)", page, path, len(data))
            yield from data
            url = parse_link_header(r.headers.get("Link")).get("next")
            query = None

    def list_milestones(self, owner: str, repo: str, state: str = "all") -> list[Milestone]:
        items = self.paginate(
            f"/repos/{owner}/{repo}/milestones",
            {"state": state, "sort": "due_on", "direction": "desc"},
        )
        return [_milestone(item) for item in items]

    def get_milestone(self, owner: str, repo: str, title: str) -> Milestone:
        for milestone in self.list_milestones(owner, repo, state="all"):
            if milestone.title == title:
                return milestone
        raise GitHubError(f"Milestone not found in {owner}/{repo}: {title}")

    def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        milestone: int | str | None = None,
        state: str = "closed",
        labels: list[str] | None = None,
        include_pull_requests: bool = False,
    ) -> list[IssueInfo]:
        """
        List issues of a repository. The issues endpoint also returns pull requests;
        they are dropped unless `include_pull_requests` is set.
        """
        params: dict[str, Any] = {"state": state}
        if milestone is not None:
            params["milestone"] = str(milestone)
        if labels:
            params["labels"] = ",".join(labels)
        issues = [_issue(item) for item in self.paginate(f"/repos/{owner}/{repo}/issues", params)]
        if not include_pull_requests:
            issues = [i for i in issues if not i.is_pull_request]
        return issues
