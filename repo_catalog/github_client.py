"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Only anonymous, read-only lookups are made. Everything else (enrichment,
rendering, CLI behavior) should use this client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlparse

import requests

from repo_catalog.errors import CatalogError

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_USER_AGENT = "repo-catalog"


class GitHubError(CatalogError):
    pass


@dataclass(frozen=True)
class RepoPayload:
    """
    Partial view of a `GET /repos/{owner}/{repo}` response.

    Every field is optional: GitHub omits or nulls several of them, and the
    enrichment step decides what a missing value becomes.
    """

    stargazers_count: int | None = None
    forks_count: int | None = None
    open_issues_count: int | None = None
    language: str | None = None
    description: str | None = None
    topics: list[str] | None = None
    updated_at: str | None = None
    created_at: str | None = None
    license_name: str | None = None
    watchers_count: int | None = None
    default_branch: str | None = None
    archived: bool | None = None
    homepage: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "RepoPayload":
        license_raw = data.get("license")
        license_name = license_raw.get("name") if isinstance(license_raw, dict) else None
        topics = data.get("topics")
        return cls(
            stargazers_count=data.get("stargazers_count"),
            forks_count=data.get("forks_count"),
            open_issues_count=data.get("open_issues_count"),
            language=data.get("language"),
            description=data.get("description"),
            topics=list(topics) if isinstance(topics, list) else None,
            updated_at=data.get("updated_at"),
            created_at=data.get("created_at"),
            license_name=license_name,
            watchers_count=data.get("watchers_count"),
            default_branch=data.get("default_branch"),
            archived=data.get("archived"),
            homepage=data.get("homepage"),
        )


def _last_page_number(link_url: str) -> int | None:
    try:
        return int(parse_qs(urlparse(link_url).query)["page"][0])
    except (KeyError, IndexError, ValueError):
        return None


class GitHubClient:
    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._user_agent = user_agent
        self._timeout = timeout
        self._session = session if session is not None else requests.Session()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self._user_agent,
        }

    def _get(self, path: str, *, params: dict[str, Any] | None = None) -> requests.Response:
        url = f"{self._api_base}{path}"
        try:
            r = self._session.get(url, headers=self._headers(), params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed GET {path}: {e}") from e
        if not 200 <= r.status_code < 300:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            message = payload.get("message", payload) if isinstance(payload, dict) else payload
            raise GitHubError(f"GitHub API error {r.status_code} GET {path}: {message}")
        return r

    @staticmethod
    def _json(r: requests.Response, path: str) -> Any:
        try:
            return r.json()
        except ValueError as e:
            raise GitHubError(f"GitHub API returned invalid JSON for GET {path}") from e

    def get_repo(self, owner: str, name: str) -> RepoPayload:
        """
        Fetch repository metadata. Raises GitHubError on any failure.
        """
        path = f"/repos/{owner}/{name}"
        data = self._json(self._get(path), path)
        if not isinstance(data, dict):
            raise GitHubError(f"GitHub API returned an unexpected payload for GET {path}")
        return RepoPayload.from_json(data)

    def count_contributors(self, owner: str, name: str, *, accurate: bool = False) -> int:
        """
        Derive a contributor count from the first page of the contributor listing.

        With `per_page=1` the page holds at most one entry, so the default result
        is 0 or 1. When `accurate` is set, the `last` relation of the Link header
        gives the real page count (one contributor per page).
        """
        path = f"/repos/{owner}/{name}/contributors"
        r = self._get(path, params={"per_page": 1})
        if accurate:
            last = r.links.get("last", {}).get("url")
            if last:
                pages = _last_page_number(last)
                if pages is not None:
                    return pages
        # An empty repository answers 204 with no body.
        if r.status_code == 204 or not r.content:
            return 0
        data = self._json(r, path)
        return len(data) if isinstance(data, list) else 0
