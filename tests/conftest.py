from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests

from repo_catalog.github_client import GitHubError, RepoPayload


class FakeGitHubClient:
    """Stands in for GitHubClient; records every lookup it receives."""

    def __init__(
        self,
        repos: dict[str, dict[str, Any] | Exception] | None = None,
        contributors: dict[str, int | Exception] | None = None,
    ) -> None:
        self.repos = repos or {}
        self.contributors = contributors or {}
        self.calls: list[tuple[str, str]] = []

    def get_repo(self, owner: str, name: str) -> RepoPayload:
        key = f"{owner}/{name}"
        self.calls.append(("repo", key))
        result = self.repos.get(key, GitHubError(f"GitHub API error 404 GET /repos/{key}: Not Found"))
        if isinstance(result, Exception):
            raise result
        return RepoPayload.from_json(result)

    def count_contributors(self, owner: str, name: str, *, accurate: bool = False) -> int:
        key = f"{owner}/{name}"
        self.calls.append(("contributors", key))
        result = self.contributors.get(key, 1)
        if isinstance(result, Exception):
            raise result
        return result


def make_response(status: int, body: Any = None, headers: dict[str, str] | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = b"" if body is None else json.dumps(body).encode("utf-8")
    r.headers.update(headers or {})
    return r


@pytest.fixture
def write_json(tmp_path: Path):
    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
