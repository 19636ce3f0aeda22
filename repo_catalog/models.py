"""
models.py

Responsibility: Typed records flowing through the enrichment pipeline.

- `ProjectRecord`: one entry of the human-maintained input list.
- `EnrichedProject` / `DegradedProject`: the two shapes an output record can take.
- `EnrichmentReport`: the persisted artifact.

`to_dict()` produces the camelCase JSON shape consumed by the README renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from repo_catalog.github_client import RepoPayload

NOT_AVAILABLE = "N/A"
NO_DESCRIPTION = "No description"
NO_LICENSE = "No license"
DEFAULT_BRANCH = "main"


@dataclass(frozen=True)
class ProjectRecord:
    id: int
    name: str
    link: Any
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectRecord":
        extra = {k: v for k, v in data.items() if k not in ("id", "name", "link")}
        return cls(id=data["id"], name=data["name"], link=data["link"], extra=extra)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "link": self.link, **self.extra}


def _date_part(timestamp: str | None) -> str:
    if timestamp is None:
        return NOT_AVAILABLE
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return NOT_AVAILABLE
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


@dataclass(frozen=True)
class EnrichedProject:
    project: ProjectRecord
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    language: str = NOT_AVAILABLE
    description: str = NO_DESCRIPTION
    topics: list[str] = field(default_factory=list)
    last_updated: str = NOT_AVAILABLE
    created_at: str = NOT_AVAILABLE
    license: str = NO_LICENSE
    watchers: int = 0
    default_branch: str = DEFAULT_BRANCH
    is_archived: bool = False
    homepage: str = ""
    contributor_count: int = 0

    @classmethod
    def from_payload(cls, project: ProjectRecord, payload: RepoPayload) -> "EnrichedProject":
        """Merge a partial repository payload into the project, substituting defaults."""
        return cls(
            project=project,
            stars=_or(payload.stargazers_count, 0),
            forks=_or(payload.forks_count, 0),
            open_issues=_or(payload.open_issues_count, 0),
            language=_or(payload.language, NOT_AVAILABLE),
            description=_or(payload.description, NO_DESCRIPTION),
            topics=_or(payload.topics, []),
            last_updated=_date_part(payload.updated_at),
            created_at=_date_part(payload.created_at),
            license=_or(payload.license_name, NO_LICENSE),
            watchers=_or(payload.watchers_count, 0),
            default_branch=_or(payload.default_branch, DEFAULT_BRANCH),
            is_archived=bool(_or(payload.archived, False)),
            homepage=_or(payload.homepage, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.project.to_dict(),
            "stars": self.stars,
            "forks": self.forks,
            "openIssues": self.open_issues,
            "language": self.language,
            "description": self.description,
            "topics": list(self.topics),
            "lastUpdated": self.last_updated,
            "createdAt": self.created_at,
            "license": self.license,
            "watchers": self.watchers,
            "defaultBranch": self.default_branch,
            "isArchived": self.is_archived,
            "homepage": self.homepage,
            "contributorCount": self.contributor_count,
        }


@dataclass(frozen=True)
class DegradedProject:
    """A project whose lookup failed; numeric fields are zeroed."""

    project: ProjectRecord
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.project.to_dict(),
            "error": self.error,
            "stars": 0,
            "forks": 0,
            "openIssues": 0,
            "language": NOT_AVAILABLE,
        }


EnrichedRecord = Union[EnrichedProject, DegradedProject]


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class EnrichmentReport:
    generated_at: str
    projects: list[EnrichedRecord]

    @property
    def total_projects(self) -> int:
        return len(self.projects)

    @property
    def degraded_count(self) -> int:
        return sum(1 for p in self.projects if isinstance(p, DegradedProject))

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "totalProjects": self.total_projects,
            "projects": [p.to_dict() for p in self.projects],
        }
