"""
enrichment.py

Responsibility: Turn the project list into an `EnrichmentReport`.

High-level flow:
1) Read and validate the project list (`load_project_records`)
2) Enrich each project in input order, pausing between lookups (`enrich_all`)
3) Persist the report atomically (`write_report`)

Per-project failures are recorded on the output record and never abort the
batch. Only file-level problems are fatal.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence

from repo_catalog.errors import ProjectFileError
from repo_catalog.files import write_text_atomic
from repo_catalog.github_client import GitHubClient, GitHubError
from repo_catalog.models import (
    DegradedProject,
    EnrichedProject,
    EnrichedRecord,
    EnrichmentReport,
    ProjectRecord,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

INVALID_URL_ERROR = "Invalid GitHub URL"

_GITHUB_URL_RE = re.compile(r"github\.com/([^/?#\s]+)/([^/?#\s]+)")


@dataclass(frozen=True)
class RepoRef:
    owner: str
    name: str


def resolve_repo_url(link: Any) -> RepoRef | None:
    """
    Extract owner/repo from a GitHub link. Returns None when the link does not
    look like `.../github.com/<owner>/<repo>`.
    """
    if not isinstance(link, str):
        return None
    m = _GITHUB_URL_RE.search(link.strip())
    if not m:
        return None
    name = re.sub(r"\.git$", "", m.group(2))
    if not name:
        return None
    return RepoRef(owner=m.group(1), name=name)


def enrich_project(
    project: ProjectRecord,
    client: GitHubClient,
    *,
    accurate_contributors: bool = False,
) -> EnrichedRecord:
    logger.info("Fetching data for: %s", project.name)

    ref = resolve_repo_url(project.link)
    if ref is None:
        logger.warning("Invalid GitHub URL: %s", project.link)
        return DegradedProject(project=project, error=INVALID_URL_ERROR)

    try:
        payload = client.get_repo(ref.owner, ref.name)
    except GitHubError as e:
        logger.error("Error fetching data for %s: %s", project.name, e)
        return DegradedProject(project=project, error=str(e))

    enriched = EnrichedProject.from_payload(project, payload)

    try:
        contributors = client.count_contributors(ref.owner, ref.name, accurate=accurate_contributors)
    except GitHubError as e:
        logger.warning("Could not fetch contributors for %s: %s", project.name, e)
        contributors = 0

    logger.info("Successfully enriched: %s", project.name)
    return replace(enriched, contributor_count=contributors)


def enrich_all(
    projects: Sequence[ProjectRecord],
    client: GitHubClient,
    *,
    delay_seconds: float = 1.0,
    accurate_contributors: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> list[EnrichedRecord]:
    """
    Enrich projects one at a time in input order.

    The fixed pause keeps anonymous API usage under GitHub's hourly quota; it is
    skipped after the last project.
    """
    results: list[EnrichedRecord] = []
    for index, project in enumerate(projects):
        results.append(enrich_project(project, client, accurate_contributors=accurate_contributors))
        if index < len(projects) - 1 and delay_seconds > 0:
            sleep(delay_seconds)
    return results


def load_project_records(path: str | Path) -> list[ProjectRecord]:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ProjectFileError(f"Cannot read project file {p}: {e}") from e
    except ValueError as e:
        raise ProjectFileError(f"Project file {p} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ProjectFileError(f"Project file {p} must contain a JSON array.")

    records: list[ProjectRecord] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ProjectFileError(f"Project #{index} in {p} must be an object.")
        missing = [k for k in ("id", "name", "link") if k not in item]
        if missing:
            raise ProjectFileError(f"Project #{index} in {p} is missing: {', '.join(missing)}")
        records.append(ProjectRecord.from_dict(item))
    return records


def write_report(path: str | Path, report: EnrichmentReport) -> None:
    write_text_atomic(path, json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n")


def run_enrichment(
    input_path: str | Path,
    output_path: str | Path,
    client: GitHubClient,
    *,
    delay_seconds: float = 1.0,
    accurate_contributors: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    now: datetime | None = None,
) -> EnrichmentReport:
    projects = load_project_records(input_path)
    logger.info("Found %d projects to process", len(projects))

    enriched = enrich_all(
        projects,
        client,
        delay_seconds=delay_seconds,
        accurate_contributors=accurate_contributors,
        sleep=sleep,
    )
    report = EnrichmentReport(generated_at=utc_timestamp(now), projects=enriched)
    write_report(output_path, report)

    logger.info("Enriched data saved to %s", output_path)
    logger.info(
        "Total projects processed: %d (%d degraded)", report.total_projects, report.degraded_count
    )
    return report
