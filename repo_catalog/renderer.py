"""
renderer.py

Responsibility: Render the project catalog into the README.

Rules:
- Accept either the enrichment report or the raw project list as input.
- Render the table and summary through Jinja2 templates packaged with the module.
- Replace only the region between the marker pair; everything else in the
  README is preserved byte-for-byte.

This module intentionally does NOT know about GitHub or the enrichment step
beyond the JSON file shape it reads.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from repo_catalog.config import Markers
from repo_catalog.errors import CatalogError, ProjectFileError
from repo_catalog.files import write_text_atomic

logger = logging.getLogger(__name__)

MISSING_CELL = "-"
NOT_AVAILABLE = "N/A"


class RenderError(CatalogError):
    pass


@dataclass(frozen=True)
class CatalogStats:
    total_projects: int
    total_stars: int
    total_forks: int
    degraded: int
    archived: int
    languages: list[tuple[str, int]]

    @property
    def top_language(self) -> str | None:
        return self.languages[0][0] if self.languages else None


def _count(value: Any) -> int:
    # bool is an int subclass; a stray `true` must not count as a star.
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def compute_stats(projects: list[dict[str, Any]]) -> CatalogStats:
    languages = Counter(
        p["language"]
        for p in projects
        if isinstance(p.get("language"), str) and p["language"] not in ("", NOT_AVAILABLE)
    )
    return CatalogStats(
        total_projects=len(projects),
        total_stars=sum(_count(p.get("stars")) for p in projects),
        total_forks=sum(_count(p.get("forks")) for p in projects),
        degraded=sum(1 for p in projects if p.get("error")),
        archived=sum(1 for p in projects if p.get("isArchived") is True),
        languages=sorted(languages.items(), key=lambda kv: (-kv[1], kv[0])),
    )


def _cell(value: Any) -> str:
    """Format a value for a Markdown table cell."""
    if value is None or value == "":
        return MISSING_CELL
    text = str(value).replace("\r", " ").replace("\n", " ")
    return text.replace("|", "\\|")


def _get_template_env() -> Environment:
    env = Environment(
        loader=PackageLoader("repo_catalog", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["cell"] = _cell
    return env


def _row(project: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": project.get("id"),
        "name": project.get("name"),
        "language": project.get("language"),
        "stars": project.get("stars"),
        "forks": project.get("forks"),
        "last_updated": project.get("lastUpdated"),
        "link": project.get("link") if isinstance(project.get("link"), str) else None,
        "archived": project.get("isArchived") is True,
    }


def render_catalog(projects: list[dict[str, Any]], generated_at: str | None = None) -> str:
    """
    Render the Markdown table followed by the summary block.

    Failure modes:
        - Raises RenderError if a template is missing or malformed
    """
    env = _get_template_env()
    stats = compute_stats(projects)
    try:
        table = env.get_template("projects_table.md.j2").render(rows=[_row(p) for p in projects])
        summary = env.get_template("summary.md.j2").render(
            stats=stats,
            languages_text=", ".join(f"{lang} ({count})" for lang, count in stats.languages),
            generated_at=generated_at,
        )
    except TemplateError as e:
        raise RenderError(f"Failed rendering catalog templates: {e}") from e
    return f"{table}\n{summary}"


def splice_between_markers(document: str, start: str, end: str, body: str) -> str:
    """
    Replace everything from the first `start` marker through the last `end`
    marker with the markers wrapped around `body`.
    """
    begin = document.find(start)
    if begin == -1:
        raise RenderError(f"Start marker not found: {start}")
    finish = document.rfind(end)
    if finish == -1 or finish < begin + len(start):
        raise RenderError(f"End marker not found after start marker: {end}")
    replacement = f"{start}\n\n{body}\n{end}"
    return document[:begin] + replacement + document[finish + len(end) :]


def load_projects(data_path: str | Path) -> tuple[list[dict[str, Any]], str | None]:
    """
    Read projects from an enrichment report or a bare project list.

    Returns (projects, generated_at_or_none).
    """
    path = Path(data_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ProjectFileError(f"Cannot read data file {path}: {e}") from e
    except ValueError as e:
        raise ProjectFileError(f"Data file {path} is not valid JSON: {e}") from e

    generated_at: str | None = None
    if isinstance(data, dict):
        projects = data.get("projects")
        raw_generated = data.get("generatedAt")
        generated_at = raw_generated if isinstance(raw_generated, str) else None
    else:
        projects = data

    if not isinstance(projects, list) or not all(isinstance(p, dict) for p in projects):
        raise ProjectFileError(f"Data file {path} must hold a list of project objects.")
    return projects, generated_at


def sync_readme(
    data_path: str | Path,
    readme_path: str | Path,
    markers: Markers | None = None,
) -> int:
    """
    Regenerate the catalog region of the README. Returns the number of projects rendered.
    """
    markers = markers or Markers()
    projects, generated_at = load_projects(data_path)

    path = Path(readme_path)
    try:
        # newline="" keeps the document's own line endings intact.
        with path.open(encoding="utf-8", newline="") as fh:
            document = fh.read()
    except OSError as e:
        raise RenderError(f"Cannot read README {path}: {e}") from e

    body = render_catalog(projects, generated_at)
    updated = splice_between_markers(document, markers.start, markers.end, body)
    if updated == document:
        logger.info("%s already up to date", path)
    else:
        write_text_atomic(path, updated)
        logger.info("%s updated with %d projects", path, len(projects))
    return len(projects)
