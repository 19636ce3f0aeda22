from __future__ import annotations

import json
import os
import stat
from datetime import datetime, timezone
from pathlib import Path

import pytest

from repo_catalog.enrichment import (
    INVALID_URL_ERROR,
    RepoRef,
    enrich_all,
    enrich_project,
    load_project_records,
    resolve_repo_url,
    run_enrichment,
)
from repo_catalog.errors import OutputWriteError, ProjectFileError
from repo_catalog.github_client import GitHubError
from repo_catalog.models import DegradedProject, EnrichedProject, ProjectRecord
from tests.conftest import FakeGitHubClient


@pytest.mark.parametrize(
    "link, expected",
    [
        ("https://github.com/psf/requests", RepoRef("psf", "requests")),
        ("https://github.com/psf/requests.git", RepoRef("psf", "requests")),
        ("https://github.com/Pallets/Jinja/tree/main/src", RepoRef("Pallets", "Jinja")),
        ("https://github.com/psf/requests?tab=readme", RepoRef("psf", "requests")),
        ("  https://github.com/psf/requests  ", RepoRef("psf", "requests")),
    ],
)
def test_resolve_repo_url(link: str, expected: RepoRef) -> None:
    assert resolve_repo_url(link) == expected


@pytest.mark.parametrize(
    "link",
    ["https://gitlab.com/group/project", "https://github.com/only-owner", "not a url", "", None, 42],
)
def test_resolve_repo_url_not_resolvable(link: object) -> None:
    assert resolve_repo_url(link) is None


def _project(link: str = "https://github.com/x/y", **extra: object) -> ProjectRecord:
    return ProjectRecord(id=1, name="A", link=link, extra=dict(extra))


def test_partial_payload_gets_documented_defaults() -> None:
    client = FakeGitHubClient(repos={"x/y": {"stargazers_count": 42}}, contributors={"x/y": 1})

    record = enrich_project(_project(), client)

    assert isinstance(record, EnrichedProject)
    assert record.to_dict() == {
        "id": 1,
        "name": "A",
        "link": "https://github.com/x/y",
        "stars": 42,
        "forks": 0,
        "openIssues": 0,
        "language": "N/A",
        "description": "No description",
        "topics": [],
        "lastUpdated": "N/A",
        "createdAt": "N/A",
        "license": "No license",
        "watchers": 0,
        "defaultBranch": "main",
        "isArchived": False,
        "homepage": "",
        "contributorCount": 1,
    }


def test_full_payload_is_merged() -> None:
    payload = {
        "stargazers_count": 10,
        "forks_count": 2,
        "open_issues_count": 3,
        "language": "Python",
        "description": "Widgets",
        "topics": ["cli", "http"],
        "updated_at": "2024-05-06T07:08:09Z",
        "created_at": "2019-01-02T03:04:05Z",
        "license": {"key": "mit", "name": "MIT License"},
        "watchers_count": 10,
        "default_branch": "trunk",
        "archived": True,
        "homepage": "https://widgets.example",
    }
    client = FakeGitHubClient(repos={"x/y": payload})

    data = enrich_project(_project(tier="gold"), client).to_dict()

    assert data["tier"] == "gold"
    assert data["language"] == "Python"
    assert data["topics"] == ["cli", "http"]
    assert data["lastUpdated"] == "2024-05-06"
    assert data["createdAt"] == "2019-01-02"
    assert data["license"] == "MIT License"
    assert data["defaultBranch"] == "trunk"
    assert data["isArchived"] is True
    assert data["homepage"] == "https://widgets.example"


def test_null_and_unparseable_fields_fall_back() -> None:
    payload = {"description": None, "homepage": None, "license": None, "updated_at": "yesterday"}
    data = enrich_project(_project(), FakeGitHubClient(repos={"x/y": payload})).to_dict()

    assert data["description"] == "No description"
    assert data["homepage"] == ""
    assert data["license"] == "No license"
    assert data["lastUpdated"] == "N/A"


def test_unresolvable_link_degrades_without_network() -> None:
    client = FakeGitHubClient()

    record = enrich_project(_project(link="https://example.com/nope"), client)

    assert isinstance(record, DegradedProject)
    assert record.error == INVALID_URL_ERROR
    assert client.calls == []


def test_primary_lookup_failure_degrades_record() -> None:
    client = FakeGitHubClient(repos={"x/y": GitHubError("GitHub API error 404 GET /repos/x/y: Not Found")})

    data = enrich_project(_project(), client).to_dict()

    assert data["stars"] == 0
    assert data["forks"] == 0
    assert data["openIssues"] == 0
    assert data["language"] == "N/A"
    assert "404" in data["error"]
    assert client.calls == [("repo", "x/y")]


def test_contributor_failure_keeps_primary_fields() -> None:
    client = FakeGitHubClient(
        repos={"x/y": {"stargazers_count": 7, "language": "Go"}},
        contributors={"x/y": GitHubError("GitHub API error 403 GET /repos/x/y/contributors: rate limit")},
    )

    data = enrich_project(_project(), client).to_dict()

    assert data["stars"] == 7
    assert data["language"] == "Go"
    assert data["contributorCount"] == 0
    assert "error" not in data


def test_enrich_all_preserves_order_and_pauses_between_projects() -> None:
    projects = [
        ProjectRecord(id=1, name="ok", link="https://github.com/a/ok"),
        ProjectRecord(id=2, name="bad-url", link="ftp://nowhere"),
        ProjectRecord(id=3, name="missing", link="https://github.com/a/missing"),
        ProjectRecord(id=4, name="ok2", link="https://github.com/a/ok2"),
    ]
    client = FakeGitHubClient(repos={"a/ok": {}, "a/ok2": {"stargazers_count": 1}})
    pauses: list[float] = []

    results = enrich_all(projects, client, delay_seconds=1.5, sleep=pauses.append)

    assert [r.project.id for r in results] == [1, 2, 3, 4]
    assert [type(r) for r in results] == [EnrichedProject, DegradedProject, DegradedProject, EnrichedProject]
    assert pauses == [1.5, 1.5, 1.5]


def test_enrich_all_single_project_does_not_pause() -> None:
    pauses: list[float] = []
    enrich_all([_project()], FakeGitHubClient(repos={"x/y": {}}), sleep=pauses.append)
    assert pauses == []


def test_load_project_records_keeps_extra_keys(write_json) -> None:
    path = write_json("data.json", [{"id": 1, "name": "A", "link": "https://github.com/x/y", "tag": "t"}])
    [record] = load_project_records(path)
    assert record.extra == {"tag": "t"}
    assert record.to_dict() == {"id": 1, "name": "A", "link": "https://github.com/x/y", "tag": "t"}


@pytest.mark.parametrize(
    "content, message",
    [
        ("{not json", "not valid JSON"),
        ('{"projects": []}', "JSON array"),
        ("[1, 2]", "must be an object"),
        ('[{"id": 1, "name": "A"}]', "missing: link"),
    ],
)
def test_load_project_records_rejects_malformed_input(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "data.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ProjectFileError, match=message):
        load_project_records(path)


def test_load_project_records_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProjectFileError, match="Cannot read"):
        load_project_records(tmp_path / "absent.json")


def test_run_enrichment_writes_report(write_json, tmp_path: Path) -> None:
    source = [
        {"id": 1, "name": "A", "link": "https://github.com/x/y"},
        {"id": 2, "name": "B", "link": "nope"},
    ]
    input_path = write_json("data.json", source)
    output_path = tmp_path / "processed-data.json"
    client = FakeGitHubClient(repos={"x/y": {"stargazers_count": 42}})

    report = run_enrichment(
        input_path,
        output_path,
        client,
        sleep=lambda _: None,
        now=datetime(2024, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc),
    )

    written = json.loads(output_path.read_text(encoding="utf-8"))
    assert written["generatedAt"] == "2024-03-04T05:06:07.890Z"
    assert written["totalProjects"] == 2
    assert [p["id"] for p in written["projects"]] == [1, 2]
    assert written["projects"][0]["stars"] == 42
    assert written["projects"][1]["error"] == INVALID_URL_ERROR
    assert report.degraded_count == 1
    assert list(tmp_path.glob("*.tmp")) == []


def test_run_enrichment_unwritable_output(write_json, tmp_path: Path) -> None:
    input_path = write_json("data.json", [])
    with pytest.raises(OutputWriteError):
        run_enrichment(input_path, tmp_path / "no-such-dir" / "out.json", FakeGitHubClient())


def test_run_enrichment_bad_input_leaves_previous_report(tmp_path: Path) -> None:
    output_path = tmp_path / "processed-data.json"
    output_path.write_text('{"projects": []}', encoding="utf-8")
    (tmp_path / "data.json").write_text("[", encoding="utf-8")

    with pytest.raises(ProjectFileError):
        run_enrichment(tmp_path / "data.json", output_path, FakeGitHubClient())

    assert output_path.read_text(encoding="utf-8") == '{"projects": []}'


def _umask_default_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def test_run_enrichment_new_report_uses_umask_mode(write_json, tmp_path: Path) -> None:
    output_path = tmp_path / "processed-data.json"
    run_enrichment(write_json("data.json", []), output_path, FakeGitHubClient())
    assert stat.S_IMODE(output_path.stat().st_mode) == _umask_default_mode()


def test_run_enrichment_keeps_existing_report_mode(write_json, tmp_path: Path) -> None:
    output_path = tmp_path / "processed-data.json"
    output_path.write_text("{}", encoding="utf-8")
    output_path.chmod(0o640)

    run_enrichment(write_json("data.json", []), output_path, FakeGitHubClient())

    assert stat.S_IMODE(output_path.stat().st_mode) == 0o640


def test_run_enrichment_unencodable_text_writes_nothing(tmp_path: Path) -> None:
    # A lone surrogate is valid JSON but cannot be encoded as UTF-8.
    (tmp_path / "data.json").write_text('[{"id": 1, "name": "\\ud800", "link": "nope"}]', encoding="utf-8")
    output_path = tmp_path / "processed-data.json"

    with pytest.raises(OutputWriteError):
        run_enrichment(tmp_path / "data.json", output_path, FakeGitHubClient())

    assert sorted(p.name for p in tmp_path.iterdir()) == ["data.json"]
