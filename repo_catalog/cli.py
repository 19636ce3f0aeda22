"""
cli.py

Responsibility: CLI entrypoint for repo-catalog.

Commands:
- `enrich`: read the project list, look each project up on GitHub, write the report
- `sync-readme`: render the report (or raw list) into the README marker region

This module should orchestrate behavior but keep concerns isolated:
- Configuration: `config.py`
- GitHub API: `github_client.py`
- Enrichment: `enrichment.py`
- Rendering: `renderer.py`
"""

from __future__ import annotations

import argparse
import logging

from repo_catalog.config import Markers, load_config
from repo_catalog.enrichment import run_enrichment
from repo_catalog.errors import CatalogError
from repo_catalog.github_client import GitHubClient
from repo_catalog.renderer import sync_readme

logger = logging.getLogger("repo_catalog")


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # basicConfig is a no-op once the root logger has handlers.
    logger.setLevel(level)


def enrich_cmd(args: argparse.Namespace) -> int:
    config = load_config(args.config).with_overrides(
        data_file=args.input,
        output_file=args.output,
        delay_seconds=args.delay,
        timeout_seconds=args.timeout,
        api_base=args.api_base,
        accurate_contributors=args.accurate_contributors,
    )
    logger.info("Starting data enrichment process")
    with GitHubClient(
        config.api_base,
        user_agent=config.user_agent,
        timeout=config.timeout_seconds,
    ) as client:
        run_enrichment(
            config.data_file,
            config.output_file,
            client,
            delay_seconds=config.delay_seconds,
            accurate_contributors=config.accurate_contributors,
        )
    return 0


def sync_readme_cmd(args: argparse.Namespace) -> int:
    config = load_config(args.config).with_overrides(
        output_file=args.data,
        readme_file=args.readme,
    )
    markers = Markers(
        start=args.start_marker or config.markers.start,
        end=args.end_marker or config.markers.end,
    )
    sync_readme(config.output_file, config.readme_file, markers)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="repo-catalog", description="Enrich a project list from GitHub and sync it into a README")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    sub = p.add_subparsers(dest="command", required=True)

    e = sub.add_parser("enrich", help="Fetch GitHub metadata for every project and write the report")
    e.add_argument("--config", default=None, help="YAML config file (default: repo-catalog.yml if present)")
    e.add_argument("--input", default=None, help="Project list JSON (default: data.json)")
    e.add_argument("--output", default=None, help="Report JSON to write (default: processed-data.json)")
    e.add_argument("--delay", type=float, default=None, help="Seconds to pause between projects (default: 1.0)")
    e.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds (default: 30)")
    e.add_argument("--api-base", default=None, help="GitHub API base URL (default: https://api.github.com)")
    e.add_argument(
        "--accurate-contributors",
        action="store_true",
        default=None,
        help="Count contributors from the pagination Link header instead of the first page",
    )
    e.set_defaults(func=enrich_cmd)

    s = sub.add_parser("sync-readme", help="Render the project table into the README between the markers")
    s.add_argument("--config", default=None, help="YAML config file (default: repo-catalog.yml if present)")
    s.add_argument("--data", default=None, help="Report or project list JSON (default: processed-data.json)")
    s.add_argument("--readme", default=None, help="README to update (default: README.md)")
    s.add_argument("--start-marker", default=None, help="Line opening the generated region")
    s.add_argument("--end-marker", default=None, help="Line closing the generated region")
    s.set_defaults(func=sync_readme_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    try:
        return int(args.func(args))
    except CatalogError as e:
        logger.error("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
