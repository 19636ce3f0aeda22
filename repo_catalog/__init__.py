"""
repo_catalog package

Keeps a README project table in sync with live GitHub metadata.

Key responsibilities are split across modules:
- `github_client.py`: isolated GitHub REST API interactions (read-only lookups)
- `enrichment.py`: resolve links, enrich projects one at a time, write the report
- `renderer.py`: statistics, Markdown table rendering, README marker splicing
- `config.py`: YAML configuration file
- `cli.py`: CLI entrypoint and orchestration (enrich -> report, report -> README)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
