"""
config.py

Responsibility: Load the optional YAML configuration file into a typed model.

Resolution order (later wins): built-in defaults, the YAML file, CLI flags.
The CLI applies its flags through `CatalogConfig.with_overrides`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from repo_catalog.errors import CatalogError
from repo_catalog.github_client import DEFAULT_API_BASE, DEFAULT_USER_AGENT

DEFAULT_CONFIG_FILE = "repo-catalog.yml"


class ConfigError(CatalogError):
    pass


@dataclass(frozen=True)
class Markers:
    """Literal lines delimiting the generated region of the README."""

    start: str = "<!-- PROJECTS-TABLE:START -->"
    end: str = "<!-- PROJECTS-TABLE:END -->"


@dataclass(frozen=True)
class CatalogConfig:
    data_file: str = "data.json"
    output_file: str = "processed-data.json"
    readme_file: str = "README.md"
    delay_seconds: float = 1.0
    timeout_seconds: float = 30.0
    api_base: str = DEFAULT_API_BASE
    user_agent: str = DEFAULT_USER_AGENT
    accurate_contributors: bool = False
    markers: Markers = field(default_factory=Markers)

    def with_overrides(self, **overrides: Any) -> "CatalogConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_STR_KEYS = ("data_file", "output_file", "readme_file", "api_base", "user_agent")
_FLOAT_KEYS = ("delay_seconds", "timeout_seconds")


def _parse_markers(raw: Any) -> Markers:
    if raw is None:
        return Markers()
    if not isinstance(raw, dict):
        raise ConfigError("`markers` must be an object/mapping when provided.")
    defaults = Markers()
    start = raw.get("start", defaults.start)
    end = raw.get("end", defaults.end)
    if not isinstance(start, str) or not start.strip() or not isinstance(end, str) or not end.strip():
        raise ConfigError("`markers.start` and `markers.end` must be non-empty strings.")
    if start == end:
        raise ConfigError("`markers.start` and `markers.end` must differ.")
    return Markers(start=start, end=end)


def config_from_mapping(data: dict[str, Any]) -> CatalogConfig:
    values: dict[str, Any] = {}

    for key in _STR_KEYS:
        if data.get(key) is not None:
            if not isinstance(data[key], str) or not data[key].strip():
                raise ConfigError(f"`{key}` must be a non-empty string.")
            values[key] = data[key].strip()

    for key in _FLOAT_KEYS:
        if data.get(key) is not None:
            raw = data[key]
            # YAML booleans are ints in Python; reject them explicitly.
            if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
                raise ConfigError(f"`{key}` must be a non-negative number.")
            values[key] = float(raw)

    if data.get("accurate_contributors") is not None:
        if not isinstance(data["accurate_contributors"], bool):
            raise ConfigError("`accurate_contributors` must be true or false.")
        values["accurate_contributors"] = data["accurate_contributors"]

    values["markers"] = _parse_markers(data.get("markers"))
    return CatalogConfig(**values)


def load_config(config_path: str | Path | None) -> CatalogConfig:
    """
    Load configuration from a YAML file.

    - `None`: use `repo-catalog.yml` in the working directory if it exists,
      otherwise built-in defaults.
    - Explicit path: the file must exist.
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            return CatalogConfig()
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")
    return config_from_mapping(data)
