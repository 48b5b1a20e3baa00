"""
Configuration loader (``dairy_config.loader``).

Reads YAML with ``yaml.safe_load``, overlays the override file on the
packaged defaults, applies environment overrides and computes a checksum
of the merged data.  Callers use ``dairy_config.get_active_config()``.

Failure modes:
    * Missing override file -> ``FileNotFoundError``.
    * Malformed YAML -> ``yaml.YAMLError``.
    * A document that is not a mapping, unknown keys or bad values ->
      ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_CONFIG_PATH = "DAIRY_CONFIG_PATH"
ENV_DATABASE_URL = "DAIRY_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML file; an empty file yields an empty dict.

    Raises:
        FileNotFoundError, yaml.YAMLError, ValueError (not a mapping).
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge_sources(path: Path | None, environ: Mapping[str, str]) -> dict[str, Any]:
    """Defaults, then the override file, then environment variables."""
    data = load_yaml_file(DEFAULTS_PATH)
    override = path
    if override is None and environ.get(ENV_CONFIG_PATH):
        override = Path(environ[ENV_CONFIG_PATH])
    if override is not None:
        data.update(load_yaml_file(Path(override)))
    if environ.get(ENV_DATABASE_URL):
        data["database_url"] = environ[ENV_DATABASE_URL]
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical data, identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
