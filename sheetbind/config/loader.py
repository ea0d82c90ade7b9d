from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from sheetbind.models.config_models import LoaderConfig, Markers

"""Config loader.

Responsibilities:
- Load YAML config (default: config/sheetbind.yml)
- Validate against the packaged config_schema.json
- Apply defaults for optional keys (see LoaderConfig / Markers)
- SHEETBIND_SOURCE_DIR overrides source_directory (the CLI loads .env first)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ENV_SOURCE_DIR",
    "load_config",
    "config_from_dict",
]

DEFAULT_CONFIG_PATH = Path("config/sheetbind.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
ENV_SOURCE_DIR = "SHEETBIND_SOURCE_DIR"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the config violates it
            (missing source_directory, wrong types, unknown keys ...)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _markers(raw: dict[str, Any]) -> Markers:
    defaults = Markers()
    return Markers(
        sheet_ignore=tuple(raw.get("sheet_ignore", defaults.sheet_ignore)),
        column_based=tuple(raw.get("column_based", defaults.column_based)),
        name_separator=raw.get("name_separator", defaults.name_separator),
        header_ignore=tuple(raw.get("header_ignore", defaults.header_ignore)),
        comment=tuple(raw.get("comment", defaults.comment)),
    )


def config_from_dict(data: dict[str, Any]) -> LoaderConfig:
    """Validate a parsed mapping and build the LoaderConfig."""
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")
    _validate_config_schema(data)

    source_directory = os.getenv(ENV_SOURCE_DIR) or data["source_directory"]
    return LoaderConfig(
        source_directory=source_directory,
        extensions=tuple(e.lower() for e in data.get("extensions", [".xlsx"])),
        skip_file_prefix=data.get("skip_file_prefix", "~"),
        container=data.get("container"),
        error_log_dir=data.get("error_log_dir", "./logs"),
        markers=_markers(data.get("markers", {})),
    )


def load_config(path: Path | None = None) -> LoaderConfig:
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return config_from_dict(data)
