from __future__ import annotations

from pathlib import Path

import pytest

from sheetbind.config.loader import ConfigError, config_from_dict, load_config
from sheetbind.models.config_models import LoaderConfig, Markers


def test_load_config_defaults(write_config: Path):
    cfg = load_config(write_config)
    assert isinstance(cfg, LoaderConfig)
    assert cfg.source_directory == "./data"
    assert cfg.extensions == (".xlsx",)
    assert cfg.skip_file_prefix == "~"
    assert cfg.container is None
    assert cfg.markers == Markers()


def test_load_config_markers_override(temp_workdir: Path):
    path = temp_workdir / "config" / "sheetbind.yml"
    path.write_text(
        """source_directory: ./data
extensions: [".XLSX", ".xlsm"]
container: game.data:build
markers:
  sheet_ignore: ["_"]
  column_based: ["@"]
  name_separator: "|"
""",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.extensions == (".xlsx", ".xlsm")
    assert cfg.container == "game.data:build"
    assert cfg.markers.sheet_ignore == ("_",)
    assert cfg.markers.column_based == ("@",)
    assert cfg.markers.name_separator == "|"
    # untouched markers keep their defaults
    assert cfg.markers.comment == ("//", ";")


def test_load_config_default_path(write_config: Path):
    assert load_config().source_directory == "./data"


def test_env_overrides_source_directory(write_config: Path, monkeypatch):
    monkeypatch.setenv("SHEETBIND_SOURCE_DIR", "/srv/tables")
    assert load_config(write_config).source_directory == "/srv/tables"


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "missing.yml")


def test_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "sheetbind.yml"
    path.write_text("source_directory: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(path)


def test_non_mapping_root():
    with pytest.raises(ConfigError):
        config_from_dict(["source_directory"])  # type: ignore[arg-type]
