from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sheetbind.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from sheetbind.engine.errors import LoadError
from sheetbind.engine.headers import SheetView, iter_row_tuples, layout_sheet
from sheetbind.excel.reader import read_workbook
from sheetbind.logging.init import log_summary, setup_logging
from sheetbind.models.config_models import LoaderConfig
from sheetbind.models.schema import ContainerSpec
from sheetbind.models.sheet import SheetName
from sheetbind.services.orchestrator import load_all, scan_source_files
from sheetbind.services.summary import render_summary_line

"""CLI application.

python -m sheetbind.cli [--config PATH] [--debug] [--inspect-data]

- load mode: import the configured container factory, load_all(), SUMMARY line
- --inspect-data: print normalized sheet names, orientation, header groups and
  the first row tuples of every workbook, then exit

Exit codes: 0 success, 1 config error or fatal load error.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

INSPECT_ROWS = 3


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetbind", description="Spreadsheet -> typed record loader")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    return p.parse_args(argv)


def _resolve_container(target: str) -> tuple[Any, ContainerSpec]:
    """Import ``module:callable`` and call it; it must return (container, ContainerSpec)."""
    module_name, _, attr = target.partition(":")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"container factory not importable: {target} ({e})") from e
    produced = factory()
    if (
        not isinstance(produced, tuple)
        or len(produced) != 2
        or not isinstance(produced[1], ContainerSpec)
    ):
        raise ConfigError(f"container factory {target} must return (container, ContainerSpec)")
    return produced


def _inspect_data(cfg: LoaderConfig) -> int:
    markers = cfg.markers
    files = scan_source_files(Path(cfg.source_directory), cfg.extensions, cfg.skip_file_prefix)
    if not files:
        print("inspect: no workbooks")
        return EXIT_SUCCESS
    for f in files:
        print(f"FILE: {f.name}")
        for sheet in read_workbook(f):
            parsed = SheetName.parse(sheet.name, markers)
            if parsed.ignored:
                print(f"  SHEET: {sheet.name} ignored")
                continue
            view = SheetView(sheet, parsed.column_based)
            layout = layout_sheet(view, markers)
            orientation = "column" if parsed.column_based else "row"
            if layout is None:
                print(f"  SHEET: {parsed.name} orientation={orientation} (no data)")
                continue
            print(f"  SHEET: {parsed.name} orientation={orientation} headers={layout.groups}")
            for i, row in enumerate(iter_row_tuples(view, layout, markers)):
                if i >= INSPECT_ROWS:
                    break
                print(f"    row {row.row_number}: {row.cells}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # NOTE: argv=[] はそのまま使う (pytest の引数が混入しないように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(logging.DEBUG if args.debug else logging.INFO)
    logger.debug("debug mode enabled")

    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(dotenv_path=env_file, override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.info(f"Loading files from: {cfg.source_directory}")

    try:
        if args.inspect_data:
            return _inspect_data(cfg)

        if not cfg.container:
            logger.error("config: 'container' is required unless --inspect-data is given")
            return EXIT_FATAL
        container, spec = _resolve_container(cfg.container)
        result = load_all(container, spec, cfg)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except LoadError as e:
        logger.error(f"load: {e}")
        return EXIT_FATAL

    # log_summary が "SUMMARY " ラベルを付ける
    log_summary(render_summary_line(result).removeprefix("SUMMARY "))
    return EXIT_SUCCESS

