from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sheetbind.engine.binder import bind
from sheetbind.engine.coercion import CoercionEngine
from sheetbind.engine.errors import LoadError, UnpopulatedSlotError
from sheetbind.engine.headers import SheetView, iter_row_tuples, layout_sheet
from sheetbind.engine.materializer import RecordMaterializer
from sheetbind.excel.reader import read_workbook
from sheetbind.logging.error_log import ErrorLogBuffer
from sheetbind.models.config_models import LoaderConfig, Markers
from sheetbind.models.load_result import FileStat, LoadResult, SheetStat
from sheetbind.models.schema import ContainerSpec, SlotSpec
from sheetbind.models.sheet import Sheet, SheetName
from sheetbind.services.progress import ProgressTracker

logger = logging.getLogger(__name__)

"""Load orchestration: folder -> workbooks -> sheets -> slots.

Processing order is file (sorted by name) -> sheet (workbook order) -> row,
strictly serial. The same container may be passed to several load calls;
slots keep accumulating across them.
"""

__all__ = [
    "SourceDirectoryError",
    "scan_source_files",
    "load_sheets",
    "load_file",
    "load_all",
    "check_required_slots",
]


class SourceDirectoryError(LoadError):
    """Raised when the configured source directory can't be scanned."""


def scan_source_files(
    directory: Path,
    extensions: Iterable[str] = (".xlsx",),
    skip_prefix: str = "~",
) -> list[Path]:
    """Scan directory for workbooks (non-recursive), sorted by file name.

    Files whose name starts with ``skip_prefix`` (Office lock files such as
    ``~$book.xlsx``) are left out.

    Raises:
        SourceDirectoryError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise SourceDirectoryError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise SourceDirectoryError(f"Path is not a directory: {directory}")

    wanted = {e.lower() for e in extensions}
    try:
        files = [
            p
            for p in directory.iterdir()
            if p.is_file()
            and p.suffix.lower() in wanted
            and not (skip_prefix and p.name.startswith(skip_prefix))
        ]
    except OSError as e:
        raise SourceDirectoryError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name)


def _bind_sheet(
    container: Any,
    slot: SlotSpec,
    sheet: Sheet,
    parsed: SheetName,
    *,
    engine: CoercionEngine,
    markers: Markers,
    file_name: str,
) -> SheetStat:
    column_based = parsed.column_based or slot.binding.column_based
    stat = SheetStat(sheet_name=parsed.name, slot=slot.field, column_based=column_based)

    view = SheetView(sheet, column_based)
    layout = layout_sheet(view, markers)
    if layout is None:
        return stat

    materializer = RecordMaterializer(
        slot.record, engine, layout.groups.keys(), sheet=parsed.name, file=file_name
    )
    for row in iter_row_tuples(view, layout, markers):
        stat.row_tuples += 1
        record = materializer.materialize(row)
        if bind(container, slot, record.key, record.instance, sheet=parsed.name):
            stat.records_bound += 1
        else:
            stat.records_skipped += 1

    logger.info(
        "file=%s sheet=%s slot=%s records=%d skipped=%d",
        file_name or "-",
        parsed.name,
        slot.field,
        stat.records_bound,
        stat.records_skipped,
    )
    return stat


def load_sheets(
    container: Any,
    spec: ContainerSpec,
    sheets: Iterable[Sheet],
    *,
    engine: CoercionEngine | None = None,
    markers: Markers | None = None,
    file_name: str = "",
) -> FileStat:
    """Bind already-read sheets into ``container``.

    Every slot accepting a sheet's normalized name receives that sheet's
    records; a sheet may therefore feed several slots.
    """
    engine = engine or CoercionEngine()
    markers = markers or Markers()
    stat = FileStat(file_name=file_name)

    for sheet in sheets:
        parsed = SheetName.parse(sheet.name, markers)
        if parsed.ignored:
            logger.debug("sheet %s ignored by marker", sheet.name)
            stat.ignored_sheets += 1
            continue
        slots = spec.slots_for_sheet(parsed.name)
        if not slots:
            logger.debug("sheet %s has no bound slot", parsed.name)
            stat.unbound_sheets += 1
            continue
        for slot in slots:
            stat.sheets.append(
                _bind_sheet(
                    container, slot, sheet, parsed, engine=engine, markers=markers, file_name=file_name
                )
            )
    return stat


def load_file(
    container: Any,
    spec: ContainerSpec,
    path: Path,
    *,
    engine: CoercionEngine | None = None,
    markers: Markers | None = None,
) -> FileStat:
    """Read one workbook and bind its sheets. The workbook is closed before binding starts."""
    start = datetime.now(UTC)
    sheets = read_workbook(Path(path))
    stat = load_sheets(container, spec, sheets, engine=engine, markers=markers, file_name=Path(path).name)
    stat.elapsed_seconds = (datetime.now(UTC) - start).total_seconds()
    return stat


def _is_unpopulated(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (list, tuple, dict)) and not value


def check_required_slots(container: Any, spec: ContainerSpec) -> None:
    """Raise for the first non-optional slot that never received a record.

    Raises:
        UnpopulatedSlotError: slot still None (or an empty collection)
    """
    for slot in spec.slots:
        if slot.binding.optional:
            continue
        if _is_unpopulated(getattr(container, slot.field, None)):
            raise UnpopulatedSlotError(slot.field, slot.sheet_name)


def load_all(
    container: Any,
    spec: ContainerSpec,
    config: LoaderConfig,
    *,
    engine: CoercionEngine | None = None,
) -> LoadResult:
    """Load every workbook of ``config.source_directory`` into ``container``.

    1. Scan the directory (non-recursive, sorted)
    2. Load each file in order
    3. Flush conversion diagnostics once (also when a fatal error aborts the load)
    4. Check non-optional slots

    Raises:
        LoadError: any fatal condition (see sheetbind.engine.errors)
    """
    start_time = datetime.now(UTC)
    engine = engine or CoercionEngine()
    # 呼び出し元が診断先を渡していなければ、この呼び出しの間だけ付ける
    attached = engine.diagnostics is None
    if attached:
        engine.diagnostics = ErrorLogBuffer(config.error_log_dir)
    diagnostics = engine.diagnostics
    failures_before = engine.failures

    file_paths = scan_source_files(
        Path(config.source_directory), config.extensions, config.skip_file_prefix
    )
    if not file_paths:
        logger.warning("no workbooks found in %s", config.source_directory)

    file_stats: list[FileStat] = []
    try:
        with ProgressTracker(len(file_paths), description="Loading files") as progress:
            for file_path in file_paths:
                progress.start_file(file_path)
                stat = load_file(container, spec, file_path, engine=engine, markers=config.markers)
                file_stats.append(stat)
                progress.set_postfix(records=sum(s.records_bound for s in file_stats))
                progress.finish_file()
    finally:
        # 致命的エラーでも診断ログは残す
        log_path = diagnostics.flush()
        if attached:
            engine.diagnostics = None
        if log_path is not None:
            logger.warning("conversion diagnostics written to %s", log_path)

    check_required_slots(container, spec)

    end_time = datetime.now(UTC)
    return LoadResult(
        files=len(file_paths),
        sheets_bound=sum(len(s.sheets) for s in file_stats),
        records_bound=sum(s.records_bound for s in file_stats),
        records_skipped=sum(s.records_skipped for s in file_stats),
        conversion_errors=engine.failures - failures_before,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )
