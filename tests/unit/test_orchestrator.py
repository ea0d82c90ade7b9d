from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pytest

from sheetbind.engine.coercion import CoercionEngine
from sheetbind.engine.errors import UnpopulatedSlotError
from sheetbind.logging.error_log import ErrorLogBuffer
from sheetbind.models.config_models import LoaderConfig
from sheetbind.models.schema import ContainerSpec, RecordRegistry, SheetBinding
from sheetbind.models.sheet import Sheet
from sheetbind.services.orchestrator import (
    SourceDirectoryError,
    check_required_slots,
    load_all,
    load_sheets,
    scan_source_files,
)

records = RecordRegistry()


@records.record
@dataclass
class Unit:
    id: str = ""
    name: str = ""


@dataclass
class World:
    units: dict[str, Unit] | None = None
    unit_order: list[Unit] | None = None
    hero: Unit | None = None


def _spec(**bindings: SheetBinding) -> ContainerSpec:
    return ContainerSpec.from_dataclass(World, records, bindings)


def test_scan_source_files_sorted_and_filtered(temp_workdir: Path):
    data = temp_workdir / "data"
    for name in ["b.xlsx", "A.XLSX", "~$b.xlsx", "notes.txt", "c.xlsm"]:
        (data / name).write_bytes(b"")
    (data / "sub.xlsx").mkdir()
    assert [p.name for p in scan_source_files(data)] == ["A.XLSX", "b.xlsx"]
    assert [p.name for p in scan_source_files(data, (".xlsx", ".xlsm"))] == ["A.XLSX", "b.xlsx", "c.xlsm"]


def test_scan_source_files_missing_directory(temp_workdir: Path):
    with pytest.raises(SourceDirectoryError):
        scan_source_files(temp_workdir / "nope")
    (temp_workdir / "file.txt").write_text("x")
    with pytest.raises(SourceDirectoryError):
        scan_source_files(temp_workdir / "file.txt")


def test_one_sheet_feeds_every_matching_slot():
    spec = _spec(
        units=SheetBinding(sheet="UnitData"),
        unit_order=SheetBinding(sheet="unitdata"),
    )
    world = World()
    stat = load_sheets(world, spec, [Sheet("UnitData#v2", [["id", "name"], ["u1", "Goblin"], ["u2", "Orc"]])])
    assert list(world.units) == ["u1", "u2"]
    assert [u.id for u in world.unit_order] == ["u1", "u2"]
    assert [s.slot for s in stat.sheets] == ["units", "unit_order"]
    assert stat.records_bound == 4


def test_slot_field_name_matches_sheet():
    world = World()
    load_sheets(world, _spec(), [Sheet("Hero", [["id", "name"], ["h1", "Arthur"]])])
    assert world.hero == Unit("h1", "Arthur")


def test_ignored_and_unbound_sheets_are_counted():
    world = World()
    stat = load_sheets(
        world,
        _spec(units=SheetBinding(sheet="UnitData")),
        [
            Sheet("~UnitData", [["id", "name"], ["x", "hidden"]]),
            Sheet("Misc", [["id", "name"], ["m", "misc"]]),
        ],
    )
    assert world.units is None
    assert (stat.ignored_sheets, stat.unbound_sheets) == (1, 1)


def test_binding_orientation_override():
    world = World()
    spec = _spec(units=SheetBinding(sheet="UnitData", column_based=True))
    stat = load_sheets(world, spec, [Sheet("UnitData", [["id", "u1"], ["name", "Goblin"]])])
    assert world.units == {"u1": Unit("u1", "Goblin")}
    assert stat.sheets[0].column_based is True


def test_undersized_sheet_binds_nothing(caplog):
    world = World()
    with caplog.at_level(logging.WARNING):
        stat = load_sheets(world, _spec(units=SheetBinding(sheet="UnitData")), [Sheet("UnitData", [["id"]])])
    assert world.units is None
    assert stat.sheets[0].records_bound == 0
    assert any("UnitData" in r.getMessage() for r in caplog.records)


def test_check_required_slots():
    spec = _spec(units=SheetBinding(sheet="UnitData", optional=False))
    with pytest.raises(UnpopulatedSlotError) as exc:
        check_required_slots(World(), spec)
    assert "units" in str(exc.value) and "UnitData" in str(exc.value)
    with pytest.raises(UnpopulatedSlotError):
        check_required_slots(World(units={}), spec)
    check_required_slots(World(units={"u1": Unit("u1")}), spec)


def test_load_all_empty_directory(temp_workdir: Path):
    cfg = LoaderConfig(source_directory=str(temp_workdir / "data"), error_log_dir=str(temp_workdir / "logs"))
    result = load_all(World(), _spec(), cfg)
    assert result.files == 0
    assert result.records_bound == 0
    assert result.file_stats == []
    assert list((temp_workdir / "logs").iterdir()) == []


def test_load_all_empty_directory_with_required_slot(temp_workdir: Path):
    cfg = LoaderConfig(source_directory=str(temp_workdir / "data"))
    with pytest.raises(UnpopulatedSlotError):
        load_all(World(), _spec(hero=SheetBinding(optional=False)), cfg)


@records.record
@dataclass
class Stat:
    id: str = ""
    power: int = 0


@dataclass
class StatBook:
    stats: list[Stat] | None = None


def test_load_all_diagnostics_follow_each_call_config(temp_workdir: Path, workbook):
    workbook("stats.xlsx", {"stats": [["id", "power"], ["s1", "strong"]]})
    spec = ContainerSpec.from_dataclass(StatBook, records)
    engine = CoercionEngine()
    for log_dir in ("first", "second"):
        cfg = LoaderConfig(
            source_directory=str(temp_workdir / "data"), error_log_dir=str(temp_workdir / log_dir)
        )
        result = load_all(StatBook(), spec, cfg, engine=engine)
        assert result.conversion_errors == 1
        assert len(list((temp_workdir / log_dir).glob("errors-*.log"))) == 1
    assert engine.diagnostics is None


def test_load_all_keeps_caller_diagnostics(temp_workdir: Path, workbook):
    workbook("stats.xlsx", {"stats": [["id", "power"], ["s1", "strong"]]})
    own = ErrorLogBuffer(temp_workdir / "own")
    engine = CoercionEngine(diagnostics=own)
    cfg = LoaderConfig(source_directory=str(temp_workdir / "data"), error_log_dir=str(temp_workdir / "logs"))
    load_all(StatBook(), ContainerSpec.from_dataclass(StatBook, records), cfg, engine=engine)
    assert engine.diagnostics is own
    assert len(list((temp_workdir / "own").glob("errors-*.log"))) == 1
    assert list((temp_workdir / "logs").iterdir()) == []
