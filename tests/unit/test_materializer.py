from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from sheetbind.engine.coercion import CoercionEngine
from sheetbind.engine.errors import RequiredColumnError
from sheetbind.engine.headers import read_row_tuples
from sheetbind.engine.materializer import RecordMaterializer, materialize
from sheetbind.engine.parsers import NamedValue, parse_named_value
from sheetbind.models.row_data import RowTuple
from sheetbind.models.schema import RecordSpec
from sheetbind.models.sheet import Sheet


@dataclass
class Monster:
    id: str = ""
    name: str = ""
    hp: list[int] | None = None
    level: int = 1


@dataclass
class Shop:
    note: str = ""
    code: str = ""
    stat: NamedValue | None = None


def _row(**cells: list[str]) -> RowTuple:
    return RowTuple(position=2, cells=dict(cells))


def test_fields_are_populated_from_matching_groups():
    spec = RecordSpec.from_dataclass(Monster)
    record = materialize(_row(id=["u1"], name=["Goblin"], hp=["10", "5"], level=["3"]), spec)
    assert record.instance == Monster("u1", "Goblin", [10, 5], 3)
    assert record.row == 3


def test_header_match_is_case_insensitive_and_override_wins():
    spec = RecordSpec.from_dataclass(Monster, overrides={"name": {"column": "DisplayName"}})
    record = materialize(_row(ID=["u1"], displayname=["Goblin"], name=["ignored"]), spec)
    assert record.instance.id == "u1"
    assert record.instance.name == "Goblin"


def test_header_group_spelled_in_mixed_case_feeds_one_field():
    sheet = Sheet("MonsterData", [["id", "HP#1", "hp#2"], ["u1", "10", "5"]])
    (row,) = read_row_tuples(sheet)
    record = materialize(row, RecordSpec.from_dataclass(Monster))
    assert record.instance.hp == [10, 5]


def test_ignored_field_keeps_its_default():
    spec = RecordSpec.from_dataclass(Monster, overrides={"level": {"ignore": True}})
    record = materialize(_row(id=["u1"], level=["99"]), spec)
    assert record.instance.level == 1


def test_key_function_wins_over_declaration_order():
    spec = RecordSpec.from_dataclass(Monster, key=lambda m: f"Mon_{m.name}")
    record = materialize(_row(id=["u1"], name=["Goblin"]), spec)
    assert record.key == "Mon_Goblin"


def test_fallback_key_is_first_populated_field():
    spec = RecordSpec.from_dataclass(Monster)
    assert materialize(_row(id=["u1"], name=["Goblin"]), spec).key == "u1"
    # id blank -> default, so name becomes the key candidate
    assert materialize(_row(id=[""], name=["Goblin"]), spec).key == "Goblin"


def test_failed_conversion_is_not_a_key_candidate():
    spec = RecordSpec.from_dataclass(Monster, overrides={"id": {"type": int}})
    record = materialize(_row(id=["abc"], name=["Goblin"]), spec, CoercionEngine())
    assert record.instance.id == 0
    assert record.key == "Goblin"


def test_no_populated_field_gives_no_key():
    spec = RecordSpec.from_dataclass(Monster)
    assert materialize(_row(other=["x"]), spec).key is None


def test_missing_required_column_is_fatal():
    spec = RecordSpec.from_dataclass(Monster, overrides={"level": {"required": True}})
    with pytest.raises(RequiredColumnError) as exc:
        RecordMaterializer(spec, CoercionEngine(), ["id", "name"], sheet="Monsters")
    assert exc.value.column == "level"
    assert "Monsters" in str(exc.value)


def test_composite_field_uses_first_cell_of_each_group():
    spec = RecordSpec.from_dataclass(
        Shop,
        overrides={"stat": {"columns": ("statName", "statValue"), "multi_parser": parse_named_value}},
    )
    row = _row(note=["n"], statName=["speed", "ignored"], statValue=["12"])
    record = materialize(row, spec)
    assert record.instance.stat == NamedValue("speed", "12")


def test_composite_skipped_when_a_column_is_missing():
    spec = RecordSpec.from_dataclass(
        Shop,
        overrides={"stat": {"columns": ("statName", "statValue"), "multi_parser": parse_named_value}},
    )
    materializer = RecordMaterializer(spec, CoercionEngine(), ["note", "statName"])
    assert materializer.mapped_fields == ["note"]
    record = materializer.materialize(_row(note=["n"], statName=["speed"]))
    assert record.instance.stat is None


def test_composite_runs_after_single_fields():
    seen: list[str] = []

    def parser(a: str) -> str:
        seen.append(a)
        return f"{a}!"

    spec = RecordSpec.from_dataclass(
        Shop,
        overrides={"note": {"columns": ("code",), "multi_parser": parser}},
        key=lambda s: s.note,
    )
    record = materialize(_row(code=["c1"]), spec)
    assert record.instance.code == "c1"
    assert record.instance.note == "c1!"
    assert record.key == "c1!"


def test_conversion_failure_keeps_later_fields(caplog):
    spec = RecordSpec.from_dataclass(Monster)
    with caplog.at_level(logging.ERROR):
        record = materialize(_row(id=["u1"], hp=["x"], level=["4"]), spec, sheet="Monsters")
    assert record.instance.hp is None
    assert record.instance.level == 4
    assert any("Monsters" in r.getMessage() for r in caplog.records)
