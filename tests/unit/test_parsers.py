from __future__ import annotations

from typing import NamedTuple

import pytest

from sheetbind.engine.parsers import (
    NamedValue,
    Vector2,
    Vector3,
    WeightedValue,
    parse_named_value,
    parse_vector,
)
from sheetbind.models.types import TypeKind, describe_type, intrinsic_default, is_vector_type


class GridPos(NamedTuple):
    col: int
    row: int


class Labeled(NamedTuple):
    label: str
    value: float


def test_weighted_value_parse():
    assert WeightedValue.parse_value("Apple : 0.75") == WeightedValue("Apple", 0.75)
    assert str(WeightedValue("Apple", 0.75)) == "Apple (0.75)"


def test_weighted_value_requires_weight():
    with pytest.raises(ValueError):
        WeightedValue.parse_value("Apple")


def test_named_value_needs_two_columns():
    assert parse_named_value("speed", "12") == NamedValue("speed", "12")
    with pytest.raises(ValueError):
        parse_named_value("only")


def test_parse_vector_respects_component_types():
    assert parse_vector(GridPos, "3, 4") == GridPos(3, 4)
    assert parse_vector(Vector3, "1,2,3,4") == Vector3(1.0, 2.0, 3.0)


def test_vector_detection():
    assert is_vector_type(Vector2)
    assert is_vector_type(GridPos)
    assert not is_vector_type(Labeled)
    assert not is_vector_type(tuple)


def test_describe_type_unwraps_optional():
    info = describe_type(list[int] | None)
    assert info.kind is TypeKind.LIST
    assert info.element is int
    assert describe_type(tuple[str, ...]).kind is TypeKind.ARRAY
    assert describe_type(Vector2).kind is TypeKind.VECTOR


def test_intrinsic_default_for_int_vector():
    assert intrinsic_default(GridPos) == GridPos(0, 0)
    assert intrinsic_default(Labeled) is None
