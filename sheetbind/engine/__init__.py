"""Binding engine: header grouping, coercion, materialization and binding."""

from sheetbind.engine.binder import bind
from sheetbind.engine.coercion import Coercion, CoercionContext, CoercionEngine, ParserRegistry, default_registry
from sheetbind.engine.errors import (
    DuplicateKeyError,
    FieldValidationError,
    LoadError,
    RequiredColumnError,
    InvalidKeyError,
    UnpopulatedSlotError,
)
from sheetbind.engine.headers import group_headers, read_row_tuples
from sheetbind.engine.materializer import MaterializedRecord, RecordMaterializer, materialize
from sheetbind.engine.parsers import NamedValue, Vector2, Vector3, WeightedValue, parse_named_value

__all__ = [
    "bind",
    "Coercion",
    "CoercionContext",
    "CoercionEngine",
    "ParserRegistry",
    "default_registry",
    "LoadError",
    "FieldValidationError",
    "DuplicateKeyError",
    "RequiredColumnError",
    "InvalidKeyError",
    "UnpopulatedSlotError",
    "group_headers",
    "read_row_tuples",
    "MaterializedRecord",
    "RecordMaterializer",
    "materialize",
    "NamedValue",
    "Vector2",
    "Vector3",
    "WeightedValue",
    "parse_named_value",
]
