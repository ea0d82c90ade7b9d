from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sheetbind.models.row_data import RowTuple
from sheetbind.models.schema import FieldSpec, RecordSpec
from sheetbind.engine.coercion import CoercionContext, CoercionEngine
from sheetbind.engine.errors import RequiredColumnError

"""Record materializer: one RowTuple -> one (key, record) pair.

Column resolution happens once per sheet (RecordMaterializer.__init__); each
row then only pays for conversions. Key derivation runs after every single-
and multi-column field has been set.
"""

__all__ = [
    "MaterializedRecord",
    "RecordMaterializer",
    "materialize",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializedRecord:
    key: Any  # None when neither a key function nor a populated field exists
    instance: Any
    row: int = -1


class RecordMaterializer:
    """Builds record instances of one RecordSpec from the row tuples of one sheet.

    Args:
        spec: Record descriptor (fields, factory, key function)
        engine: Coercion engine used for every field
        columns: Header base names present in the sheet
        sheet: Sheet name, for diagnostics and errors
        file: Workbook name, for diagnostics

    Raises:
        RequiredColumnError: a required field has no matching column
    """

    def __init__(
        self,
        spec: RecordSpec,
        engine: CoercionEngine,
        columns: Iterable[str],
        *,
        sheet: str = "",
        file: str = "",
    ) -> None:
        self.spec = spec
        self.engine = engine
        self.sheet = sheet
        self.file = file

        lookup: dict[str, str] = {}
        for column in columns:
            lookup.setdefault(column.casefold(), column)

        self._single: list[tuple[FieldSpec, str]] = []
        self._composite: list[tuple[FieldSpec, list[str]]] = []
        for field in spec.eligible_fields:
            if field.is_composite:
                resolved = [lookup.get(c.strip().casefold()) if c.strip() else None for c in field.columns]
                if all(resolved):
                    self._composite.append((field, resolved))  # type: ignore[arg-type]
                else:
                    logger.debug(
                        "sheet=%s field=%s composite columns %s not all present, skipped",
                        sheet,
                        field.name,
                        list(field.columns),
                    )
                continue
            base = lookup.get(field.column_name.strip().casefold())
            if base is None:
                if field.required:
                    raise RequiredColumnError(sheet, field.column_name)
                continue
            self._single.append((field, base))

    @property
    def mapped_fields(self) -> list[str]:
        return [f.name for f, _ in self._single] + [f.name for f, _ in self._composite]

    def materialize(self, row: RowTuple) -> MaterializedRecord:
        context = CoercionContext(file=self.file, sheet=self.sheet, row=row.row_number)
        instance = self.spec.create()

        fallback_key: Any = None
        has_fallback = False
        for field, base in self._single:
            result = self.engine.coerce(row.cells.get(base) or [""], field, context)
            setattr(instance, field.name, result.value)
            # 最初に実値が入ったフィールドをキー候補にする
            if not has_fallback and not result.defaulted:
                fallback_key = result.value
                has_fallback = True

        for field, bases in self._composite:
            values = [row.first(b) for b in bases]
            result = self.engine.coerce_composite(values, field, context)
            setattr(instance, field.name, result.value)

        key = self.spec.key(instance) if self.spec.key is not None else fallback_key
        return MaterializedRecord(key=key, instance=instance, row=row.row_number)


def materialize(
    row: RowTuple,
    spec: RecordSpec,
    engine: CoercionEngine | None = None,
    *,
    sheet: str = "",
) -> MaterializedRecord:
    """One-off materialization; columns are taken from the row tuple itself."""
    materializer = RecordMaterializer(spec, engine or CoercionEngine(), row.cells.keys(), sheet=sheet)
    return materializer.materialize(row)
