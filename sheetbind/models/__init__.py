"""Domain models for the sheet binding engine.

Configuration, sheet/row containers, the declarative binding schema and the
result/diagnostic records all live here.
"""

from sheetbind.models.config_models import LoaderConfig, Markers
from sheetbind.models.row_data import RowTuple
from sheetbind.models.schema import (
    NO_DEFAULT,
    ContainerSpec,
    DuplicatePolicy,
    FieldSpec,
    RecordRegistry,
    RecordSpec,
    SheetBinding,
    SlotShape,
    SlotSpec,
)
from sheetbind.models.sheet import Sheet, SheetName

__all__ = [
    # Configuration models
    "LoaderConfig",
    "Markers",
    # Sheet models
    "Sheet",
    "SheetName",
    "RowTuple",
    # Binding schema
    "NO_DEFAULT",
    "ContainerSpec",
    "DuplicatePolicy",
    "FieldSpec",
    "RecordRegistry",
    "RecordSpec",
    "SheetBinding",
    "SlotShape",
    "SlotSpec",
]
