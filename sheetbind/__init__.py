"""sheetbind: bind spreadsheet sheets into typed records on a container.

Typical use::

    records = RecordRegistry()

    @records.record(key=lambda u: u.id)
    @dataclass
    class UnitData:
        id: str = ""
        name: str = ""
        hp: list[int] | None = None

    @dataclass
    class GameData:
        units: dict[str, UnitData] | None = None

    spec = ContainerSpec.from_dataclass(
        GameData, records, {"units": SheetBinding(sheet="UnitData", optional=False)}
    )
    data = GameData()
    load_all(data, spec, load_config(Path("config/sheetbind.yml")))
"""

from sheetbind.config.loader import ConfigError, load_config
from sheetbind.engine import (
    CoercionEngine,
    DuplicateKeyError,
    FieldValidationError,
    LoadError,
    NamedValue,
    ParserRegistry,
    RequiredColumnError,
    InvalidKeyError,
    UnpopulatedSlotError,
    Vector2,
    Vector3,
    WeightedValue,
    bind,
    group_headers,
    materialize,
    parse_named_value,
    read_row_tuples,
)
from sheetbind.models import (
    NO_DEFAULT,
    ContainerSpec,
    DuplicatePolicy,
    FieldSpec,
    LoaderConfig,
    Markers,
    RecordRegistry,
    RecordSpec,
    RowTuple,
    Sheet,
    SheetBinding,
    SheetName,
    SlotShape,
    SlotSpec,
)
from sheetbind.services.orchestrator import check_required_slots, load_all, load_file, load_sheets

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "load_config",
    "CoercionEngine",
    "ParserRegistry",
    "LoadError",
    "DuplicateKeyError",
    "FieldValidationError",
    "RequiredColumnError",
    "InvalidKeyError",
    "UnpopulatedSlotError",
    "NamedValue",
    "Vector2",
    "Vector3",
    "WeightedValue",
    "parse_named_value",
    "bind",
    "group_headers",
    "materialize",
    "read_row_tuples",
    "NO_DEFAULT",
    "ContainerSpec",
    "DuplicatePolicy",
    "FieldSpec",
    "LoaderConfig",
    "Markers",
    "RecordRegistry",
    "RecordSpec",
    "RowTuple",
    "Sheet",
    "SheetBinding",
    "SheetName",
    "SlotShape",
    "SlotSpec",
    "check_required_slots",
    "load_all",
    "load_file",
    "load_sheets",
]
