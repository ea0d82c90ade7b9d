from __future__ import annotations

import dataclasses
import logging
import typing
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sheetbind.models.types import TypeKind, _unwrap_optional, describe_type, intrinsic_default

"""Declarative binding schema.

Record types and destination containers are described once, up front:

- FieldSpec    per-field coercion/validation rules (override column name,
               default, separator, parsers, range, pattern ...)
- RecordSpec   one record type: its fields, a no-arg factory, an optional key
               function
- RecordRegistry  factory table keyed by record type id
- SheetBinding / SlotSpec / ContainerSpec  where records land on the
               destination container and under which shape

Nothing here inspects objects at bind time; the from_dataclass() helpers read
annotations exactly once while the schema is built.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NO_DEFAULT",
    "DuplicatePolicy",
    "SlotShape",
    "FieldSpec",
    "RecordSpec",
    "RecordRegistry",
    "SheetBinding",
    "SlotSpec",
    "ContainerSpec",
]


class _NoDefault:
    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


class DuplicatePolicy(Enum):
    """What a map slot does when a key is seen twice."""
    REJECT = "reject"  # fatal DuplicateKeyError
    SKIP = "skip"  # keep the first-seen record
    OVERWRITE = "overwrite"  # replace with the latest record


class SlotShape(Enum):
    SINGLE = "single"  # bare value, last record wins
    LIST = "list"  # list[R], append
    ARRAY = "array"  # tuple[R, ...], copy-on-grow
    MAP = "map"  # dict[K, R]
    MULTIMAP = "multimap"  # dict[K, list[R]] / dict[K, tuple[R, ...]]


@dataclass(frozen=True)
class FieldSpec:
    """Coercion and validation rules for one record field.

    ``columns`` + ``multi_parser`` turn the field into a multi-column
    composite: the first raw string of each referenced header group is passed
    positionally to ``multi_parser``.
    """
    name: str
    type: Any = str
    column: str | None = None  # header base name when it differs from `name`
    ignore: bool = False
    required: bool = False
    default: Any = NO_DEFAULT
    separator: str = ","
    merge_cells: bool = False
    parser: Any = None  # callable(str) or object with .parse(str)
    columns: tuple[str, ...] = ()
    multi_parser: Any = None  # callable(*str) or object with .parse(*str)
    min_value: float | None = None
    max_value: float | None = None
    pattern: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        if self.columns and self.multi_parser is None:
            raise ValueError(f"field '{self.name}': columns given without a multi_parser")

    @property
    def column_name(self) -> str:
        return self.column or self.name

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def is_composite(self) -> bool:
        return bool(self.columns)

    @property
    def has_range(self) -> bool:
        return self.min_value is not None or self.max_value is not None


def _dataclass_factory(record_type: type, specs: Mapping[str, FieldSpec]) -> Callable[[], Any]:
    # __init__ 必須引数は型の既定値で埋める
    required = [
        f.name
        for f in dataclasses.fields(record_type)
        if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
    ]
    if not required:
        return record_type

    def factory() -> Any:
        return record_type(**{name: intrinsic_default(specs[name].type) for name in required})

    return factory


@dataclass(frozen=True)
class RecordSpec:
    """Loader descriptor for one record type.

    Records are created with ``factory()`` and populated attribute by
    attribute, so the record type must allow attribute assignment (frozen
    dataclasses are not supported).
    """
    record_type: type
    fields: tuple[FieldSpec, ...]
    factory: Callable[[], Any] | None = None
    key: Callable[[Any], Any] | None = None
    type_id: str = ""

    def __post_init__(self) -> None:
        if not self.type_id:
            object.__setattr__(self, "type_id", self.record_type.__name__)
        object.__setattr__(self, "fields", tuple(self.fields))

    def create(self) -> Any:
        return (self.factory or self.record_type)()

    @property
    def eligible_fields(self) -> list[FieldSpec]:
        return [f for f in self.fields if not f.ignore]

    @classmethod
    def from_dataclass(
        cls,
        record_type: type,
        *,
        key: Callable[[Any], Any] | None = None,
        factory: Callable[[], Any] | None = None,
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
        type_id: str | None = None,
    ) -> RecordSpec:
        """Build a RecordSpec from a dataclass's fields in declaration order.

        ``overrides`` maps a field name to FieldSpec keyword arguments, e.g.
        ``{"type_": {"column": "pcClass"}, "stats": {"separator": ";"}}``.
        """
        if not dataclasses.is_dataclass(record_type):
            raise TypeError(f"{record_type!r} is not a dataclass")
        overrides = dict(overrides or {})
        hints = typing.get_type_hints(record_type)
        specs: dict[str, FieldSpec] = {}
        for f in dataclasses.fields(record_type):
            options = dict(overrides.pop(f.name, {}))
            specs[f.name] = FieldSpec(name=f.name, type=options.pop("type", hints.get(f.name, str)), **options)
        if overrides:
            raise ValueError(f"overrides for unknown fields of {record_type.__name__}: {sorted(overrides)}")
        return cls(
            record_type=record_type,
            fields=tuple(specs.values()),
            factory=factory or _dataclass_factory(record_type, specs),
            key=key,
            type_id=type_id or record_type.__name__,
        )


class RecordRegistry:
    """Factory table: record type id -> RecordSpec.

    Usable as a decorator for dataclass records::

        registry = RecordRegistry()

        @registry.record(key=lambda r: f"Pc_{r.id}")
        @dataclass
        class PcData: ...
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RecordSpec] = {}
        self._by_type: dict[type, RecordSpec] = {}

    def register(self, spec: RecordSpec) -> RecordSpec:
        if spec.type_id in self._by_id:
            raise ValueError(f"record type '{spec.type_id}' already registered")
        self._by_id[spec.type_id] = spec
        self._by_type[spec.record_type] = spec
        return spec

    def record(self, record_type: type | None = None, **kwargs: Any) -> Any:
        def decorate(rt: type) -> type:
            self.register(RecordSpec.from_dataclass(rt, **kwargs))
            return rt

        if record_type is not None:
            return decorate(record_type)
        return decorate

    def get(self, ident: str | type) -> RecordSpec:
        spec = self._by_id.get(ident) if isinstance(ident, str) else self._by_type.get(ident)
        if spec is None:
            raise KeyError(f"record type not registered: {ident!r}")
        return spec

    def find(self, record_type: Any) -> RecordSpec | None:
        if not isinstance(record_type, type):
            return None
        return self._by_type.get(record_type)

    def create(self, type_id: str) -> Any:
        return self.get(type_id).create()

    def __contains__(self, ident: object) -> bool:
        return ident in self._by_id or ident in self._by_type

    def __iter__(self) -> Iterator[RecordSpec]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


@dataclass(frozen=True)
class SheetBinding:
    """Binding options for one destination slot."""
    sheet: str | None = None  # defaults to the slot's field name
    optional: bool = True  # False: load fails when the slot stays unpopulated
    duplicates: DuplicatePolicy = DuplicatePolicy.REJECT
    column_based: bool = False  # treat bound sheets as column oriented


@dataclass(frozen=True)
class SlotSpec:
    field: str
    record: RecordSpec
    shape: SlotShape
    binding: SheetBinding = field(default_factory=SheetBinding)
    collection: type = list  # MULTIMAP value collection: list or tuple

    def __post_init__(self) -> None:
        if self.collection not in (list, tuple):
            raise ValueError(f"slot '{self.field}': collection must be list or tuple")

    @property
    def sheet_name(self) -> str:
        return self.binding.sheet or self.field

    def accepts(self, sheet_name: str) -> bool:
        wanted = sheet_name.strip().casefold()
        return wanted == self.sheet_name.casefold() or wanted == self.field.casefold()


def _derive_shape(annotation: Any, records: RecordRegistry) -> tuple[SlotShape, RecordSpec, type] | None:
    t = _unwrap_optional(annotation)
    spec = records.find(t)
    if spec is not None:
        return SlotShape.SINGLE, spec, list
    origin = typing.get_origin(t)
    args = typing.get_args(t)
    if origin is dict and len(args) == 2:
        value = args[1]
        spec = records.find(value)
        if spec is not None:
            return SlotShape.MAP, spec, list
        info = describe_type(value)
        if info.kind in (TypeKind.LIST, TypeKind.ARRAY):
            spec = records.find(info.element)
            if spec is not None:
                return SlotShape.MULTIMAP, spec, list if info.kind is TypeKind.LIST else tuple
        return None
    info = describe_type(t)
    if info.kind in (TypeKind.LIST, TypeKind.ARRAY):
        spec = records.find(info.element)
        if spec is not None:
            return (SlotShape.LIST if info.kind is TypeKind.LIST else SlotShape.ARRAY), spec, list
    return None


@dataclass(frozen=True)
class ContainerSpec:
    """All destination slots of one container type."""
    slots: tuple[SlotSpec, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "slots", tuple(self.slots))

    def slots_for_sheet(self, sheet_name: str) -> list[SlotSpec]:
        """Every slot bound to ``sheet_name``, in declaration order."""
        return [s for s in self.slots if s.accepts(sheet_name)]

    def slot(self, field_name: str) -> SlotSpec:
        for s in self.slots:
            if s.field == field_name:
                return s
        raise KeyError(field_name)

    @classmethod
    def from_dataclass(
        cls,
        container_type: type,
        records: RecordRegistry,
        bindings: Mapping[str, SheetBinding] | None = None,
    ) -> ContainerSpec:
        """Derive slots from container annotations.

        ``R`` -> SINGLE, ``list[R]`` -> LIST, ``tuple[R, ...]`` -> ARRAY,
        ``dict[K, R]`` -> MAP, ``dict[K, list[R]]`` -> MULTIMAP, where R is a
        registered record type. Other fields are not slots.
        """
        bindings = dict(bindings or {})
        hints = typing.get_type_hints(container_type)
        slots: list[SlotSpec] = []
        for f in dataclasses.fields(container_type):
            derived = _derive_shape(hints.get(f.name), records)
            binding = bindings.pop(f.name, None)
            if derived is None:
                if binding is not None:
                    raise ValueError(f"field '{f.name}' has a binding but no registered record type")
                logger.debug(
                    "%s.%s: %r is not a registered record shape, not a slot",
                    container_type.__name__,
                    f.name,
                    hints.get(f.name),
                )
                continue
            shape, spec, collection = derived
            slots.append(SlotSpec(f.name, spec, shape, binding or SheetBinding(), collection))
        if bindings:
            raise ValueError(f"bindings for unknown fields: {sorted(bindings)}")
        return cls(tuple(slots))
