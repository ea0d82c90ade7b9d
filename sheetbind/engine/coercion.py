from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from sheetbind.logging.error_log import ErrorLogBuffer
from sheetbind.models.error_record import ErrorRecord
from sheetbind.models.schema import FieldSpec
from sheetbind.models.types import TypeInfo, TypeKind, describe_type, intrinsic_default
from sheetbind.engine.errors import FieldValidationError
from sheetbind.engine.parsers import WeightedValue, parse_vector

"""Type coercion engine.

Converts the raw strings one header group contributes for one row tuple into a
typed field value. Resolution order (first match wins):

1. blank primary cell            -> configured default / type zero value
2. merge_cells                   -> join non-empty cells with the separator
3. registered self-parser        -> used when it returns non-None
4. field parser / type parser
5. Enum                          -> case-insensitive member name
6. numeric vector (1-3 comps)    -> "x,y,z", missing trailing comps = 0
7. list[E] / tuple[E, ...]       -> per contributed cell, or split on separator
8. scalar                        -> str / int / float / Decimal / bool

Exceptions raised in layers 3-8 are never fatal: the default is substituted
and a diagnostic is logged. Range and pattern checks on a successfully
converted value are the only errors that escape (FieldValidationError).
"""

__all__ = [
    "Coercion",
    "CoercionContext",
    "CoercionEngine",
    "ParserRegistry",
    "default_registry",
]

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off"}


@dataclass(frozen=True)
class CoercionContext:
    """Where a value came from; used for diagnostics only."""
    file: str = ""
    sheet: str = ""
    row: int = -1


@dataclass(frozen=True)
class Coercion:
    value: Any
    defaulted: bool = False  # blank cell or recovered failure
    failed: bool = False


def _call_parser(parser: Any, *args: str) -> Any:
    fn = getattr(parser, "parse", parser)
    return fn(*args)


class ParserRegistry:
    """Explicit parser registration per target type.

    - self-parsers: ``fn(str) -> value | None``; a None result falls through
      to the later layers
    - parsers: type-intrinsic custom parsers (callable or ``.parse(str)``)
    - defaults: zero values for custom types
    """

    def __init__(self) -> None:
        self._self_parsers: dict[Any, Callable[[str], Any]] = {}
        self._parsers: dict[Any, Any] = {}
        self._defaults: dict[Any, Any] = {}

    def register_self_parser(self, target_type: Any, fn: Callable[[str], Any]) -> None:
        self._self_parsers[target_type] = fn

    def register_parser(self, target_type: Any, parser: Any) -> None:
        self._parsers[target_type] = parser

    def register_default(self, target_type: Any, value: Any) -> None:
        self._defaults[target_type] = value

    def self_parser_for(self, target_type: Any) -> Callable[[str], Any] | None:
        return self._self_parsers.get(target_type)

    def parser_for(self, target_type: Any) -> Any:
        return self._parsers.get(target_type)

    def has_default(self, target_type: Any) -> bool:
        return target_type in self._defaults

    def default_for(self, target_type: Any) -> Any:
        return copy.copy(self._defaults[target_type])

    def copy(self) -> ParserRegistry:
        other = ParserRegistry()
        other._self_parsers.update(self._self_parsers)
        other._parsers.update(self._parsers)
        other._defaults.update(self._defaults)
        return other


def default_registry() -> ParserRegistry:
    registry = ParserRegistry()
    registry.register_self_parser(WeightedValue, WeightedValue.parse_value)
    return registry


def _parse_enum(enum_type: type[Enum], text: str) -> Enum:
    folded = text.strip().casefold()
    for member in enum_type:
        if member.name.casefold() == folded:
            return member
    raise ValueError(f"'{text}' is not a member of {enum_type.__name__}")


def _parse_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        number = float(text)
        if not number.is_integer():
            raise
        return int(number)


def _parse_bool(text: str) -> bool:
    folded = text.strip().casefold()
    if folded in _TRUE:
        return True
    if folded in _FALSE:
        return False
    raise ValueError(f"'{text}' is not a boolean")


def _parse_scalar(info: TypeInfo, text: str) -> Any:
    kind = info.kind
    if kind is TypeKind.STRING:
        return text
    if kind is TypeKind.INTEGER:
        return _parse_int(text.strip())
    if kind is TypeKind.FLOAT:
        return float(text.strip())
    if kind is TypeKind.DECIMAL:
        return Decimal(text.strip())
    if kind is TypeKind.BOOLEAN:
        return _parse_bool(text)
    target = info.target
    if target is Any or target is object:
        return text
    # date / datetime / time
    if hasattr(target, "fromisoformat"):
        return target.fromisoformat(text.strip())
    return target(text)


def _numbers(value: Any) -> list[float]:
    items = value if isinstance(value, (list, tuple)) else [value]
    numbers = []
    for item in items:
        if isinstance(item, Enum):
            item = item.value
        numbers.append(float(item))
    return numbers


class CoercionEngine:
    """Cell string -> typed value conversion with default fallback.

    ``diagnostics`` receives one ErrorRecord per recovered conversion failure.
    """

    def __init__(
        self,
        registry: ParserRegistry | None = None,
        diagnostics: ErrorLogBuffer | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.diagnostics = diagnostics
        self.failures = 0

    # -- defaults ---------------------------------------------------------
    def type_default(self, target_type: Any) -> Any:
        if self.registry.has_default(target_type):
            return self.registry.default_for(target_type)
        return intrinsic_default(target_type)

    def default_for(self, field: FieldSpec) -> Any:
        if field.has_default:
            return copy.copy(field.default)
        return self.type_default(field.type)

    # -- public API -------------------------------------------------------
    def convert(
        self, cells: Sequence[str], field: FieldSpec, context: CoercionContext | None = None
    ) -> Any:
        return self.coerce(cells, field, context).value

    def coerce(
        self, cells: Sequence[str], field: FieldSpec, context: CoercionContext | None = None
    ) -> Coercion:
        context = context or CoercionContext()
        cells = [("" if c is None else str(c)) for c in cells] or [""]
        if field.merge_cells:
            working = field.separator.join(c.strip() for c in cells if c.strip())
            primary = working
        else:
            primary = cells[0]
            working = primary.strip()
        if not primary.strip():
            return Coercion(self.default_for(field), defaulted=True)

        try:
            value = self._resolve(cells, working, field.type, field, top=True)
        except Exception as exc:
            return self._fail(field, working, exc, context)

        self._validate(value, field, context)
        return Coercion(value)

    def coerce_composite(
        self, values: Sequence[str], field: FieldSpec, context: CoercionContext | None = None
    ) -> Coercion:
        """Run a multi-column parser over the first raw string of each referenced group."""
        context = context or CoercionContext()
        try:
            value = _call_parser(field.multi_parser, *values)
        except Exception as exc:
            return self._fail(field, ",".join(values), exc, context)
        self._validate(value, field, context)
        return Coercion(value)

    # -- layers 3-8 -------------------------------------------------------
    def _resolve(self, cells: Sequence[str], working: str, target: Any, field: FieldSpec, top: bool) -> Any:
        info = describe_type(target)

        self_parser = self.registry.self_parser_for(info.target)
        if self_parser is not None:
            value = self_parser(working)
            if value is not None:
                return value

        parser = (field.parser if top else None) or self.registry.parser_for(info.target)
        if parser is not None:
            return _call_parser(parser, working)

        if info.kind is TypeKind.ENUM:
            return _parse_enum(info.target, working)
        if info.kind is TypeKind.VECTOR:
            return parse_vector(info.target, working)
        if info.is_sequence:
            return self._resolve_sequence(cells, working, info, field)
        return _parse_scalar(info, working)

    def _resolve_element(self, raw: str, element_type: Any, field: FieldSpec) -> Any:
        raw = raw.strip()
        if not raw:
            return self.type_default(element_type)
        return self._resolve([raw], raw, element_type, field, top=False)

    def _resolve_sequence(self, cells: Sequence[str], working: str, info: TypeInfo, field: FieldSpec) -> Any:
        element = info.element
        if len(cells) > 1 and not field.merge_cells:
            if info.kind is TypeKind.LIST:
                items = [self._resolve_element(c, element, field) for c in cells if c.strip()]
            else:
                # array: 空セルも位置を保持
                items = [self._resolve_element(c, element, field) for c in cells]
        else:
            parts = [p.strip() for p in working.split(field.separator)]
            items = [self._resolve_element(p, element, field) for p in parts if p]
        return list(items) if info.kind is TypeKind.LIST else tuple(items)

    # -- failure / validation ---------------------------------------------
    def _fail(self, field: FieldSpec, raw: str, exc: Exception, context: CoercionContext) -> Coercion:
        self.failures += 1
        kind = describe_type(field.type).kind
        error_type = "ENUM_PARSE_ERROR" if kind is TypeKind.ENUM else "CONVERT_ERROR"
        logger.error(
            "convert error sheet=%s row=%d field=%s type=%s raw=%r: %s",
            context.sheet,
            context.row,
            field.name,
            getattr(field.type, "__name__", field.type),
            raw,
            exc,
        )
        if self.diagnostics is not None:
            self.diagnostics.append(
                ErrorRecord.create(
                    file=context.file,
                    sheet=context.sheet,
                    row=context.row,
                    field=field.name,
                    raw_value=raw,
                    error_type=error_type,
                    message=str(exc),
                )
            )
        return Coercion(self.default_for(field), defaulted=True, failed=True)

    def _validate(self, value: Any, field: FieldSpec, context: CoercionContext) -> None:
        if field.has_range:
            try:
                numbers = _numbers(value)
            except (TypeError, ValueError) as e:
                raise FieldValidationError(context.sheet, field.name, value, "is not numeric") from e
            lo = field.min_value if field.min_value is not None else float("-inf")
            hi = field.max_value if field.max_value is not None else float("inf")
            for number in numbers:
                if number < lo or number > hi:
                    raise FieldValidationError(
                        context.sheet, field.name, value, f"out of range [{field.min_value},{field.max_value}]"
                    )
        if field.pattern is not None:
            text = value.name if isinstance(value, Enum) else ("" if value is None else str(value))
            if re.search(field.pattern, text) is None:
                raise FieldValidationError(
                    context.sheet, field.name, value, f"doesn't match pattern '{field.pattern}'"
                )
