from __future__ import annotations

import types
import typing
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any

"""Target type classification used by the coercion engine.

Field types are ordinary annotations (``int``, ``list[int]``,
``tuple[float, ...]``, an Enum, a NamedTuple vector ...). describe_type()
classifies them once; the result is cached so every later conversion is a
dictionary lookup instead of a fresh inspection.
"""

__all__ = [
    "TypeKind",
    "TypeInfo",
    "describe_type",
    "intrinsic_default",
    "is_vector_type",
]


class TypeKind(Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    ENUM = "enum"
    VECTOR = "vector"  # NamedTuple of 1-3 numeric components
    LIST = "list"  # list[E]: ordered, growable
    ARRAY = "array"  # tuple[E, ...]: fixed-size once built
    OTHER = "other"


@dataclass(frozen=True)
class TypeInfo:
    kind: TypeKind
    target: Any  # Optional[...] unwrapped
    element: Any = None  # element type for LIST / ARRAY

    @property
    def is_sequence(self) -> bool:
        return self.kind in (TypeKind.LIST, TypeKind.ARRAY)


_SCALARS = {
    str: TypeKind.STRING,
    bool: TypeKind.BOOLEAN,
    int: TypeKind.INTEGER,
    float: TypeKind.FLOAT,
    Decimal: TypeKind.DECIMAL,
}


def _unwrap_optional(t: Any) -> Any:
    origin = typing.get_origin(t)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(t) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return t


def _vector_components(t: Any) -> list[Any] | None:
    if not (isinstance(t, type) and issubclass(t, tuple) and hasattr(t, "_fields")):
        return None
    try:
        hints = typing.get_type_hints(t)
    except (NameError, TypeError):
        return None
    comps = [hints.get(name) for name in t._fields]
    if not 1 <= len(comps) <= 3:
        return None
    if not all(c in (int, float) for c in comps):
        return None
    return comps


def is_vector_type(t: Any) -> bool:
    return _vector_components(t) is not None


@lru_cache(maxsize=None)
def describe_type(t: Any) -> TypeInfo:
    t = _unwrap_optional(t)
    if t in _SCALARS:
        return TypeInfo(_SCALARS[t], t)
    if isinstance(t, type) and issubclass(t, Enum):
        return TypeInfo(TypeKind.ENUM, t)
    if is_vector_type(t):
        return TypeInfo(TypeKind.VECTOR, t)
    origin = typing.get_origin(t)
    args = typing.get_args(t)
    if t is list or origin is list:
        return TypeInfo(TypeKind.LIST, t, args[0] if args else str)
    if t is tuple or origin is tuple:
        return TypeInfo(TypeKind.ARRAY, t, args[0] if args else str)
    return TypeInfo(TypeKind.OTHER, t)


def intrinsic_default(t: Any) -> Any:
    """Zero value for a target type: "", 0, 0.0, False, zero vector, first enum member.

    Sequences and arbitrary classes have no zero value and yield None.
    """
    info = describe_type(t)
    kind = info.kind
    if kind is TypeKind.STRING:
        return ""
    if kind is TypeKind.INTEGER:
        return 0
    if kind is TypeKind.FLOAT:
        return 0.0
    if kind is TypeKind.DECIMAL:
        return Decimal(0)
    if kind is TypeKind.BOOLEAN:
        return False
    if kind is TypeKind.ENUM:
        return next(iter(info.target), None)
    if kind is TypeKind.VECTOR:
        comps = _vector_components(info.target) or []
        return info.target(*(c(0) for c in comps))
    return None
