from __future__ import annotations

import typing
from dataclasses import dataclass
from typing import Any, NamedTuple

"""Built-in composite types and parsers.

- Vector2 / Vector3: numeric composites picked up by the coercion engine's
  vector layer ("1.5, 2" -> Vector2(1.5, 2.0)).
- WeightedValue: self-parsing "value:weight" pair, registered on the default
  ParserRegistry.
- NamedValue / parse_named_value: a two-column composite for
  FieldSpec(columns=(...), multi_parser=parse_named_value).
"""

__all__ = [
    "Vector2",
    "Vector3",
    "parse_vector",
    "WeightedValue",
    "NamedValue",
    "parse_named_value",
]


class Vector2(NamedTuple):
    x: float = 0.0
    y: float = 0.0


class Vector3(NamedTuple):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


def parse_vector(vector_type: Any, text: str) -> Any:
    """Parse up to len(_fields) comma separated components; missing trailing ones are 0."""
    hints = typing.get_type_hints(vector_type)
    components = [hints[name] for name in vector_type._fields]
    parts = [p.strip() for p in text.split(",")]
    values = []
    for i, component in enumerate(components):
        values.append(component(parts[i]) if i < len(parts) else component(0))
    return vector_type(*values)


@dataclass(frozen=True)
class WeightedValue:
    value: str
    weight: float

    def __str__(self) -> str:
        return f"{self.value} ({self.weight})"

    @classmethod
    def parse_value(cls, text: str) -> WeightedValue:
        """"Apple:0.75" -> WeightedValue("Apple", 0.75)"""
        parts = text.split(":")
        if len(parts) < 2:
            raise ValueError(f"invalid WeightedValue '{text}', expected value:weight")
        return cls(parts[0].strip(), float(parts[1].strip()))


@dataclass
class NamedValue:
    name: str = ""
    value: str = ""


def parse_named_value(*values: str) -> NamedValue:
    if len(values) < 2:
        raise ValueError(f"not enough columns for NamedValue, need 2, got {len(values)}")
    return NamedValue(name=values[0], value=values[1])
