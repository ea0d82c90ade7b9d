from __future__ import annotations

from dataclasses import dataclass, field

from sheetbind.models.config_models import Markers

"""Sheet domain model.

A Sheet is the in-memory table handed over by the workbook reader: a name and a
rectangular grid of raw cell strings. SheetName carries the result of parsing
the control markers embedded in the raw sheet name.
"""

__all__ = [
    "Sheet",
    "SheetName",
]


@dataclass
class Sheet:
    name: str
    grid: list[list[str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        # ragged trailing cells -> ""
        width = max((len(r) for r in self.grid), default=0)
        self.grid = [[("" if c is None else str(c)) for c in r] + [""] * (width - len(r)) for r in self.grid]

    @property
    def row_count(self) -> int:
        return len(self.grid)

    @property
    def column_count(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    def cell(self, row: int, column: int) -> str:
        return self.grid[row][column]


@dataclass(frozen=True)
class SheetName:
    """Normalized sheet name plus the flags encoded by its markers.

    ``"!UnitData#draft"`` -> name="UnitData", column_based=True, ignored=False
    """
    raw: str
    name: str
    ignored: bool = False
    column_based: bool = False

    @classmethod
    def parse(cls, raw: str | None, markers: Markers | None = None) -> SheetName:
        markers = markers or Markers()
        text = (raw or "").strip()
        if any(text.startswith(p) for p in markers.sheet_ignore):
            return cls(raw=raw or "", name="", ignored=True)
        column_based = False
        for prefix in markers.column_based:
            if text.startswith(prefix):
                column_based = True
                text = text[len(prefix):]
                break
        name = text.split(markers.name_separator, 1)[0].strip() if markers.name_separator else text.strip()
        return cls(raw=raw or "", name=name, ignored=False, column_based=column_based)

    def matches(self, other: str) -> bool:
        return self.name.casefold() == other.strip().casefold()
