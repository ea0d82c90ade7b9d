from __future__ import annotations

from dataclasses import dataclass

"""RowTuple model.

One secondary-axis position of a sheet, grouped by base name. The list under
each base name has exactly one entry per physical index of that header group.
"""

__all__ = [
    "RowTuple",
]


@dataclass(frozen=True)
class RowTuple:
    """Raw cell strings at one data position, keyed by header base name."""
    position: int  # 0-based index along the secondary axis
    cells: dict[str, list[str]]

    @property
    def is_empty(self) -> bool:
        return all(not c.strip() for values in self.cells.values() for c in values)

    @property
    def row_number(self) -> int:
        """1-based position as shown by spreadsheet applications."""
        return self.position + 1

    def first(self, base_name: str) -> str:
        values = self.cells.get(base_name) or [""]
        return values[0]
