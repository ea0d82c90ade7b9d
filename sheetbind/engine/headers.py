from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from sheetbind.models.config_models import Markers
from sheetbind.models.row_data import RowTuple
from sheetbind.models.sheet import Sheet

"""Header grouping and row tuple extraction.

Terminology:
- primary axis: the axis headers are read along (columns of a row-oriented
  sheet, rows of a column-oriented one)
- secondary axis: the axis records vary along

Repeated headers sharing a base name ("hp#1", "hp#2") are grouped so that one
record field can receive several physical cells.
"""

__all__ = [
    "SheetView",
    "HeaderLayout",
    "group_headers",
    "find_header_offset",
    "layout_sheet",
    "iter_row_tuples",
    "read_row_tuples",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetView:
    """Orientation-aware accessor over a Sheet grid."""
    sheet: Sheet
    column_based: bool = False

    @property
    def primary_count(self) -> int:
        return self.sheet.row_count if self.column_based else self.sheet.column_count

    @property
    def secondary_count(self) -> int:
        return self.sheet.column_count if self.column_based else self.sheet.row_count

    def cell(self, primary: int, secondary: int) -> str:
        if self.column_based:
            return self.sheet.cell(primary, secondary)
        return self.sheet.cell(secondary, primary)

    def line(self, secondary: int) -> list[str]:
        """All primary-axis cells at one secondary position."""
        return [self.cell(i, secondary) for i in range(self.primary_count)]

    @property
    def axis_label(self) -> str:
        return "rows" if self.column_based else "columns"


@dataclass(frozen=True)
class HeaderLayout:
    offset: int  # secondary position of the header line
    groups: dict[str, list[int]]


def group_headers(
    header_cells: Sequence[str],
    start_index: int = 0,
    markers: Markers | None = None,
) -> dict[str, list[int]]:
    """Group header cells by base name.

    Blank headers and headers starting with an ignore marker are dropped; the
    text before the name separator (trimmed) is the base name. Base names
    compare case-insensitively and keep the spelling of their first occurrence,
    which also fixes the insertion order.

    >>> group_headers(["id", "name", "hp#1", "hp#2", "~memo"])
    {'id': [0], 'name': [1], 'hp': [2, 3]}
    >>> group_headers(["HP#1", "hp#2"])
    {'HP': [0, 1]}
    """
    markers = markers or Markers()
    groups: dict[str, list[int]] = {}
    spelling: dict[str, str] = {}
    for index in range(start_index, len(header_cells)):
        raw = (header_cells[index] or "").strip()
        if not raw:
            continue
        if any(raw.startswith(p) for p in markers.header_ignore):
            continue
        base = raw.split(markers.name_separator, 1)[0].strip() if markers.name_separator else raw
        if not base:
            continue
        base = spelling.setdefault(base.casefold(), base)
        groups.setdefault(base, []).append(index)
    return groups


def find_header_offset(view: SheetView, markers: Markers | None = None) -> int:
    """Skip leading comment lines; returns the secondary position of the header."""
    markers = markers or Markers()
    offset = 0
    while offset < view.secondary_count and markers.is_comment(view.cell(0, offset)):
        offset += 1
    return offset


def layout_sheet(view: SheetView, markers: Markers | None = None) -> HeaderLayout | None:
    """Locate and group the header line. None (with a warning) for undersized sheets."""
    markers = markers or Markers()
    if view.primary_count < 2:
        logger.warning(
            "sheet %s is empty or lacks enough %s for parsing", view.sheet.name, view.axis_label
        )
        return None
    offset = find_header_offset(view, markers)
    if offset >= view.secondary_count:
        logger.warning("sheet %s has no header line", view.sheet.name)
        return None
    return HeaderLayout(offset=offset, groups=group_headers(view.line(offset), 0, markers))


def iter_row_tuples(
    view: SheetView, layout: HeaderLayout, markers: Markers | None = None
) -> Iterator[RowTuple]:
    """Yield row tuples after the header until the first all-blank one."""
    markers = markers or Markers()
    for position in range(layout.offset + 1, view.secondary_count):
        if markers.is_comment(view.cell(0, position)):
            continue
        row = RowTuple(
            position=position,
            cells={
                base: [view.cell(i, position).strip() for i in indices]
                for base, indices in layout.groups.items()
            },
        )
        if row.is_empty:
            # 空行 = データ終端
            break
        yield row


def read_row_tuples(
    sheet: Sheet, column_based: bool = False, markers: Markers | None = None
) -> list[RowTuple]:
    view = SheetView(sheet, column_based)
    layout = layout_sheet(view, markers)
    if layout is None:
        return []
    return list(iter_row_tuples(view, layout, markers))
