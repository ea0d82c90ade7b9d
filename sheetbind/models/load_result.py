from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

"""Load result models.

SheetStat / FileStat track what a single sheet or workbook contributed;
LoadResult aggregates a whole folder load and feeds the SUMMARY line.
"""


@dataclass
class SheetStat:
    """Per (sheet, slot) statistics."""
    sheet_name: str
    slot: str
    column_based: bool = False
    row_tuples: int = 0  # rows read before the end-of-data sentinel
    records_bound: int = 0
    records_skipped: int = 0  # dropped by the binder (mismatch / duplicate skip)


@dataclass
class FileStat:
    """Per-file statistics."""
    file_name: str
    sheets: list[SheetStat] = field(default_factory=list)
    ignored_sheets: int = 0  # sheets hidden by a marker
    unbound_sheets: int = 0  # sheets no slot asked for
    elapsed_seconds: float = 0.0

    @property
    def records_bound(self) -> int:
        return sum(s.records_bound for s in self.sheets)

    @property
    def records_skipped(self) -> int:
        return sum(s.records_skipped for s in self.sheets)


@dataclass(frozen=True)
class LoadResult:
    """Aggregated result of load_all()."""
    files: int
    sheets_bound: int
    records_bound: int
    records_skipped: int
    conversion_errors: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None
