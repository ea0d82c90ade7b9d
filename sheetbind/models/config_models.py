from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the sheet binding loader.

The loader in sheetbind.config.loader builds these from YAML; the engine only
ever sees the frozen dataclasses below.
"""

__all__ = [
    "Markers",
    "LoaderConfig",
]


@dataclass(frozen=True)
class Markers:
    """Control markers recognised in sheet names, header cells and leading cells.

    All prefix markers are tuples so a workbook author may use any of the
    alternatives (e.g. ``~`` or ``#`` to hide a sheet).
    """
    sheet_ignore: tuple[str, ...] = ("~", "#")  # シート全体を無視
    column_based: tuple[str, ...] = ("!", "^")  # 列方向シート
    name_separator: str = "#"  # "hp#1" -> base name "hp"
    header_ignore: tuple[str, ...] = ("~", "#")
    comment: tuple[str, ...] = ("//", ";")

    def is_comment(self, cell: str) -> bool:
        stripped = cell.strip()
        return any(stripped.startswith(p) for p in self.comment)


@dataclass(frozen=True)
class LoaderConfig:
    """Root configuration for a folder load."""
    source_directory: str  # Directory scanned (non-recursive) for workbooks
    extensions: tuple[str, ...] = (".xlsx",)
    skip_file_prefix: str = "~"  # Office lock files (~$book.xlsx) etc.
    container: str | None = None  # "module:callable" used by the CLI load mode
    error_log_dir: str = "./logs"
    markers: Markers = field(default_factory=Markers)
