from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd

from sheetbind.models.sheet import Sheet

"""Workbook reader.

Reads every sheet of a workbook as raw strings. No header handling and no
type inference happens here: pandas is asked for object dtype without NA
conversion, and the few non-string values openpyxl still produces (numbers,
dates, booleans) are turned back into the text a user sees in the cell.
"""

__all__ = [
    "read_workbook",
    "cell_text",
    "frame_to_sheet",
]


def cell_text(value: Any) -> str:
    """Render one raw cell value as a string ("" for empty cells).

    >>> cell_text(10.0), cell_text(2.5), cell_text(None), cell_text(True)
    ('10', '2.5', '', 'true')
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        # Excel は整数も float で返す
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if value is pd.NaT:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def frame_to_sheet(name: str, df: pd.DataFrame) -> Sheet:
    grid = [[cell_text(v) for v in row] for row in df.itertuples(index=False, name=None)]
    return Sheet(name=str(name), grid=grid)


def read_workbook(path: Path, target_sheets: Iterable[str] | None = None) -> list[Sheet]:
    """Read a workbook returning one Sheet per worksheet, in workbook order.

    Parameters
    ----------
    path: workbook path
    target_sheets: raw sheet names to read (None = all sheets)
    """
    wanted = set(target_sheets) if target_sheets is not None else None
    sheets: list[Sheet] = []
    # with でファイルハンドルを確実に閉じる (変換失敗時も)
    with pd.ExcelFile(path) as xls:
        for name in xls.sheet_names:
            if wanted is not None and str(name) not in wanted:
                continue
            df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_filter=False)
            sheets.append(frame_to_sheet(str(name), df))
    return sheets
