from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from sheetbind.models.load_result import FileStat, LoadResult, SheetStat
from sheetbind.services.summary import format_seconds, render_summary_line

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY files=([0-9]+) sheets=([0-9]+) records=([0-9]+) skipped=([0-9]+) "
    r"conversion_errors=([0-9]+) elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def _result(elapsed: float, **counts: int) -> LoadResult:
    start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    return LoadResult(
        files=counts.get("files", 0),
        sheets_bound=counts.get("sheets", 0),
        records_bound=counts.get("records", 0),
        records_skipped=counts.get("skipped", 0),
        conversion_errors=counts.get("errors", 0),
        start_time=start,
        end_time=start,
        elapsed_seconds=elapsed,
    )


def test_render_summary_line_fields():
    line = render_summary_line(_result(2.0, files=2, sheets=3, records=120, skipped=4, errors=1))
    match = SUMMARY_PATTERN.match(line)
    assert match, line
    assert match.groups() == ("2", "3", "120", "4", "1", "2")


def test_render_summary_line_zero_files():
    assert render_summary_line(_result(0.0)) == (
        "SUMMARY files=0 sheets=0 records=0 skipped=0 conversion_errors=0 elapsed_sec=0"
    )


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0.0, "0"), (3.0, "3"), (1.5, "1.5"), (0.004, "0.004"), (12.34567, "12.346")],
)
def test_format_seconds(seconds, expected):
    assert format_seconds(seconds) == expected


def test_file_stat_aggregates_sheets():
    stat = FileStat(
        "a.xlsx",
        sheets=[
            SheetStat("Units", "units", records_bound=3, records_skipped=1),
            SheetStat("Units", "all_units", records_bound=3),
        ],
    )
    assert stat.records_bound == 6
    assert stat.records_skipped == 1
