from __future__ import annotations

from sheetbind.models.load_result import LoadResult

"""SUMMARY line rendering.

Format:
SUMMARY files={n} sheets={n} records={n} skipped={n} conversion_errors={n} elapsed_sec={s}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(seconds: float) -> str:
    """Render elapsed seconds without trailing zeros or scientific notation.

    >>> format_seconds(2.0), format_seconds(0.0000123), format_seconds(1.25)
    ('2', '0.000012', '1.25')
    """
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: LoadResult) -> str:
    """Render the SUMMARY line for a finished load.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = LoadResult(
        ...     files=2, sheets_bound=3, records_bound=40, records_skipped=1,
        ...     conversion_errors=0, start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY files=2 sheets=3 records=40 skipped=1 conversion_errors=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={result.files} "
        f"sheets={result.sheets_bound} "
        f"records={result.records_bound} "
        f"skipped={result.records_skipped} "
        f"conversion_errors={result.conversion_errors} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
