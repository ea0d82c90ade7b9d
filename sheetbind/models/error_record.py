from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for conversion diagnostics.

Every recovered conversion failure (bad number, unknown enum name, parser
exception) produces one ErrorRecord. Records are buffered by
sheetbind.logging.error_log.ErrorLogBuffer and written as JSON Lines.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured diagnostic record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook filename ("" when sheets were handed over in memory)
        sheet: Sheet name within the file
        row: 1-based data position along the secondary axis. -1 when unknown
        field: Record field receiving the value
        raw_value: Offending raw cell string
        error_type: Classification in UPPER_SNAKE_CASE
        message: Exception message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int  # 不明な場合 -1
    field: str
    raw_value: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str,
        sheet: str,
        row: int,
        field: str,
        raw_value: str,
        error_type: str,
        message: str,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            field=field,
            raw_value=raw_value,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
