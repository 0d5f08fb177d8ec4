from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for row-level issue logging.

Row-level malformations (too many fields, unreadable lines) never abort a
decode. They are collected as ErrorRecords and can be written out as JSON Lines
by ``datastream.logging.error_log.ErrorLogBuffer``.

``row=-1`` is used for file-level issues where no line number is known.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured row-issue record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source name (file name, or ``<bytes>`` for in-memory input)
        row: 1-based line number in the source. -1 when unknown
        error_type: Issue classification in UPPER_SNAKE_CASE format
        message: Parser message or description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
