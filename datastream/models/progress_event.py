from __future__ import annotations

from dataclasses import dataclass

"""ProgressEvent model for byte-based decode progress.

The byte percentage is the authoritative progress measure: it is computed from
the parser's read position and needs no row-count estimation.
"""

__all__ = [
    "ProgressEvent",
]


@dataclass(frozen=True)
class ProgressEvent:
    bytes_processed: int
    total_bytes: int
    percentage: int  # floor(bytes_processed / total_bytes * 100), 0-100

    @classmethod
    def from_bytes(cls, bytes_processed: int, total_bytes: int) -> ProgressEvent:
        """Create an event, clamping the cursor into ``[0, total_bytes]``."""
        processed = max(0, min(bytes_processed, total_bytes))
        if total_bytes <= 0:
            percentage = 0
        else:
            # 整数演算で floor (浮動小数の丸め誤差を避ける)
            percentage = processed * 100 // total_bytes
        return cls(bytes_processed=processed, total_bytes=total_bytes, percentage=percentage)

    @classmethod
    def completed(cls, total_bytes: int) -> ProgressEvent:
        return cls(bytes_processed=total_bytes, total_bytes=total_bytes, percentage=100)
