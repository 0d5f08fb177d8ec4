from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .reader import RowIssue

"""Messages exchanged between a decoder and its caller.

A decode is a stream of ``BatchMessage`` / ``ProgressMessage`` items closed by
exactly one ``CompleteMessage`` or ``ErrorMessage``. Every message is a plain
picklable dataclass so the same stream can cross a process boundary.
"""

__all__ = [
    "BatchMessage",
    "ProgressMessage",
    "CompleteMessage",
    "ErrorMessage",
    "DecodeMessage",
]


@dataclass(frozen=True)
class BatchMessage:
    rows: list[dict[str, Any]]  # 未トリム (正規化は受信側)
    issues: list[RowIssue] = field(default_factory=list)


@dataclass(frozen=True)
class ProgressMessage:
    bytes_processed: int
    total_bytes: int


@dataclass(frozen=True)
class CompleteMessage:
    rows_read: int
    total_bytes: int


@dataclass(frozen=True)
class ErrorMessage:
    kind: str  # 送信側の例外クラス名
    message: str


DecodeMessage = BatchMessage | ProgressMessage | CompleteMessage | ErrorMessage
