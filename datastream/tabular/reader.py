from __future__ import annotations

import io
import os
import re
import warnings
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd
from pandas.errors import EmptyDataError, ParserError, ParserWarning

from datastream.models.row_record import REQUIRED_COLUMNS, RowRecord

"""DataStream CSV reader.

Reading is split in two steps so that it behaves the same in-process and in a
worker process:

1. ``read_raw_chunks`` streams the source through pandas in row chunks. Every
   value is kept as a string (no NA / numeric conversion) and nothing is
   trimmed. Each chunk reports the parser's byte position for progress.
2. ``normalize_rows`` strips header names and values and builds RowRecords.
   It always runs on the caller side, after each chunk is received.

Malformed rows (too many fields) are skipped by pandas and reported as
RowIssues; they never abort the read.
"""

__all__ = [
    "IngestError",
    "DecodeError",
    "EmptyInputError",
    "SchemaError",
    "RowIssue",
    "RawChunk",
    "Source",
    "source_name",
    "source_size",
    "read_raw_chunks",
    "normalize_rows",
    "validate_first_record",
]

Source = str | os.PathLike[str] | bytes

_BAD_LINE_RE = re.compile(r"Skipping line (?P<line>\d+): (?P<detail>.+)")
_BOM = "\ufeff"


class IngestError(Exception):
    """Base class for terminal ingestion failures."""


class DecodeError(IngestError):
    """Raised when the source cannot be read or the parser fails fatally."""


class EmptyInputError(IngestError):
    """Raised when the source produced no data rows."""

    def __init__(self, message: str = "No data found in CSV file") -> None:
        super().__init__(message)


class SchemaError(IngestError):
    """Raised when the first record lacks required columns."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


@dataclass(frozen=True)
class RowIssue:
    row: int  # ソース上の行番号 (1 始まり, 不明なら -1)
    error_type: str  # UPPER_SNAKE
    message: str


@dataclass
class RawChunk:
    rows: list[dict[str, Any]]  # 未トリムの 列名 -> 値
    bytes_processed: int
    total_bytes: int
    issues: list[RowIssue] = field(default_factory=list)


def source_name(source: Source) -> str:
    if isinstance(source, bytes):
        return "<bytes>"
    return Path(source).name


def source_size(source: Source) -> int:
    """Total byte length of the source.

    Raises:
        DecodeError: If the file cannot be stat'ed
    """
    if isinstance(source, bytes):
        return len(source)
    try:
        return Path(source).stat().st_size
    except OSError as e:
        raise DecodeError(f"Failed to read CSV: {e}") from e


def _open_source(source: Source) -> BinaryIO:
    if isinstance(source, bytes):
        return io.BytesIO(source)
    try:
        return open(source, "rb")
    except OSError as e:
        raise DecodeError(f"Failed to read CSV: {e}") from e


def _issues_from_warnings(caught: Iterable[warnings.WarningMessage]) -> list[RowIssue]:
    """Convert pandas bad-line ParserWarnings into RowIssues.

    pandas may pack several ``Skipping line N: ...`` messages into one warning.
    """
    issues: list[RowIssue] = []
    for w in caught:
        if not issubclass(w.category, ParserWarning):
            continue
        text = str(w.message)
        matches = list(_BAD_LINE_RE.finditer(text))
        if not matches:
            issues.append(RowIssue(row=-1, error_type="PARSER_WARNING", message=text.strip()))
            continue
        for m in matches:
            issues.append(
                RowIssue(
                    row=int(m.group("line")),
                    error_type="FIELD_COUNT_MISMATCH",
                    message=m.group("detail").strip(),
                )
            )
    return issues


def read_raw_chunks(
    source: Source, *, chunk_size: int = 10_000, encoding: str = "utf-8"
) -> Iterator[RawChunk]:
    """Stream raw (untrimmed) rows from a CSV source in chunks.

    Parameters
    ----------
    source: ファイルパス or メモリ上のバイト列
    chunk_size: 1 チャンクあたりの行数
    encoding: 文字コード (既定 UTF-8, BOM 可)

    Yields nothing for an empty source or a header-only source.

    Raises
    ------
    DecodeError: I/O failure, undecodable bytes or a fatal parser fault
    """
    total_bytes = source_size(source)
    handle = _open_source(source)
    try:
        # catch_warnings はチャンク単位で閉じる (yield を跨がない)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ParserWarning)
            try:
                reader = pd.read_csv(
                    handle,
                    sep=",",
                    quotechar='"',
                    doublequote=True,
                    dtype=str,
                    keep_default_na=False,  # 空セルは "" のまま
                    skip_blank_lines=True,
                    on_bad_lines="warn",
                    index_col=False,
                    encoding=encoding,
                    chunksize=chunk_size,
                )
            except EmptyDataError:
                return
            pending = _issues_from_warnings(caught)

        last_position = 0
        with reader:
            while True:
                with warnings.catch_warnings(record=True) as caught:
                    warnings.simplefilter("always", ParserWarning)
                    try:
                        chunk = next(reader)
                    except (StopIteration, EmptyDataError):
                        break
                    issues = pending + _issues_from_warnings(caught)
                pending = []
                position = total_bytes if handle.closed else handle.tell()
                last_position = max(last_position, min(position, total_bytes))
                yield RawChunk(
                    rows=chunk.to_dict(orient="records"),
                    bytes_processed=last_position,
                    total_bytes=total_bytes,
                    issues=issues,
                )
    except ParserError as e:
        raise DecodeError(f"Failed to parse CSV: {e}") from e
    except UnicodeDecodeError as e:
        raise DecodeError(f"Failed to decode CSV as {encoding}: {e}") from e
    except LookupError as e:
        raise DecodeError(f"Unknown encoding: {encoding}") from e
    except ValueError as e:
        raise DecodeError(f"Failed to parse CSV: {e}") from e
    except OSError as e:
        raise DecodeError(f"Failed to read CSV: {e}") from e
    finally:
        handle.close()


def _clean_header(name: Any) -> str:
    return str(name).lstrip(_BOM).strip()


def normalize_rows(rows: Iterable[Mapping[str, str]]) -> list[RowRecord]:
    """Trim header names and values, then build RowRecords.

    Short rows arrive padded with "" by the reader, so every header column is
    present on every record.
    """
    return [
        RowRecord.from_mapping({_clean_header(key): value.strip() for key, value in raw.items()})
        for raw in rows
    ]


def validate_first_record(record: RowRecord) -> None:
    """Check the required columns against the first record only.

    Raises:
        SchemaError: Naming every missing required column
    """
    missing = [col for col in REQUIRED_COLUMNS if not record.has(col)]
    if missing:
        raise SchemaError(missing)
