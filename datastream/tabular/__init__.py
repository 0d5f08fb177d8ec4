"""CSV decoding: streaming reader, message types and execution contexts."""

from .reader import (
    DecodeError,
    EmptyInputError,
    IngestError,
    RowIssue,
    SchemaError,
    normalize_rows,
    read_raw_chunks,
    validate_first_record,
)

__all__ = [
    "IngestError",
    "DecodeError",
    "EmptyInputError",
    "SchemaError",
    "RowIssue",
    "read_raw_chunks",
    "normalize_rows",
    "validate_first_record",
]
