from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from ..config.loader import Settings
from ..logging.error_log import ErrorLogBuffer
from ..models.dataset_state import DatasetState, LocationIndex
from ..models.error_record import ErrorRecord
from ..models.location import MonitoringLocation
from ..models.progress_event import ProgressEvent
from ..models.row_record import RowRecord
from ..models.temperature_result import TemperatureResult
from ..tabular.messages import BatchMessage, CompleteMessage, ErrorMessage, ProgressMessage
from ..tabular.reader import (
    DecodeError,
    EmptyInputError,
    IngestError,
    Source,
    normalize_rows,
    source_name,
    source_size,
    validate_first_record,
)
from ..tabular.worker import inline_messages, isolated_messages
from .aggregation import aggregate
from .indexing import build_index, derive_locations

"""Ingestion service for the DataStream CSV summariser.

This module coordinates one file load:

1. Decode the CSV (in-process or in a worker process) into RowRecords,
   reporting byte progress and logging row-level issues
2. Validate the first record against the required columns
3. Build the location index and derive the monitoring locations
4. Commit the result to the caller-owned DatasetState

A failure at any step leaves the previously committed state untouched.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ProgressCallback",
    "NoLocationsError",
    "LoadedDataset",
    "decode",
    "decode_sync",
    "load_dataset",
    "select_location",
]

ProgressCallback = Callable[[int, int, int], None]


class NoLocationsError(IngestError):
    """Raised when records exist but none carries a MonitoringLocationID."""

    def __init__(self, message: str = "No monitoring locations found in CSV file") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class LoadedDataset:
    source_name: str
    records: list[RowRecord]
    index: LocationIndex
    locations: list[MonitoringLocation]


def _use_isolated(
    source: Source, use_isolated_context: bool | None, settings: Settings
) -> bool:
    if use_isolated_context is not None:
        return use_isolated_context
    return source_size(source) >= settings.isolated_threshold_bytes


class _ProgressRelay:
    """Forward progress to the callback, never moving backwards."""

    def __init__(self, callback: ProgressCallback | None) -> None:
        self._callback = callback
        self._last = -1

    def emit(self, event: ProgressEvent) -> None:
        if self._callback is None or event.bytes_processed < self._last:
            return
        self._last = event.bytes_processed
        self._callback(event.bytes_processed, event.total_bytes, event.percentage)


async def decode(
    source: Source,
    *,
    use_isolated_context: bool | None = None,
    on_progress: ProgressCallback | None = None,
    chunk_size: int | None = None,
    error_log: ErrorLogBuffer | None = None,
    settings: Settings | None = None,
) -> list[RowRecord]:
    """Decode a DataStream CSV into normalised RowRecords.

    Args:
        source: Path to the CSV file, or its raw bytes
        use_isolated_context: Decode in a worker process. None picks it
            automatically for sources of at least
            ``settings.isolated_threshold_bytes``
        on_progress: ``callback(bytes_processed, total_bytes, percentage)``,
            called with non-decreasing byte counts and always once at 100%
            when the stream completes
        chunk_size: Rows per batch (defaults to ``settings.chunk_size``)
        error_log: Buffer that receives one ErrorRecord per row issue
        settings: Loaded configuration (defaults used when None)

    Returns:
        Records in source order

    Raises:
        DecodeError: Source unreadable or fatal parser fault
        EmptyInputError: No data rows
        SchemaError: First record is missing required columns
    """
    settings = settings or Settings()
    name = source_name(source)
    isolated = _use_isolated(source, use_isolated_context, settings)
    produce = isolated_messages if isolated else inline_messages
    logger.debug(f"decode start file={name} context={'worker' if isolated else 'inline'}")

    relay = _ProgressRelay(on_progress)
    records: list[RowRecord] = []
    issue_count = 0
    async with aclosing(
        produce(source, chunk_size=chunk_size or settings.chunk_size, encoding=settings.encoding)
    ) as messages:
        async for message in messages:
            if isinstance(message, BatchMessage):
                records.extend(normalize_rows(message.rows))
                for issue in message.issues:
                    issue_count += 1
                    logger.warning(f"{name} line {issue.row}: {issue.message}")
                    if error_log is not None:
                        error_log.append(
                            ErrorRecord.create(name, issue.row, issue.error_type, issue.message)
                        )
            elif isinstance(message, ProgressMessage):
                relay.emit(ProgressEvent.from_bytes(message.bytes_processed, message.total_bytes))
            elif isinstance(message, CompleteMessage):
                relay.emit(ProgressEvent.completed(message.total_bytes))
            elif isinstance(message, ErrorMessage):
                raise DecodeError(message.message)

    if not records:
        raise EmptyInputError()
    validate_first_record(records[0])
    logger.info(f"decoded file={name} rows={len(records)} skipped_rows={issue_count}")
    return records


def decode_sync(source: Source, **kwargs: Any) -> list[RowRecord]:
    """Blocking wrapper around ``decode`` for scripts and the CLI."""
    return asyncio.run(decode(source, **kwargs))


async def load_dataset(source: Source, state: DatasetState, **decode_kwargs: Any) -> LoadedDataset:
    """Decode, index and commit one file into ``state``.

    Raises:
        IngestError: Any decode/schema failure, or NoLocationsError when no
            record carries a location id. ``state`` keeps its previous data.
    """
    name = source_name(source)
    token = state.begin(name)
    try:
        records = await decode(source, **decode_kwargs)
        index = build_index(records)
        locations = derive_locations(index)
        if not locations:
            raise NoLocationsError()
    except IngestError as e:
        state.fail(str(e), token=token)
        raise
    if state.commit(name, index, locations, token=token):
        logger.info(f"loaded file={name} locations={len(locations)}")
    else:
        # reset / 別ファイル読み込みで置き換え済み
        logger.info(f"discarded superseded load file={name}")
    return LoadedDataset(source_name=name, records=records, index=index, locations=locations)


def select_location(
    state: DatasetState, location_id: str, *, characteristic: str | None = None
) -> TemperatureResult:
    """Aggregate one location of the committed dataset and remember the result."""
    if characteristic is None:
        result = aggregate(state.index, location_id)
    else:
        result = aggregate(state.index, location_id, characteristic=characteristic)
    state.last_result = result
    return result
