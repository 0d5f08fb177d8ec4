from __future__ import annotations

import asyncio
import logging
import multiprocessing
import queue
from collections.abc import AsyncIterator, Iterator
from typing import Any

from .messages import BatchMessage, CompleteMessage, DecodeMessage, ErrorMessage, ProgressMessage
from .reader import DecodeError, Source, read_raw_chunks, source_size

"""Execution contexts for CSV decoding.

Both contexts produce the same message stream (see ``messages``):

- ``inline_messages`` runs the reader on the caller's event loop thread and
  yields control back to the loop after every chunk.
- ``isolated_messages`` runs the reader in a spawned worker process and
  relays its messages through a ``multiprocessing`` queue. Nothing is shared
  between the two processes; rows are pickled on the way through.

Neither context trims values. Normalisation is the receiver's job.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "produce_messages",
    "run_worker",
    "inline_messages",
    "isolated_messages",
]

# queue.get のポーリング間隔 (秒)
POLL_INTERVAL = 0.2
JOIN_TIMEOUT = 5.0


def produce_messages(
    source: Source, *, chunk_size: int, encoding: str
) -> Iterator[DecodeMessage]:
    """Read the source and yield batch/progress messages, then a completion.

    Raises:
        DecodeError: propagated from the reader
    """
    rows_read = 0
    for chunk in read_raw_chunks(source, chunk_size=chunk_size, encoding=encoding):
        if chunk.rows or chunk.issues:
            yield BatchMessage(rows=chunk.rows, issues=chunk.issues)
        yield ProgressMessage(bytes_processed=chunk.bytes_processed, total_bytes=chunk.total_bytes)
        rows_read += len(chunk.rows)
    yield CompleteMessage(rows_read=rows_read, total_bytes=source_size(source))


def run_worker(source: Source, out: Any, chunk_size: int, encoding: str) -> None:
    """Worker process entry point.

    Every failure is sent as an ErrorMessage so the stream is always closed.
    """
    try:
        for message in produce_messages(source, chunk_size=chunk_size, encoding=encoding):
            out.put(message)
    except Exception as e:  # プロセス境界: 例外はメッセージとして返す
        out.put(ErrorMessage(kind=type(e).__name__, message=str(e)))


async def inline_messages(
    source: Source, *, chunk_size: int, encoding: str
) -> AsyncIterator[DecodeMessage]:
    for message in produce_messages(source, chunk_size=chunk_size, encoding=encoding):
        yield message
        if isinstance(message, ProgressMessage):
            await asyncio.sleep(0)


async def isolated_messages(
    source: Source, *, chunk_size: int, encoding: str
) -> AsyncIterator[DecodeMessage]:
    """Decode in a spawned process and relay its messages.

    Raises:
        DecodeError: If the worker exits without closing the stream
    """
    ctx = multiprocessing.get_context("spawn")
    channel = ctx.Queue()
    process = ctx.Process(
        target=run_worker,
        args=(source, channel, chunk_size, encoding),
        name="datastream-decoder",
        daemon=True,
    )
    loop = asyncio.get_running_loop()
    process.start()
    logger.debug(f"decoder worker started pid={process.pid}")
    try:
        while True:
            try:
                message = await loop.run_in_executor(None, channel.get, True, POLL_INTERVAL)
            except queue.Empty:
                if process.is_alive():
                    continue
                # 終了直前に put されたメッセージを取りこぼさない
                try:
                    message = channel.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    raise DecodeError(
                        f"decode worker exited unexpectedly (exitcode={process.exitcode})"
                    ) from None
            yield message
            if isinstance(message, (CompleteMessage, ErrorMessage)):
                return
    finally:
        process.join(timeout=JOIN_TIMEOUT)
        if process.is_alive():
            logger.warning(f"decoder worker did not exit, terminating pid={process.pid}")
            process.terminate()
            process.join()
        channel.close()
