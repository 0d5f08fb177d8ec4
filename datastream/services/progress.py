from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

- Single tqdm instance per decode, disabled in non-TTY environments (CI)
- Driven by the decoder's ``on_progress(bytes_processed, total_bytes, percentage)``
  callback, so the bar shows bytes, not rows
"""

__all__ = [
    "ByteProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ByteProgressBar:
    """Byte-progress bar for one CSV decode.

    Instances are callable and can be passed directly as ``on_progress``.
    In non-TTY environments nothing is drawn, but the last reported
    percentage is still tracked.
    """

    def __init__(self, file_name: str, *, description: str = "Reading") -> None:
        """Initialize progress bar.

        Args:
            file_name: Name of the file being decoded
            description: Description prefix for the bar
        """
        self.file_name = file_name
        self.description = f"{description} ({file_name})"
        self.bytes_processed = 0
        self.percentage = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None

    def _ensure_bar(self, total_bytes: int) -> None:
        if self.pbar is None and self.enabled:
            self.pbar = tqdm(
                total=total_bytes,
                desc=self.description,
                unit="B",
                unit_scale=True,
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def __call__(self, bytes_processed: int, total_bytes: int, percentage: int) -> None:
        self._ensure_bar(total_bytes)
        delta = bytes_processed - self.bytes_processed
        self.bytes_processed = bytes_processed
        self.percentage = percentage
        if self.pbar is not None and delta > 0:
            self.pbar.update(delta)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ByteProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
