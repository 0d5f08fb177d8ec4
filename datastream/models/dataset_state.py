from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .location import MonitoringLocation
from .row_record import RowRecord
from .temperature_result import TemperatureResult

"""DatasetState: caller-owned state of one loaded DataStream file.

The index, the derived locations and the last aggregation result form one unit.
They are replaced together on a successful load (``commit``) and dropped
together on ``clear``. A failed load (``fail``) records the error but keeps the
previously committed unit intact.

State transitions: pending → processing → (success | failed)
"""

__all__ = [
    "IngestStatus",
    "DatasetState",
    "LocationIndex",
]

LocationIndex = dict[str, list[RowRecord]]


class IngestStatus(Enum):
    """Lifecycle of the most recent load attempt.

    - PENDING: nothing loaded yet (or state was cleared)
    - PROCESSING: a decode is in flight
    - SUCCESS: last attempt committed
    - FAILED: last attempt failed; previously committed data is still served
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class DatasetState:
    source_name: str | None = None
    index: LocationIndex = field(default_factory=dict)
    locations: list[MonitoringLocation] = field(default_factory=list)
    last_result: TemperatureResult | None = None
    status: IngestStatus = IngestStatus.PENDING
    pending_source: str | None = None  # 処理中ファイル名 (commit 前)
    error: str | None = None
    generation: int = 0  # begin/clear ごとに増加, 古い読み込みの commit を弾く

    def begin(self, source_name: str) -> int:
        """Mark a load as in flight and return its token."""
        self.generation += 1
        self.status = IngestStatus.PROCESSING
        self.pending_source = source_name
        self.error = None
        return self.generation

    def commit(
        self,
        source_name: str,
        index: LocationIndex,
        locations: list[MonitoringLocation],
        token: int | None = None,
    ) -> bool:
        """Replace index, locations and result as a single unit.

        Returns False (and changes nothing) when ``token`` belongs to a load
        superseded by a later ``begin`` or ``clear``.
        """
        if token is not None and token != self.generation:
            return False
        self.source_name = source_name
        self.index = index
        self.locations = locations
        self.last_result = None
        self.status = IngestStatus.SUCCESS
        self.pending_source = None
        self.error = None
        return True

    def fail(self, message: str, token: int | None = None) -> bool:
        if token is not None and token != self.generation:
            return False
        self.status = IngestStatus.FAILED
        self.pending_source = None
        self.error = message
        return True

    def clear(self) -> None:
        self.generation += 1
        self.source_name = None
        self.index = {}
        self.locations = []
        self.last_result = None
        self.status = IngestStatus.PENDING
        self.pending_source = None
        self.error = None
