"""Domain models for the DataStream CSV summariser.

This package contains the record, index-state and result types passed between
the decoder, the index builder and the aggregator.
"""

from .dataset_state import DatasetState, IngestStatus, LocationIndex
from .error_record import ErrorRecord
from .location import MonitoringLocation
from .progress_event import ProgressEvent
from .row_record import REQUIRED_COLUMNS, RowRecord
from .temperature_result import TemperatureResult

__all__ = [
    # Record models
    "REQUIRED_COLUMNS",
    "RowRecord",
    "ErrorRecord",
    # Index / session state
    "DatasetState",
    "IngestStatus",
    "LocationIndex",
    # Results
    "MonitoringLocation",
    "ProgressEvent",
    "TemperatureResult",
]
