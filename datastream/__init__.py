"""DataStream CSV water-temperature summariser.

Public functional interface::

    records = await decode(path)               # or decode_sync(path)
    index = build_index(records)
    locations = derive_locations(index)
    result = aggregate(index, "LOC001")
"""

from .models import DatasetState, MonitoringLocation, RowRecord, TemperatureResult
from .services.aggregation import aggregate
from .services.indexing import build_index, derive_locations
from .services.ingest import NoLocationsError, decode, decode_sync, load_dataset, select_location
from .tabular.reader import DecodeError, EmptyInputError, IngestError, SchemaError

__version__ = "0.1.0"

__all__ = [
    "decode",
    "decode_sync",
    "build_index",
    "derive_locations",
    "aggregate",
    "load_dataset",
    "select_location",
    "DatasetState",
    "MonitoringLocation",
    "RowRecord",
    "TemperatureResult",
    "IngestError",
    "DecodeError",
    "EmptyInputError",
    "SchemaError",
    "NoLocationsError",
]
