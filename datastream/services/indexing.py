from __future__ import annotations

import locale
from collections.abc import Iterable

from ..models.dataset_state import LocationIndex
from ..models.location import MonitoringLocation
from ..models.row_record import RowRecord

"""Location index service.

``build_index`` groups records by MonitoringLocationID in one pass so that
per-location lookups never rescan the full dataset. ``derive_locations`` turns
the index into the sorted list of MonitoringLocations shown to the user.

The index is built once per file and treated as read-only afterwards.
"""

__all__ = [
    "build_index",
    "derive_locations",
]


def build_index(records: Iterable[RowRecord]) -> LocationIndex:
    """Group records by MonitoringLocationID.

    Records whose id is absent or empty are not indexed. Within each group the
    input order is kept and duplicates are not removed.
    """
    index: LocationIndex = {}
    for record in records:
        location_id = record.monitoring_location_id
        if not location_id:
            continue
        index.setdefault(location_id, []).append(record)
    return index


def _collation_is_c() -> bool:
    # "C", "POSIX", "C.UTF-8" などはコードポイント順
    return locale.setlocale(locale.LC_COLLATE).split(".")[0] in ("C", "POSIX")


def _sort_key(location: MonitoringLocation) -> tuple[str, str, str]:
    # C ロケールでは大文字小文字を無視した順に近づける
    name = location.name.casefold() if _collation_is_c() else location.name
    return (locale.strxfrm(name), location.name, location.id)


def derive_locations(index: LocationIndex) -> list[MonitoringLocation]:
    """Derive one MonitoringLocation per index key, sorted by name.

    The name comes from the first record's MonitoringLocationName when it is
    present and non-empty, otherwise the id is used.
    """
    locations = [
        MonitoringLocation.create(location_id, records[0].monitoring_location_name if records else None)
        for location_id, records in index.items()
    ]
    return sorted(locations, key=_sort_key)
