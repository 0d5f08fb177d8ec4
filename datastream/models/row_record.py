from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

"""RowRecord model for the DataStream CSV summariser.

A RowRecord is one decoded CSV data line after normalisation. The three
columns every DataStream export must carry are promoted to typed fields; all
other columns are kept verbatim in ``extras`` so unknown columns pass through.

``None`` on a required field means the column was absent from that row
(short row), which is different from an empty cell (``""``).
"""

__all__ = [
    "LOCATION_ID",
    "CHARACTERISTIC_NAME",
    "RESULT_VALUE",
    "LOCATION_NAME",
    "REQUIRED_COLUMNS",
    "RowRecord",
]

LOCATION_ID = "MonitoringLocationID"
CHARACTERISTIC_NAME = "CharacteristicName"
RESULT_VALUE = "ResultValue"
LOCATION_NAME = "MonitoringLocationName"

REQUIRED_COLUMNS: tuple[str, ...] = (LOCATION_ID, CHARACTERISTIC_NAME, RESULT_VALUE)

_FIELD_BY_COLUMN = {
    LOCATION_ID: "monitoring_location_id",
    CHARACTERISTIC_NAME: "characteristic_name",
    RESULT_VALUE: "result_value",
}


@dataclass(frozen=True)
class RowRecord:
    """Normalised CSV row: known fields + extension map."""
    monitoring_location_id: str | None
    characteristic_name: str | None
    result_value: str | None
    extras: dict[str, str] = field(default_factory=dict)  # 未知列 (列名 -> 値, 出現順)

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | None]) -> RowRecord:
        """Build a record from a column -> value mapping.

        Keys mapped to ``None`` are treated as absent and are not stored.
        """
        extras = {
            key: value
            for key, value in values.items()
            if key not in _FIELD_BY_COLUMN and value is not None
        }
        return cls(
            monitoring_location_id=values.get(LOCATION_ID),
            characteristic_name=values.get(CHARACTERISTIC_NAME),
            result_value=values.get(RESULT_VALUE),
            extras=extras,
        )

    @property
    def monitoring_location_name(self) -> str | None:
        return self.extras.get(LOCATION_NAME)

    def get(self, key: str, default: str | None = None) -> str | None:
        if key in _FIELD_BY_COLUMN:
            value = getattr(self, _FIELD_BY_COLUMN[key])
            return default if value is None else value
        return self.extras.get(key, default)

    def has(self, key: str) -> bool:
        """True if the column was present in the row (even with an empty value)."""
        return self.get(key) is not None

    def keys(self) -> Iterator[str]:
        for column in REQUIRED_COLUMNS:
            if self.has(column):
                yield column
        yield from self.extras

    def to_dict(self) -> dict[str, str]:
        return {key: self.get(key) for key in self.keys()}  # type: ignore[misc]
