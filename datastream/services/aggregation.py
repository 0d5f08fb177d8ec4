from __future__ import annotations

import math
import re

from ..models.dataset_state import LocationIndex
from ..models.temperature_result import TemperatureResult

"""Temperature aggregation service.

Computes the descriptive statistics of one location's water-temperature
readings from the location index: one dict lookup plus a scan of that
location's group only.
"""

__all__ = [
    "WATER_TEMPERATURE",
    "parse_result_value",
    "aggregate",
]

WATER_TEMPERATURE = "Temperature, water"

# 符号・小数点・指数表記のみ許可 (float() が受け付ける "1_000" や "inf" は除外)
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_result_value(text: str | None) -> float | None:
    """Parse a ResultValue as a finite float.

    Returns:
        The parsed value, or None for absent, malformed or non-finite input
    """
    if text is None:
        return None
    candidate = text.strip()
    if not _DECIMAL_RE.fullmatch(candidate):
        return None
    value = float(candidate)
    # "1e999" などのオーバーフローは inf になる
    if not math.isfinite(value):
        return None
    return value


def aggregate(
    index: LocationIndex, location_id: str, *, characteristic: str = WATER_TEMPERATURE
) -> TemperatureResult:
    """Aggregate the temperature readings of one monitoring location.

    An unknown location yields an empty result (count 0, average 0.0).
    Readings whose CharacteristicName is not exactly ``characteristic`` are
    ignored, as are values that do not parse to a finite number.
    """
    values: list[float] = []
    for record in index.get(location_id, []):
        if record.characteristic_name != characteristic:
            continue
        value = parse_result_value(record.result_value)
        if value is not None:
            values.append(value)
    return TemperatureResult.from_values(location_id, values)
