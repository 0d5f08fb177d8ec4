from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Any

"""TemperatureResult model.

Holds the descriptive statistics of one location's water-temperature
readings. Created fresh for each aggregation request and never cached.
"""

__all__ = [
    "TemperatureResult",
]


@dataclass(frozen=True)
class TemperatureResult:
    """Aggregate of the valid temperature readings for one monitoring location.

    Attributes:
        monitoring_location_id: Location the readings belong to
        average: Arithmetic mean of ``valid_values`` (0.0 when there are none)
        count: Number of valid readings
        valid_values: Parsed finite readings in encounter order
    """
    monitoring_location_id: str
    average: float
    count: int
    valid_values: list[float] = field(default_factory=list)

    @classmethod
    def from_values(cls, monitoring_location_id: str, values: list[float]) -> TemperatureResult:
        average = statistics.mean(values) if values else 0.0
        return cls(
            monitoring_location_id=monitoring_location_id,
            average=average,
            count=len(values),
            valid_values=list(values),
        )

    @property
    def minimum(self) -> float | None:
        return min(self.valid_values) if self.valid_values else None

    @property
    def maximum(self) -> float | None:
        return max(self.valid_values) if self.valid_values else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "monitoringLocationId": self.monitoring_location_id,
            "average": self.average,
            "count": self.count,
            "min": self.minimum,
            "max": self.maximum,
            "validValues": list(self.valid_values),
        }
