from __future__ import annotations

from dataclasses import dataclass

"""MonitoringLocation model: display entity derived once per location index."""

__all__ = [
    "MonitoringLocation",
]


@dataclass(frozen=True)
class MonitoringLocation:
    id: str
    name: str  # MonitoringLocationName (空なら id)
    display_name: str  # "{name} ({id})"

    @classmethod
    def create(cls, location_id: str, name: str | None = None) -> MonitoringLocation:
        resolved = name or location_id
        return cls(id=location_id, name=resolved, display_name=f"{resolved} ({location_id})")
