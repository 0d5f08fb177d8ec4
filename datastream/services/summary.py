from __future__ import annotations

from ..models.temperature_result import TemperatureResult

"""Summary line rendering service.

Format:
SUMMARY location={id} count={n} average={avg} min={min} max={max}

Numbers use two decimals; ``min``/``max`` render as ``-`` when there are no
valid readings. The ``SUMMARY`` label is added by the logger's
formatter when the body is logged through ``log_summary``.
"""


def _fmt(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}"


def render_summary_body(result: TemperatureResult) -> str:
    """Render the key=value part of the SUMMARY line.

    Examples:
        >>> r = TemperatureResult.from_values("LOC001", [15.5, 16.5, 17.5])
        >>> render_summary_body(r)
        'location=LOC001 count=3 average=16.50 min=15.50 max=17.50'
    """
    return (
        f"location={result.monitoring_location_id} "
        f"count={result.count} "
        f"average={result.average:.2f} "
        f"min={_fmt(result.minimum)} "
        f"max={_fmt(result.maximum)}"
    )

