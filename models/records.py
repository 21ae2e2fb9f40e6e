"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

MAINTENANCE_FLAG = "Yes"
FORECAST_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-style timestamp into an aware UTC datetime.

    Returns ``None`` for empty or unparseable text. Naive values are read as UTC.
    """
    candidate = value.strip()
    if not candidate:
        return None

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class Reading:
    """A single equipment sensor reading taken from one input row."""

    equipment_id: str
    timestamp: str
    temperature: Optional[float] = None
    vibration_level: Optional[float] = None
    pressure: Optional[float] = None
    operating_hours: Optional[float] = None
    maintenance_required: str = ""
    part_id: str = ""
    part_name: str = ""
    unit_name: str = ""
    wear_cause: str = ""
    part_health_percentage: Optional[float] = None
    days_until_replacement: Optional[int] = None
    last_maintenance_date: str = ""

    @property
    def parsed_timestamp(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)

    @property
    def needs_maintenance(self) -> bool:
        return self.maintenance_required == MAINTENANCE_FLAG

    @property
    def is_usable(self) -> bool:
        """Whether the reading may take part in aggregates at all."""
        return bool(self.equipment_id) and bool(self.timestamp)


@dataclass(frozen=True, slots=True)
class ForecastPoint:
    """One projected step of a per-equipment trend forecast."""

    equipment_id: str
    timestamp: str
    predicted_temperature: Optional[float]
    predicted_vibration: Optional[float]
    upper_bound_temperature: Optional[float]
    lower_bound_temperature: Optional[float]


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """An input row dropped during normalization."""

    row_number: int
    reason: str
