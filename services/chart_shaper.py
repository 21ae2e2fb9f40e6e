"""Pivot of a reading batch into a time-indexed wide table."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from models.records import Reading

TEMPERATURE_PREFIX = "temp_"
VIBRATION_PREFIX = "vib_"


def temperature_key(equipment_id: str) -> str:
    return f"{TEMPERATURE_PREFIX}{equipment_id}"


def vibration_key(equipment_id: str) -> str:
    return f"{VIBRATION_PREFIX}{equipment_id}"


def chart_rows(readings: Iterable[Reading]) -> List[Dict[str, Any]]:
    """One row per distinct timestamp string, in order of first appearance.

    Timestamps are grouped by exact text, not by parsed time. Equipment absent
    at a timestamp has no columns in that row.
    """
    rows: Dict[str, Dict[str, Any]] = {}
    for reading in readings:
        if not reading.is_usable:
            continue
        row = rows.setdefault(reading.timestamp, {"timestamp": reading.timestamp})
        row[temperature_key(reading.equipment_id)] = reading.temperature
        row[vibration_key(reading.equipment_id)] = reading.vibration_level
    return list(rows.values())
