"""Reduction of a reading batch into per-equipment state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from models.records import Reading


@dataclass
class BatchSummary:
    """Counts describing a normalized batch."""

    row_count: int = 0
    equipment_ids: List[str] = field(default_factory=list)
    alert_count: int = 0
    alert_equipment_ids: List[str] = field(default_factory=list)
    per_equipment_count: Dict[str, int] = field(default_factory=dict)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def latest_readings(self, readings: Iterable[Reading]) -> Dict[str, Reading]:
        """Keep the reading with the greatest timestamp for each equipment id.

        A newcomer replaces the incumbent when its timestamp is not earlier, so
        of several readings sharing the maximum timestamp the last one in batch
        order is kept. A reading with an unparseable timestamp never replaces
        anything and is only kept while no parseable one has been seen.

        The comparison must stay `>=`. With a strict `>` the first of the tied
        rows would be kept instead, which contradicts the later-row rule.
        """
        latest: Dict[str, Reading] = {}

        for reading in readings:
            if not reading.is_usable:
                continue

            incumbent = latest.get(reading.equipment_id)
            if incumbent is None:
                latest[reading.equipment_id] = reading
                continue

            candidate_ts = reading.parsed_timestamp
            if candidate_ts is None:
                continue
            incumbent_ts = incumbent.parsed_timestamp
            if incumbent_ts is None or candidate_ts >= incumbent_ts:
                latest[reading.equipment_id] = reading

        return latest

    def maintenance_alerts(self, readings: Iterable[Reading]) -> List[Reading]:
        return [
            reading
            for reading in readings
            if reading.is_usable and reading.needs_maintenance
        ]

    def group_by_equipment(self, readings: Iterable[Reading]) -> Dict[str, List[Reading]]:
        """Split a batch into per-equipment series, keeping batch order."""
        series: Dict[str, List[Reading]] = {}
        for reading in readings:
            if not reading.is_usable:
                continue
            series.setdefault(reading.equipment_id, []).append(reading)
        return series

    def summarize(self, readings: Iterable[Reading]) -> BatchSummary:
        summary = BatchSummary()
        alert_ids: Dict[str, None] = {}

        for reading in readings:
            if not reading.is_usable:
                continue
            summary.row_count += 1
            summary.per_equipment_count[reading.equipment_id] = (
                summary.per_equipment_count.get(reading.equipment_id, 0) + 1
            )
            if reading.needs_maintenance:
                summary.alert_count += 1
                alert_ids.setdefault(reading.equipment_id, None)

        summary.equipment_ids = list(summary.per_equipment_count)
        summary.alert_equipment_ids = list(alert_ids)
        return summary
