"""Read-only views over the most recently loaded reading batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from models.records import ForecastPoint, Reading, RejectedRow
from services.aggregator import Aggregator
from services.chart_shaper import chart_rows
from services.forecaster import TrendForecaster
from services.normalizer import normalize_batch
from services.risk import RiskScorer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardViews:
    """Everything derived from one batch. Rebuilt, never mutated, on reload."""

    readings: Tuple[Reading, ...] = ()
    rejected: Tuple[RejectedRow, ...] = ()
    latest_readings: Mapping[str, Reading] = field(default_factory=dict)
    maintenance_alerts: Tuple[Reading, ...] = ()
    chart_rows: Tuple[Dict[str, Any], ...] = ()
    series: Mapping[str, Tuple[Reading, ...]] = field(default_factory=dict)

    @property
    def equipment_ids(self) -> List[str]:
        return list(self.series)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)


def build_views(
    readings: Iterable[Reading],
    rejected: Iterable[RejectedRow] = (),
    aggregator: Optional[Aggregator] = None,
) -> DashboardViews:
    aggregator = aggregator or Aggregator()
    batch = tuple(readings)
    return DashboardViews(
        readings=batch,
        rejected=tuple(rejected),
        latest_readings=aggregator.latest_readings(batch),
        maintenance_alerts=tuple(aggregator.maintenance_alerts(batch)),
        chart_rows=tuple(chart_rows(batch)),
        series={
            equipment_id: tuple(items)
            for equipment_id, items in aggregator.group_by_equipment(batch).items()
        },
    )


class EquipmentDashboard:
    """Holds the current batch's views and answers per-equipment queries."""

    def __init__(
        self,
        aggregator: Optional[Aggregator] = None,
        forecaster: Optional[TrendForecaster] = None,
        scorer: Optional[RiskScorer] = None,
    ) -> None:
        self.aggregator = aggregator or Aggregator()
        self.forecaster = forecaster or TrendForecaster()
        self.scorer = scorer or RiskScorer()
        self._views = DashboardViews()
        self._lock = Lock()

    @property
    def views(self) -> DashboardViews:
        with self._lock:
            return self._views

    def load(self, rows: Iterable[Mapping[Any, Any]]) -> DashboardViews:
        """Normalize raw rows and replace the current views.

        Rows are materialized before anything is derived, so an exception raised
        by the row source leaves the previous views in place.
        """
        materialized = list(rows)
        batch = normalize_batch(materialized)
        views = build_views(batch.readings, batch.rejected, self.aggregator)
        with self._lock:
            self._views = views
        logger.info(
            "Loaded reading batch",
            extra={"row_count": len(views.readings), "rejected_count": views.rejected_count},
        )
        return views

    @property
    def latest_readings(self) -> Dict[str, Reading]:
        return dict(self.views.latest_readings)

    @property
    def maintenance_alerts(self) -> List[Reading]:
        return list(self.views.maintenance_alerts)

    @property
    def chart_rows(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.views.chart_rows]

    def forecast(self, equipment_id: str) -> List[ForecastPoint]:
        return self.forecaster.forecast(self.views.series.get(equipment_id, ()))

    def risk_score(self, equipment_id: str) -> int:
        return self.scorer.score(self.views.latest_readings.get(equipment_id))

    def is_high_risk(self, equipment_id: str) -> bool:
        return self.scorer.is_high_risk(self.risk_score(equipment_id))
