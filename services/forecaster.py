"""Naive linear trend forecasting for a single equipment series."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from models.records import FORECAST_TIMESTAMP_FORMAT, ForecastPoint, Reading

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = 6
DEFAULT_STEP = timedelta(hours=1)
TEMPERATURE_BAND = 2.0


def endpoint_trend(values: Sequence[float]) -> float:
    """Slope per point from the first and last values: ``(last - first) / n``.

    Series shorter than two points have no trend.
    """
    if len(values) < 2:
        return 0.0
    return (values[-1] - values[0]) / len(values)


def _anchor_time(series: Sequence[Reading]) -> Optional[datetime]:
    for reading in reversed(series):
        parsed = reading.parsed_timestamp
        if parsed is not None:
            return parsed
    return None


class TrendForecaster:
    """Projects temperature and vibration forward from a series' end points."""

    def __init__(
        self,
        horizon: int = DEFAULT_HORIZON,
        step: timedelta = DEFAULT_STEP,
        band: float = TEMPERATURE_BAND,
    ) -> None:
        if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon <= 0:
            raise ValueError("horizon must be a positive integer")
        if step <= timedelta(0):
            raise ValueError("step must be a positive duration")
        self.horizon = horizon
        self.step = step
        self.band = band

    def forecast(self, series: Sequence[Reading]) -> List[ForecastPoint]:
        """Forecast ``horizon`` points for one equipment id's readings.

        ``series`` is taken in batch order, not re-sorted. Returns an empty list
        when there is nothing to anchor on.
        """
        if not series:
            return []

        anchor = _anchor_time(series)
        equipment_id = series[-1].equipment_id
        if anchor is None:
            logger.warning(
                "No parseable timestamp to anchor forecast",
                extra={"equipment_id": equipment_id},
            )
            return []

        temperatures = [r.temperature for r in series if r.temperature is not None]
        vibrations = [r.vibration_level for r in series if r.vibration_level is not None]
        temp_trend = endpoint_trend(temperatures)
        vib_trend = endpoint_trend(vibrations)
        last_temp = temperatures[-1] if temperatures else None
        last_vib = vibrations[-1] if vibrations else None

        points: List[ForecastPoint] = []
        moment = anchor
        for step_index in range(1, self.horizon + 1):
            moment = moment + self.step
            predicted_temp = None if last_temp is None else last_temp + temp_trend * step_index
            predicted_vib = None if last_vib is None else last_vib + vib_trend * step_index
            points.append(
                ForecastPoint(
                    equipment_id=equipment_id,
                    timestamp=moment.strftime(FORECAST_TIMESTAMP_FORMAT),
                    predicted_temperature=predicted_temp,
                    predicted_vibration=predicted_vib,
                    upper_bound_temperature=(
                        None if predicted_temp is None else predicted_temp + self.band
                    ),
                    lower_bound_temperature=(
                        None if predicted_temp is None else predicted_temp - self.band
                    ),
                )
            )
        return points


def forecast_chart_rows(
    series: Sequence[Reading], forecast: Sequence[ForecastPoint]
) -> List[Dict[str, Any]]:
    """Historical readings followed by forecast points, shaped for one chart."""
    rows: List[Dict[str, Any]] = [
        {
            "timestamp": reading.timestamp,
            "temperature": reading.temperature,
            "vibration_level": reading.vibration_level,
        }
        for reading in series
    ]
    for point in forecast:
        rows.append(
            {
                "timestamp": point.timestamp,
                "temperature_predicted": point.predicted_temperature,
                "vibration_predicted": point.predicted_vibration,
                "upper_bound_temperature": point.upper_bound_temperature,
                "lower_bound_temperature": point.lower_bound_temperature,
            }
        )
    return rows
