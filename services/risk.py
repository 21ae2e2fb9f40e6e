"""Maintenance-probability scoring from part health and replacement horizon."""

from __future__ import annotations

import logging
import math
from typing import Optional

from models.records import Reading

logger = logging.getLogger(__name__)

HEALTH_WEIGHT = 0.6
TIME_WEIGHT = 0.4
REPLACEMENT_HORIZON_DAYS = 365
HIGH_RISK_THRESHOLD = 70


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_high_risk(score: int, threshold: int = HIGH_RISK_THRESHOLD) -> bool:
    return score > threshold


class RiskScorer:
    """Scores the latest reading of one equipment id.

    ``time_factor`` is floored at zero but has no ceiling, so overdue parts
    (negative ``days_until_replacement``) can score above 100.
    """

    def __init__(self, threshold: int = HIGH_RISK_THRESHOLD) -> None:
        self.threshold = threshold

    def score(self, reading: Optional[Reading]) -> int:
        if reading is None:
            return 0

        health = reading.part_health_percentage
        days = reading.days_until_replacement
        if health is None or days is None:
            logger.warning(
                "Latest reading lacks health or replacement data; scoring 0",
                extra={"equipment_id": reading.equipment_id},
            )
            return 0

        health_factor = (100 - health) / 100
        time_factor = max(
            0.0, (REPLACEMENT_HORIZON_DAYS - days) / REPLACEMENT_HORIZON_DAYS
        )
        return _round_half_up(
            (health_factor * HEALTH_WEIGHT + time_factor * TIME_WEIGHT) * 100
        )

    def is_high_risk(self, score: int) -> bool:
        return is_high_risk(score, self.threshold)
