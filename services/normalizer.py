"""Normalization of loosely typed input rows into ``Reading`` values."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models.records import Reading, RejectedRow
from services.errors import RowRejected

logger = logging.getLogger(__name__)

_FLOAT_FIELDS = (
    "temperature",
    "vibration_level",
    "pressure",
    "operating_hours",
    "part_health_percentage",
)
_INT_FIELDS = ("days_until_replacement",)
_TEXT_FIELDS = (
    "maintenance_required",
    "part_id",
    "part_name",
    "unit_name",
    "wear_cause",
    "last_maintenance_date",
)


@dataclass
class NormalizedBatch:
    """Readings kept from a batch together with the rows that were dropped."""

    readings: List[Reading] = field(default_factory=list)
    rejected: List[RejectedRow] = field(default_factory=list)


def normalize_headers(row: Mapping[Any, Any]) -> Dict[str, Any]:
    """Return a copy of ``row`` keyed by trimmed, lower-cased header names."""
    normalized: Dict[str, Any] = {}
    for key, value in row.items():
        if not isinstance(key, str):
            continue
        normalized[key.strip().lower()] = value
    return normalized


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value:
            return None
        try:
            parsed = float(value)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        parsed = float(value)
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def _as_int(value: Any) -> Optional[int]:
    parsed = _as_float(value)
    if parsed is None or not parsed.is_integer():
        return None
    return int(parsed)


def normalize_record(row: Mapping[Any, Any]) -> Reading:
    """Coerce one raw row into a ``Reading``.

    Raises ``RowRejected`` when the equipment id or timestamp is empty. Numeric
    fields that do not parse come back as ``None`` rather than zero.
    """
    fields = {key: _clean(value) for key, value in normalize_headers(row).items()}

    equipment_id = _as_text(fields.get("equipment_id")).strip()
    if not equipment_id:
        raise RowRejected("missing equipment_id")

    timestamp = _as_text(fields.get("timestamp")).strip()
    if not timestamp:
        raise RowRejected("missing timestamp")

    values: Dict[str, Any] = {}
    for name in _FLOAT_FIELDS:
        values[name] = _as_float(fields.get(name))
    for name in _INT_FIELDS:
        values[name] = _as_int(fields.get(name))
    for name in _TEXT_FIELDS:
        values[name] = _as_text(fields.get(name))

    return Reading(equipment_id=equipment_id, timestamp=timestamp, **values)


def normalize_batch(
    rows: Iterable[Mapping[Any, Any]],
    start: int = 2,
    context: Optional[Mapping[str, Any]] = None,
) -> NormalizedBatch:
    """Normalize every row, dropping the ones that cannot become readings.

    ``start`` is the row number reported for the first row; the default accounts
    for a header line.
    """
    batch = NormalizedBatch()
    extra = dict(context or {})

    for row_number, row in enumerate(rows, start=start):
        try:
            reading = normalize_record(row)
        except RowRejected as exc:
            batch.rejected.append(RejectedRow(row_number=row_number, reason=exc.reason))
            logger.warning(
                "Skipping row %s: %s",
                row_number,
                exc.reason,
                extra={**extra, "row_number": row_number, "reason": exc.reason},
            )
            continue
        batch.readings.append(reading)

    return batch
