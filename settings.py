from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_STORE_NAME_ENV = "UPLOAD_STORE_NAME"
_TABLE_NAME_ENV = "RESULTS_TABLE_NAME"
_WORKER_COUNT_ENV = "PROCESSOR_WORKER_COUNT"
_HORIZON_ENV = "FORECAST_HORIZON"
_RISK_THRESHOLD_ENV = "HIGH_RISK_THRESHOLD"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_name: str
    table_name: str
    processor_workers: int
    forecast_horizon: int
    high_risk_threshold: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_threshold(default: int) -> int:
    value = os.getenv(_RISK_THRESHOLD_ENV)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if 0 <= parsed <= 100 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_name=_read_str_env(_STORE_NAME_ENV, "uploads"),
        table_name=_read_str_env(_TABLE_NAME_ENV, "batch_results"),
        processor_workers=_read_positive_int(_WORKER_COUNT_ENV, 4),
        forecast_horizon=_read_positive_int(_HORIZON_ENV, 6),
        high_risk_threshold=_read_threshold(70),
        log_level=_read_log_level("INFO"),
    )
