from __future__ import annotations

from typing import Iterator

import pytest

from services.dashboard import EquipmentDashboard
from services.errors import BatchInvalid
from services.forecaster import TrendForecaster


def _rows() -> list[dict]:
    return [
        {
            "equipment_id": "EQ1",
            "timestamp": "2024-01-01 00:00:00",
            "temperature": "70",
            "vibration_level": "1.0",
            "maintenance_required": "No",
            "part_health_percentage": "90",
            "days_until_replacement": "300",
        },
        {
            "equipment_id": "EQ2",
            "timestamp": "2024-01-01 00:00:00",
            "temperature": "60",
            "vibration_level": "0.5",
            "maintenance_required": "Yes",
            "part_health_percentage": "40",
            "days_until_replacement": "30",
        },
        {
            "equipment_id": "",
            "timestamp": "2024-01-01 00:30:00",
            "temperature": "99",
        },
        {
            "equipment_id": "EQ1",
            "timestamp": "2024-01-01 01:00:00",
            "temperature": "80",
            "vibration_level": "2.0",
            "maintenance_required": "Yes",
            "part_health_percentage": "80",
            "days_until_replacement": "200",
        },
    ]


@pytest.fixture()
def dashboard() -> EquipmentDashboard:
    board = EquipmentDashboard()
    board.load(_rows())
    return board


def test_load_builds_all_views(dashboard: EquipmentDashboard) -> None:
    views = dashboard.views

    assert len(views.readings) == 3
    assert views.rejected_count == 1
    assert views.equipment_ids == ["EQ1", "EQ2"]
    assert dashboard.latest_readings["EQ1"].temperature == 80.0
    assert [a.equipment_id for a in dashboard.maintenance_alerts] == ["EQ2", "EQ1"]
    assert [row["timestamp"] for row in dashboard.chart_rows] == [
        "2024-01-01 00:00:00",
        "2024-01-01 01:00:00",
    ]


def test_forecast_and_risk_per_equipment(dashboard: EquipmentDashboard) -> None:
    forecast = dashboard.forecast("EQ1")

    assert len(forecast) == 6
    assert forecast[0].predicted_temperature == 85.0
    assert dashboard.risk_score("EQ2") == 73
    assert dashboard.is_high_risk("EQ2") is True
    assert dashboard.is_high_risk("EQ1") is False


def test_unknown_equipment_gets_defaults(dashboard: EquipmentDashboard) -> None:
    assert dashboard.forecast("missing") == []
    assert dashboard.risk_score("missing") == 0


def test_views_are_replaced_not_mutated(dashboard: EquipmentDashboard) -> None:
    before = dashboard.views

    dashboard.load(_rows()[:1])

    assert dashboard.views is not before
    assert len(before.readings) == 3
    assert list(dashboard.latest_readings) == ["EQ1"]


def test_returned_collections_are_copies(dashboard: EquipmentDashboard) -> None:
    dashboard.latest_readings.clear()
    dashboard.chart_rows[0]["timestamp"] = "changed"

    assert "EQ1" in dashboard.latest_readings
    assert dashboard.chart_rows[0]["timestamp"] == "2024-01-01 00:00:00"


def test_failed_load_leaves_previous_views(dashboard: EquipmentDashboard) -> None:
    before = dashboard.views

    def broken_source() -> Iterator[dict]:
        yield _rows()[0]
        raise BatchInvalid("Row 3 has more fields than the header (2).")

    with pytest.raises(BatchInvalid):
        dashboard.load(broken_source())

    assert dashboard.views is before


def test_custom_horizon() -> None:
    board = EquipmentDashboard(forecaster=TrendForecaster(horizon=2))
    board.load(_rows())

    assert len(board.forecast("EQ2")) == 2
