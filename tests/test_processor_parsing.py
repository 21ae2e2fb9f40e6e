from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.schemas import ProcessingStatus
from datastore.batch_table import BatchResultTable
from services.aggregator import Aggregator
from services.processor import ProcessorService
from storage.upload_store import UploadStore

HEADER = (
    " Equipment_ID ,Timestamp,Temperature,vibration_level,pressure,operating_hours,"
    "Maintenance_Required,part_id,part_name,unit_name,wear_cause,"
    "part_health_percentage,days_until_replacement,last_maintenance_date\n"
)


@pytest.fixture()
def processor() -> ProcessorService:
    service = ProcessorService(
        store=UploadStore("test-store"),
        table=BatchResultTable("test-table"),
        aggregator=Aggregator(),
        workers=1,
    )
    yield service
    service.shutdown()


def _process(processor: ProcessorService, batch_id: str, contents: str) -> None:
    key = f"{batch_id}/data.csv"
    processor.store.put_object(key, contents.encode("utf-8"))
    processor._process_batch(  # type: ignore[attr-defined]
        batch_id=batch_id,
        key=key,
        uploaded_at=datetime.now(timezone.utc),
    )


def test_process_batch_success(processor: ProcessorService) -> None:
    csv_body = HEADER + (
        "EQ1,2024-01-01 00:00:00,70,1.0,100,1000,No,P1,Bearing,Pump,Friction,90,300,2023-12-01\n"
        " EQ2 ,2024-01-01 00:00:00,60,0.5,90,500, Yes ,P2,Seal,Fan,Heat,40,30,2023-11-01\n"
        "EQ1,2024-01-01 01:00:00,80,2.0,101,1001,No,P1,Bearing,Pump,Friction,89,299,2023-12-01\n"
    )
    _process(processor, "success", csv_body)

    result = processor.fetch_result("success")
    assert result.status is ProcessingStatus.processed
    assert result.errors == []
    report = result.report
    assert report is not None
    assert report.summary.row_count == 3
    assert report.summary.equipment_ids == ["EQ1", "EQ2"]
    assert report.summary.alert_equipment_ids == ["EQ2"]
    assert report.latest_readings["EQ1"].timestamp == "2024-01-01 01:00:00"
    assert [alert.equipment_id for alert in report.maintenance_alerts] == ["EQ2"]
    assert len(report.chart_rows) == 2
    assert report.chart_rows[0]["temp_EQ2"] == 60.0

    forecast = report.forecasts["EQ1"]
    assert len(forecast) == 6
    assert forecast[0].predicted_temperature == 85.0
    assert forecast[-1].predicted_temperature == 110.0
    assert report.risk_scores["EQ2"].score == 73
    assert report.risk_scores["EQ2"].high_risk is True


def test_process_batch_partial_with_row_errors(processor: ProcessorService) -> None:
    csv_body = HEADER + (
        "EQ1,2024-01-01 00:00:00,70,1.0,100,1000,No,P1,Bearing,Pump,Friction,90,300,2023-12-01\n"
        " ,2024-01-01 01:00:00,70,1.0,100,1000,No,P1,Bearing,Pump,Friction,90,300,2023-12-01\n"
        "EQ2,,70,1.0,100,1000,No,P1,Bearing,Pump,Friction,90,300,2023-12-01\n"
        "EQ3,2024-01-01 02:00:00,hot,,100,1000,No,P1,Bearing,Pump,Friction,90,300,2023-12-01\n"
    )
    _process(processor, "partial", csv_body)

    result = processor.fetch_result("partial")
    assert result.status is ProcessingStatus.partial
    assert result.report is not None
    assert result.report.summary.row_count == 2
    assert result.report.summary.rejected_count == 2
    assert result.report.latest_readings["EQ3"].temperature is None

    assert [(e.row_number, e.reason) for e in result.errors] == [
        (3, "missing equipment_id"),
        (4, "missing timestamp"),
    ]


def test_process_batch_all_rows_rejected_fails(processor: ProcessorService) -> None:
    csv_body = "sensor,timestamp\nEQ1,2024-01-01 00:00:00\n"
    _process(processor, "no-ids", csv_body)

    result = processor.fetch_result("no-ids")
    assert result.status is ProcessingStatus.failed
    assert result.report is None
    assert [e.reason for e in result.errors] == ["missing equipment_id"]


def test_process_batch_malformed_structure_fails_whole_batch(processor: ProcessorService) -> None:
    csv_body = (
        "equipment_id,timestamp,temperature\n"
        "EQ1,2024-01-01 00:00:00,70\n"
        "EQ1,2024-01-01 01:00:00,71,extra\n"
    )
    _process(processor, "ragged", csv_body)

    result = processor.fetch_result("ragged")
    assert result.status is ProcessingStatus.failed
    assert result.report is None
    assert len(result.errors) == 1
    assert "more fields" in result.errors[0].reason


def test_process_batch_header_only_is_processed_and_empty(processor: ProcessorService) -> None:
    _process(processor, "header-only", HEADER)

    result = processor.fetch_result("header-only")
    assert result.status is ProcessingStatus.processed
    assert result.report is not None
    assert result.report.summary.row_count == 0
    assert result.report.latest_readings == {}
    assert result.report.forecasts == {}
