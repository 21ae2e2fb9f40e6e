"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile, status

from app.schemas import (
    BatchReport,
    BatchUploadResponse,
    EquipmentRisk,
    ForecastPointModel,
    ProcessingResult,
    ReadingModel,
)
from services.processor import ProcessorService, build_default_processor

router = APIRouter()


def get_processor() -> ProcessorService:
    return build_default_processor()


def _load_report(processor: ProcessorService, batch_id: str) -> BatchReport:
    try:
        result = processor.fetch_result(batch_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    if result.report is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Batch {batch_id!r} has no report (status: {result.status.value}).",
        )
    return result.report


@router.post(
    "/batches",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BatchUploadResponse,
    summary="Upload a CSV batch of equipment readings for asynchronous processing.",
)
async def upload_batch(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="CSV file containing equipment readings."),
    processor: ProcessorService = Depends(get_processor),
) -> BatchUploadResponse:
    try:
        batch_id = processor.enqueue_file(background_tasks, file)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return BatchUploadResponse(batch_id=batch_id)


@router.get(
    "/batches/{batch_id}",
    response_model=ProcessingResult,
    summary="Fetch processing status and the derived report for a batch.",
)
async def get_batch_result(
    batch_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> ProcessingResult:
    try:
        return processor.fetch_result(batch_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.get(
    "/batches/{batch_id}/latest",
    response_model=Dict[str, ReadingModel],
    summary="Most recent reading per equipment id.",
)
async def get_latest_readings(
    batch_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> Dict[str, ReadingModel]:
    return _load_report(processor, batch_id).latest_readings


@router.get(
    "/batches/{batch_id}/alerts",
    response_model=List[ReadingModel],
    summary="Readings flagged for maintenance, in upload order.",
)
async def get_maintenance_alerts(
    batch_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> List[ReadingModel]:
    return _load_report(processor, batch_id).maintenance_alerts


@router.get(
    "/batches/{batch_id}/chart",
    summary="Readings pivoted into one row per timestamp.",
)
async def get_chart_rows(
    batch_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> List[Dict[str, Any]]:
    return _load_report(processor, batch_id).chart_rows


@router.get(
    "/batches/{batch_id}/equipment/{equipment_id}/forecast",
    response_model=List[ForecastPointModel],
    summary="Temperature and vibration forecast for one equipment id.",
)
async def get_forecast(
    batch_id: str,
    equipment_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> List[ForecastPointModel]:
    return _load_report(processor, batch_id).forecasts.get(equipment_id, [])


@router.get(
    "/batches/{batch_id}/equipment/{equipment_id}/forecast-chart",
    summary="Historical readings followed by forecast points for one equipment id.",
)
async def get_forecast_chart(
    batch_id: str,
    equipment_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> List[Dict[str, Any]]:
    return _load_report(processor, batch_id).forecast_chart.get(equipment_id, [])


@router.get(
    "/batches/{batch_id}/equipment/{equipment_id}/risk",
    response_model=EquipmentRisk,
    summary="Maintenance probability score for one equipment id.",
)
async def get_risk(
    batch_id: str,
    equipment_id: str,
    processor: ProcessorService = Depends(get_processor),
) -> EquipmentRisk:
    report = _load_report(processor, batch_id)
    risk = report.risk_scores.get(equipment_id)
    if risk is None:
        return EquipmentRisk(equipment_id=equipment_id, score=0, high_risk=False)
    return risk


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
