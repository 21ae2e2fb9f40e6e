"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessingStatus(str, Enum):
    """Processing lifecycle states exposed via the API."""

    uploaded = "uploaded"
    processing = "processing"
    processed = "processed"
    partial = "partial"
    failed = "failed"


class BatchUploadResponse(BaseModel):
    """Immediate response payload after accepting a batch upload."""

    batch_id: str = Field(..., description="Generated identifier for the uploaded batch.")


class ReadingModel(BaseModel):
    """A normalized equipment reading; missing numeric values are null."""

    model_config = ConfigDict(from_attributes=True)

    equipment_id: str
    timestamp: str
    temperature: Optional[float] = None
    vibration_level: Optional[float] = None
    pressure: Optional[float] = None
    operating_hours: Optional[float] = None
    maintenance_required: str = ""
    part_id: str = ""
    part_name: str = ""
    unit_name: str = ""
    wear_cause: str = ""
    part_health_percentage: Optional[float] = None
    days_until_replacement: Optional[int] = None
    last_maintenance_date: str = ""


class ForecastPointModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    equipment_id: str
    timestamp: str
    predicted_temperature: Optional[float] = None
    predicted_vibration: Optional[float] = None
    upper_bound_temperature: Optional[float] = None
    lower_bound_temperature: Optional[float] = None


class EquipmentRisk(BaseModel):
    """Maintenance probability for one equipment id."""

    equipment_id: str
    score: int = Field(..., description="Normally 0-100; overdue parts may exceed 100.")
    high_risk: bool


class BatchSummary(BaseModel):
    row_count: int = Field(..., ge=0)
    rejected_count: int = Field(0, ge=0)
    equipment_ids: List[str] = Field(default_factory=list)
    alert_equipment_ids: List[str] = Field(default_factory=list)


class BatchReport(BaseModel):
    """Views derived from one processed batch."""

    summary: BatchSummary
    latest_readings: Dict[str, ReadingModel] = Field(default_factory=dict)
    maintenance_alerts: List[ReadingModel] = Field(default_factory=list)
    chart_rows: List[Dict[str, Any]] = Field(default_factory=list)
    forecasts: Dict[str, List[ForecastPointModel]] = Field(default_factory=dict)
    forecast_chart: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    risk_scores: Dict[str, EquipmentRisk] = Field(default_factory=dict)


class ProcessingError(BaseModel):
    """Details about a row that was skipped, or about a batch that failed."""

    row_number: int = Field(..., ge=1)
    reason: str


class ProcessingResult(BaseModel):
    """Full record representing a processed batch."""

    batch_id: str
    status: ProcessingStatus
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    report: Optional[BatchReport] = None
    errors: List[ProcessingError] = Field(default_factory=list)
