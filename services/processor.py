"""Background processing orchestration for uploaded reading batches."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import BackgroundTasks, UploadFile

from app.schemas import (
    BatchReport,
    BatchSummary,
    EquipmentRisk,
    ForecastPointModel,
    ProcessingError,
    ProcessingResult,
    ProcessingStatus,
    ReadingModel,
)
from datastore.batch_table import BatchResultTable, build_default_table
from services.aggregator import Aggregator
from services.dashboard import DashboardViews, build_views
from services.errors import BatchInvalid
from services.forecaster import TrendForecaster, forecast_chart_rows
from services.normalizer import normalize_batch
from services.risk import RiskScorer
from services.source import read_csv_rows
from settings import get_settings
from storage.upload_store import UploadStore, build_default_store

logger = logging.getLogger(__name__)

_CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


class ProcessorService:
    """Coordinates upload storage, background processing, and result retrieval."""

    def __init__(
        self,
        store: UploadStore,
        table: BatchResultTable,
        aggregator: Aggregator,
        forecaster: Optional[TrendForecaster] = None,
        scorer: Optional[RiskScorer] = None,
        workers: int = 4,
    ) -> None:
        self.store = store
        self.table = table
        self.aggregator = aggregator
        self.forecaster = forecaster or TrendForecaster()
        self.scorer = scorer or RiskScorer()
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self._futures: Dict[str, Future[None]] = {}
        self._futures_lock = Lock()

    def enqueue_file(self, background_tasks: BackgroundTasks, file: UploadFile) -> str:
        """Store an uploaded CSV and schedule it for processing."""
        filename = Path(file.filename or "upload.csv").name
        content_type = (file.content_type or "").split(";")[0].strip().lower()
        if not filename.lower().endswith(".csv") and content_type not in _CSV_CONTENT_TYPES:
            raise ValueError("Please upload a CSV file.")

        file.file.seek(0)
        contents = file.file.read()
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        if not contents:
            raise ValueError("Uploaded file is empty.")

        batch_id = str(uuid4())
        key = f"{batch_id}/{filename}"
        self.store.put_object(key, contents)

        uploaded_at = datetime.now(timezone.utc)
        self.table.put_item(
            ProcessingResult(
                batch_id=batch_id,
                status=ProcessingStatus.uploaded,
                uploaded_at=uploaded_at,
            )
        )
        logger.info(
            "Accepted batch upload",
            extra={"batch_id": batch_id, "object_key": key, "status": "uploaded"},
        )

        future = self.executor.submit(
            self._process_batch, batch_id=batch_id, key=key, uploaded_at=uploaded_at
        )
        with self._futures_lock:
            self._futures[batch_id] = future
        future.add_done_callback(lambda _f, bid=batch_id: self._clear_future(bid))

        background_tasks.add_task(file.close)
        return batch_id

    def fetch_result(self, batch_id: str) -> ProcessingResult:
        result = self.table.get_item(batch_id)
        if result is None:
            raise KeyError(f"Processing result for batch {batch_id!r} not found.")
        return result

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)

    def build_report(self, views: DashboardViews) -> BatchReport:
        """Convert derived views into the API report, scoring every equipment id."""
        forecasts: Dict[str, List[ForecastPointModel]] = {}
        forecast_chart: Dict[str, List[Dict[str, Any]]] = {}
        risk_scores: Dict[str, EquipmentRisk] = {}
        for equipment_id, series in views.series.items():
            points = self.forecaster.forecast(series)
            forecasts[equipment_id] = [
                ForecastPointModel.model_validate(point) for point in points
            ]
            forecast_chart[equipment_id] = forecast_chart_rows(series, points)
            score = self.scorer.score(views.latest_readings.get(equipment_id))
            risk_scores[equipment_id] = EquipmentRisk(
                equipment_id=equipment_id,
                score=score,
                high_risk=self.scorer.is_high_risk(score),
            )

        summary = self.aggregator.summarize(views.readings)
        return BatchReport(
            summary=BatchSummary(
                row_count=summary.row_count,
                rejected_count=views.rejected_count,
                equipment_ids=summary.equipment_ids,
                alert_equipment_ids=summary.alert_equipment_ids,
            ),
            latest_readings={
                equipment_id: ReadingModel.model_validate(reading)
                for equipment_id, reading in views.latest_readings.items()
            },
            maintenance_alerts=[
                ReadingModel.model_validate(reading) for reading in views.maintenance_alerts
            ],
            chart_rows=[dict(row) for row in views.chart_rows],
            forecasts=forecasts,
            forecast_chart=forecast_chart,
            risk_scores=risk_scores,
        )

    def _clear_future(self, batch_id: str) -> None:
        with self._futures_lock:
            self._futures.pop(batch_id, None)

    def _process_batch(self, batch_id: str, key: str, uploaded_at: datetime) -> None:
        start_time = time.perf_counter()
        context = {"batch_id": batch_id, "object_key": key}
        self.table.put_item(
            ProcessingResult(
                batch_id=batch_id,
                status=ProcessingStatus.processing,
                uploaded_at=uploaded_at,
            )
        )

        errors: List[ProcessingError] = []
        report: Optional[BatchReport] = None

        try:
            with self.store.open_text_object(key) as handle:
                rows = read_csv_rows(handle)

            batch = normalize_batch(rows, context=context)
            errors.extend(
                ProcessingError(row_number=rejected.row_number, reason=rejected.reason)
                for rejected in batch.rejected
            )

            if not batch.readings and batch.rejected:
                status = ProcessingStatus.failed
            else:
                views = build_views(batch.readings, batch.rejected, self.aggregator)
                report = self.build_report(views)
                status = ProcessingStatus.partial if errors else ProcessingStatus.processed
        except BatchInvalid as exc:
            status = ProcessingStatus.failed
            errors = [ProcessingError(row_number=1, reason=str(exc))]
            logger.warning("Rejected batch: %s", exc, extra={**context, "reason": str(exc)})
        except Exception as exc:  # pragma: no cover - defensive catch-all
            status = ProcessingStatus.failed
            errors = [ProcessingError(row_number=1, reason=str(exc))]
            report = None
            logger.exception("Batch processing crashed", extra=context)

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        self.table.put_item(
            ProcessingResult(
                batch_id=batch_id,
                status=status,
                uploaded_at=uploaded_at,
                processed_at=datetime.now(timezone.utc),
                processing_ms=processing_ms,
                report=report,
                errors=errors,
            )
        )
        logger.info(
            "Finished batch",
            extra={
                **context,
                "status": status.value,
                "row_count": report.summary.row_count if report else 0,
                "rejected_count": report.summary.rejected_count if report else None,
                "processing_ms": processing_ms,
            },
        )


@lru_cache
def build_default_processor(
    workers: Optional[int] = None,
) -> ProcessorService:
    """Factory that wires the processor with in-memory stores and settings."""
    settings = get_settings()
    return ProcessorService(
        store=build_default_store(),
        table=build_default_table(),
        aggregator=Aggregator(),
        forecaster=TrendForecaster(horizon=settings.forecast_horizon),
        scorer=RiskScorer(threshold=settings.high_risk_threshold),
        workers=workers or settings.processor_workers,
    )
