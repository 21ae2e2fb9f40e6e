from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional

import typer

from services.dashboard import EquipmentDashboard


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float], digits: int = 1) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def _echo_alerts(alerts: List[Dict[str, Any]]) -> None:
    typer.echo()
    echo_heading("Maintenance Alerts")
    if not alerts:
        typer.echo("No maintenance required.")
        return
    for alert in alerts:
        typer.echo(
            f"  - {alert.get('equipment_id')} {alert.get('part_name') or ''} @ {alert.get('timestamp')}: "
            f"health {alert.get('part_health_percentage')}%, "
            f"days until replacement {alert.get('days_until_replacement')}"
        )


def _echo_risk(risk_scores: Dict[str, Dict[str, Any]]) -> None:
    typer.echo()
    echo_heading("Maintenance Probability")
    if not risk_scores:
        typer.echo("No equipment in batch.")
        return
    for equipment_id, risk in risk_scores.items():
        marker = "  HIGH RISK" if risk.get("high_risk") else ""
        typer.echo(f"  - {equipment_id}: {risk.get('score')}%{marker}")


def _echo_forecasts(forecasts: Dict[str, List[Dict[str, Any]]]) -> None:
    typer.echo()
    echo_heading("Forecast")
    if not forecasts:
        typer.echo("No forecasts available.")
        return
    for equipment_id, points in forecasts.items():
        typer.echo(f"{equipment_id}:")
        for point in points:
            typer.echo(
                f"  {point.get('timestamp')}  temp {_fmt(point.get('predicted_temperature'))} "
                f"[{_fmt(point.get('lower_bound_temperature'))}, {_fmt(point.get('upper_bound_temperature'))}]  "
                f"vib {_fmt(point.get('predicted_vibration'), 2)}"
            )


def render_result(payload: Dict[str, Any]) -> None:
    echo_heading("Processing Result")
    echo_key_values(
        [
            ("batch_id", payload.get("batch_id")),
            ("status", payload.get("status")),
            ("uploaded_at", payload.get("uploaded_at")),
            ("processed_at", payload.get("processed_at")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    report = payload.get("report") or {}
    typer.echo()
    echo_heading("Summary")
    if report:
        summary = report.get("summary") or {}
        echo_key_values(
            [
                ("row_count", summary.get("row_count")),
                ("rejected_count", summary.get("rejected_count")),
                ("equipment_ids", ", ".join(summary.get("equipment_ids") or [])),
            ]
        )
        _echo_alerts(report.get("maintenance_alerts") or [])
        _echo_risk(report.get("risk_scores") or {})
        _echo_forecasts(report.get("forecasts") or {})
    else:
        typer.echo("No report available.")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No errors recorded.")


def render_dashboard(dashboard: EquipmentDashboard) -> None:
    """Print the views of a locally loaded batch."""
    views = dashboard.views
    echo_heading("Summary")
    echo_key_values(
        [
            ("row_count", len(views.readings)),
            ("rejected_count", views.rejected_count),
            ("equipment_ids", ", ".join(views.equipment_ids)),
        ]
    )

    typer.echo()
    echo_heading("Latest Readings")
    for equipment_id, reading in dashboard.latest_readings.items():
        status = "Maintenance Required" if reading.needs_maintenance else "Normal"
        typer.echo(
            f"  - {equipment_id} @ {reading.timestamp}: temp {_fmt(reading.temperature)}, "
            f"vib {_fmt(reading.vibration_level, 2)}, pressure {_fmt(reading.pressure)}, "
            f"status {status}"
        )

    _echo_alerts([asdict(alert) for alert in dashboard.maintenance_alerts])
    _echo_risk(
        {
            equipment_id: {
                "score": dashboard.risk_score(equipment_id),
                "high_risk": dashboard.is_high_risk(equipment_id),
            }
            for equipment_id in views.equipment_ids
        }
    )
    _echo_forecasts(
        {
            equipment_id: [asdict(point) for point in dashboard.forecast(equipment_id)]
            for equipment_id in views.equipment_ids
        }
    )
