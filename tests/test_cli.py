from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import DEFAULT_BASE_URL, load_config

CSV_CONTENT = """equipment_id,timestamp,temperature,vibration_level,maintenance_required,part_health_percentage,days_until_replacement
EQ1,2024-01-01 00:00:00,70,1.0,No,90,300
EQ2,2024-01-01 00:00:00,60,0.5,Yes,40,30
EQ1,2024-01-01 01:00:00,80,2.0,No,80,200
"""


class StubClient:
    def __init__(self, config, upload_response: str = "batch-123") -> None:
        self.config = config
        self.upload_response = upload_response
        self.uploaded_path: Path | None = None
        self.poll_calls: List[tuple[str, float, float]] = []
        self.result_payload: Dict[str, Any] = {
            "batch_id": upload_response,
            "status": "processed",
            "uploaded_at": "2024-01-01T00:00:00Z",
            "processed_at": "2024-01-01T00:00:01Z",
            "processing_ms": 123,
            "report": {
                "summary": {
                    "row_count": 2,
                    "rejected_count": 0,
                    "equipment_ids": ["EQ1", "EQ2"],
                    "alert_equipment_ids": ["EQ2"],
                },
                "maintenance_alerts": [
                    {
                        "equipment_id": "EQ2",
                        "timestamp": "2024-01-01 00:00:00",
                        "part_name": "Seal",
                        "part_health_percentage": 40.0,
                        "days_until_replacement": 30,
                    }
                ],
                "risk_scores": {
                    "EQ1": {"equipment_id": "EQ1", "score": 30, "high_risk": False},
                    "EQ2": {"equipment_id": "EQ2", "score": 73, "high_risk": True},
                },
                "forecasts": {},
            },
            "errors": [],
        }
        self.closed = False

    def upload_file(self, path: Path) -> str:
        self.uploaded_path = path
        return self.upload_response

    def poll_result(self, batch_id: str, interval: float, timeout: float) -> Dict[str, Any]:
        self.poll_calls.append((batch_id, interval, timeout))
        return self.result_payload

    def get_result(self, batch_id: str) -> Dict[str, Any]:
        payload = self.result_payload.copy()
        payload["batch_id"] = batch_id
        return payload

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def csv_path(tmp_path) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(CSV_CONTENT)
    return path


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_upload_without_wait(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["upload", str(csv_path)])

    assert result.exit_code == 0
    assert "Upload accepted. batch_id=batch-123" in result.stdout
    assert stub.uploaded_path == csv_path
    assert not stub.poll_calls
    assert stub.closed is True


def test_upload_with_wait(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["upload", str(csv_path), "--wait", "--poll-interval", "0.1", "--timeout", "5"])

    assert result.exit_code == 0
    assert "Processing Result" in result.stdout
    assert "EQ2: 73%  HIGH RISK" in result.stdout
    assert stub.poll_calls == [("batch-123", 0.1, 5.0)]
    assert stub.closed is True


def test_result_command(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["result", "batch-999"])

    assert result.exit_code == 0
    assert "batch_id: batch-999" in result.stdout
    assert "Maintenance Alerts" in result.stdout
    assert "EQ2 Seal @ 2024-01-01 00:00:00" in result.stdout
    assert stub.closed is True


def test_base_url_option_reaches_client(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    runner.invoke(app, ["--base-url", "http://monitor:9000/", "result", "b"])

    assert stub.config.base_url == "http://monitor:9000"


def test_analyze_runs_locally(monkeypatch, runner: CliRunner, csv_path: Path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))

    result = runner.invoke(app, ["analyze", str(csv_path), "--horizon", "2"])

    assert result.exit_code == 0
    assert "row_count: 3" in result.stdout
    assert "EQ2: 73%  HIGH RISK" in result.stdout
    assert "EQ1: 30%" in result.stdout
    assert "2024-01-01 02:00:00  temp 85.0 [83.0, 87.0]  vib 2.50" in result.stdout
    assert "2024-01-01 04:00:00" not in result.stdout


def test_analyze_reports_invalid_batch(monkeypatch, runner: CliRunner, tmp_path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    path = tmp_path / "broken.csv"
    path.write_text("equipment_id,timestamp\nEQ1,2024-01-01,extra\n")

    result = runner.invoke(app, ["analyze", str(path)])

    assert result.exit_code == 1
    assert "Could not load" in result.output


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example:8080/")
    monkeypatch.setenv("CLI_POLL_INTERVAL", "2")
    monkeypatch.setenv("CLI_POLL_TIMEOUT", "-1")

    config = load_config()

    assert config.base_url == "http://example:8080"
    assert config.poll_interval == 2.0
    assert config.poll_timeout == 60.0


def test_load_config_defaults(monkeypatch) -> None:
    monkeypatch.delenv("API_BASE_URL", raising=False)

    assert load_config().base_url == DEFAULT_BASE_URL
