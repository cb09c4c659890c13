"""
End-to-end batches against a DuckDB file.

Seeds the clean operational population into a real database, then drives
the orchestrator and the ``run`` command over it.
"""

import json
from typing import Dict, List

import pytest
from typer.testing import CliRunner

from resilience_cli.main import app
from resilience_orchestrator.execution import RunStatus, ValidationOrchestrator
from resilience_orchestrator.integrations import DuckDBRepository
from resilience_orchestrator.reports import AuditTrailStore
from tests.fixtures.datasets import build_clean_tables

REPOSITORY_IDS = [
    "kri-logs-integrity",
    "vendor-alerts-integrity",
    "cross-table-consistency",
    "mock-data-scan",
    "completeness-audit",
    "temporal-consistency",
    "business-rules",
    "data-volume",
    "vendor-compliance-score",
    "breach-realtime-db",
]


def _column_type(values: List[object]) -> str:
    present = [v for v in values if v is not None]
    if present and all(isinstance(v, int) and not isinstance(v, bool) for v in present):
        return "BIGINT"
    if present and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in present):
        return "DOUBLE"
    return "VARCHAR"


def seed_database(repository: DuckDBRepository, tables: Dict[str, List[dict]]) -> None:
    for table, rows in tables.items():
        columns: Dict[str, List[object]] = {}
        for row in rows:
            for name, value in row.items():
                columns.setdefault(name, []).append(value)
        repository.create_table(table, {name: _column_type(values) for name, values in columns.items()})
        for row in rows:
            repository.insert(table, row)


@pytest.fixture
def database(tmp_path):
    path = tmp_path / "resilience.duckdb"
    repository = DuckDBRepository(path)
    seed_database(repository, build_clean_tables())
    repository.close()
    return path


def test_orchestrator_batch_over_duckdb(database, fast_config, batch_logger):
    fast_config.execution.timeouts.generic = 10.0
    fast_config.execution.timeouts.alerting = 10.0
    repository = DuckDBRepository(database)
    try:
        before = repository.count("kri_logs")
        summary = ValidationOrchestrator(repository, fast_config, logger=batch_logger).run(REPOSITORY_IDS)

        assert [r.validation_id for r in summary.records] == REPOSITORY_IDS
        assert {r.validation_id: r.status for r in summary.records} == {
            vid: RunStatus.PASSED for vid in REPOSITORY_IDS
        }
        assert repository.count("kri_logs") == before
        assert summary.critical_success_indicators["zero_mock_data"]
    finally:
        repository.close()


def test_seeded_controls_fail_mock_scan(database, fast_config, batch_logger):
    repository = DuckDBRepository(database)
    try:
        for i in range(30):
            repository.delete("controls", f"ctl-{i:03d}")
        for i in range(100):
            repository.insert("controls", {
                "org_id": "org-1",
                "title": f"Test control {i}",
                "status": "effective",
                "owner": "Sample Owner",
            })
        summary = ValidationOrchestrator(repository, fast_config, logger=batch_logger).run(["mock-data-scan"])

        record = summary.record_for("mock-data-scan")
        assert record.status == RunStatus.FAILED
        assert record.result.error_kind == "threshold"
        assert not summary.critical_success_indicators["zero_mock_data"]
    finally:
        repository.close()


def test_run_command_writes_artifacts_and_audit_trail(database, tmp_path):
    artifacts = tmp_path / "artifacts"
    result = CliRunner().invoke(
        app,
        ["run", "--database", str(database), "--artifacts-dir", str(artifacts),
         "--ids", "kri-logs-integrity,mock-data-scan,data-volume"],
    )
    assert result.exit_code == 0, result.stdout

    summaries = list((artifacts / "runs").glob("*/summary.json"))
    assert len(summaries) == 1
    document = json.loads(summaries[0].read_text())
    assert document["run_metadata"]["status"] == "success"
    assert document["batch"]["summary"]["total_tests"] == 3
    readiness = json.loads((summaries[0].parent / "readiness.json").read_text())
    assert "readiness_score" in readiness

    entries = AuditTrailStore(artifacts / "audit_trail.jsonl").read_all()
    assert sorted(e.validation_id for e in entries) == ["kri-logs-integrity", "mock-data-scan"]


def test_run_command_with_unreadable_config(database, tmp_path):
    config = tmp_path / "broken.yaml"
    config.write_text("execution:\n  max_workers: -3\n")
    result = CliRunner().invoke(app, ["run", "--database", str(database), "--config", str(config)])
    assert result.exit_code == 2
