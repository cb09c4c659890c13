"""Unit tests for readiness scoring and report serialisation."""

import json
from datetime import datetime, timezone

import pytest

from resilience_orchestrator.config.reporting import ReadinessBounds, ReadinessPenalties, ReadinessSettings
from resilience_orchestrator.execution import BatchSummary, RunRecord, ValidationResult
from resilience_orchestrator.reports import (
    ChecklistStatus,
    ReadinessInputs,
    ReadinessReport,
    ReadinessReporter,
)


def _summary(passed: int, failed: int, compliance=None) -> BatchSummary:
    records = []
    for i in range(passed + failed):
        record = RunRecord(f"check-{i}", batch_id="b-1")
        record.start()
        record.finish(ValidationResult.passed("ok") if i < passed else ValidationResult.failed("bad", "boom"))
        records.append(record)
    return BatchSummary(
        batch_id="b-1",
        catalog_version="2.0.0",
        started_at=datetime.now(timezone.utc),
        records=records,
        overall_compliance_score=compliance,
    )


def _checklist(report: ReadinessReport):
    return {item.item: item.status for item in report.checklist}


class TestReadinessReporter:
    def test_healthy_inputs_score_full_marks(self):
        report = ReadinessReporter().assess(ReadinessInputs(success_rate_pct=100.0, error_rate_pct=0.0, daily_cost=12.0))

        assert report.readiness_score == 100.0
        assert report.critical_issues == []
        assert report.ready
        assert set(_checklist(report).values()) == {ChecklistStatus.COMPLETE}
        assert report.recommendations == [
            "Schedule regular compliance audits",
            "Implement continuous cost monitoring",
            "Set up automated security scans",
        ]
        assert report.compliance_status == {
            "regulatory": True,
            "data_privacy": True,
            "audit_trail": True,
            "access_control": True,
        }

    def test_every_penalty_applies_independently(self):
        inputs = ReadinessInputs(
            success_rate_pct=80.0,
            error_rate_pct=20.0,
            daily_cost=75.0,
            compliance_score=70.0,
            security_score=60.0,
            security_validated=False,
        )
        report = ReadinessReporter().assess(inputs)

        assert report.readiness_score == pytest.approx(10.0)
        assert report.critical_issues == [
            "High error rate: 20.0%",
            "Daily costs exceed $50 limit: $75.00",
            "Compliance score below 90%: 70.0%",
            "Security score below 95%: 60.0%",
        ]
        assert not report.ready
        checklist = _checklist(report)
        assert checklist["All tests passing"] == ChecklistStatus.PENDING
        assert checklist["Cost controls in place"] == ChecklistStatus.FAILED
        assert checklist["Security validation"] == ChecklistStatus.FAILED
        assert checklist["Regulatory compliance"] == ChecklistStatus.PENDING
        assert report.recommendations[0] == "Improve test success rate through better error handling"
        assert report.compliance_status["regulatory"] is False
        assert report.compliance_status["access_control"] is False

    def test_bounds_are_exclusive(self):
        inputs = ReadinessInputs(success_rate_pct=95.0, error_rate_pct=5.0, daily_cost=50.0, compliance_score=90.0)
        report = ReadinessReporter().assess(inputs)
        assert report.readiness_score == 100.0
        assert report.ready

    def test_score_is_clamped_at_zero(self):
        settings = ReadinessSettings(penalties=ReadinessPenalties(error_rate=60.0, security=60.0))
        inputs = ReadinessInputs(success_rate_pct=50.0, error_rate_pct=50.0, security_score=10.0)
        assert ReadinessReporter(settings).assess(inputs).readiness_score == 0.0

    def test_slow_network_recommendation(self):
        report = ReadinessReporter().assess(
            ReadinessInputs(success_rate_pct=100.0, error_rate_pct=0.0, network_latency_ms=2500.0)
        )
        assert "Optimize network performance to reduce latency" in report.recommendations
        assert report.readiness_score == 100.0

    def test_latency_bound_comes_from_settings(self):
        inputs = ReadinessInputs(success_rate_pct=100.0, error_rate_pct=0.0, network_latency_ms=800.0)
        assert "Optimize network performance to reduce latency" not in ReadinessReporter().assess(inputs).recommendations

        settings = ReadinessSettings(bounds=ReadinessBounds(max_network_latency_ms=500.0))
        assert "Optimize network performance to reduce latency" in ReadinessReporter(settings).assess(inputs).recommendations

    def test_cost_breakdown_uses_configured_shares(self):
        report = ReadinessReporter().assess(ReadinessInputs(success_rate_pct=100.0, error_rate_pct=0.0, daily_cost=10.0))
        assert report.estimated_monthly_cost == pytest.approx(300.0)
        assert report.cost_breakdown == pytest.approx({"ai_completion": 210.0, "email": 30.0, "database": 60.0})

    def test_cost_breakdown_prefers_measured_shares(self):
        inputs = ReadinessInputs(
            success_rate_pct=100.0, error_rate_pct=0.0, daily_cost=2.0, cost_shares={"email": 1.0}
        )
        report = ReadinessReporter().assess(inputs)
        assert report.cost_breakdown == pytest.approx({"email": 60.0})

    def test_monitoring_gate(self):
        report = ReadinessReporter().assess(
            ReadinessInputs(success_rate_pct=100.0, error_rate_pct=0.0, monitoring_configured=False)
        )
        assert _checklist(report)["Monitoring configured"] == ChecklistStatus.PENDING
        assert report.critical_issues == []
        assert not report.ready


class TestReadinessInputs:
    def test_from_batch(self):
        inputs = ReadinessInputs.from_batch(_summary(passed=3, failed=1, compliance=88.0), daily_cost=5.0)
        assert inputs.success_rate_pct == pytest.approx(75.0)
        assert inputs.error_rate_pct == pytest.approx(25.0)
        assert inputs.compliance_score == 88.0
        assert inputs.daily_cost == 5.0
        assert inputs.security_validated

    def test_from_batch_without_compliance_metrics(self):
        inputs = ReadinessInputs.from_batch(_summary(passed=2, failed=0), security_score=90.0)
        assert inputs.compliance_score == 100.0
        assert inputs.security_validated is False

    def test_from_batch_security_bound_comes_from_settings(self):
        inputs = ReadinessInputs.from_batch(
            _summary(1, 0), security_score=90.0, bounds=ReadinessBounds(min_security_score=85.0)
        )
        assert inputs.security_validated is True

    def test_explicit_security_flag_wins(self):
        inputs = ReadinessInputs.from_batch(_summary(1, 0), security_score=90.0, security_validated=True)
        assert inputs.security_validated is True


class TestReadinessReport:
    def test_score_clamped_on_construction(self):
        assert ReadinessReport(readiness_score=140.0).readiness_score == 100.0
        assert ReadinessReport(readiness_score=-3.0).readiness_score == 0.0

    def test_export_json(self, tmp_path):
        report = ReadinessReporter().assess(ReadinessInputs(success_rate_pct=90.0, error_rate_pct=10.0, daily_cost=1.0))
        path = report.export_json(tmp_path / "reports" / "readiness.json")

        data = json.loads(path.read_text())
        assert data["readiness_score"] == 80.0
        assert data["ready"] is False
        assert data["critical_issues"] == ["High error rate: 10.0%"]
        assert {c["item"] for c in data["deployment_checklist"]} >= {"All tests passing", "Monitoring configured"}
        assert data["estimated_costs"]["monthly"] == 30.0
        assert data["generated_at"] is not None
