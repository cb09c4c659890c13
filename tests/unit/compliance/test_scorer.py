"""Tests for weighted per-principle compliance scoring."""

from datetime import datetime, timedelta, timezone

import pytest

from resilience_orchestrator.catalog import (
    Priority,
    ValidationCatalog,
    ValidationCategory,
    ValidationSpec,
)
from resilience_orchestrator.compliance import ComplianceScorer, ComponentMeasure
from resilience_orchestrator.config.compliance import ComplianceBands, ComplianceSettings
from resilience_orchestrator.execution.data_models import RunRecord, ValidationResult
from resilience_orchestrator.integrations import InMemoryRepository
from resilience_orchestrator.verdict import Verdict

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


def _finished(validation_id, result):
    record = RunRecord(validation_id)
    record.start()
    record.finish(result)
    return record


def _spec(id, priority, principles):
    return ValidationSpec(
        id=id, name=id, phase="Phase 1", category=ValidationCategory.COMPLIANCE,
        priority=priority, description="d", expected_outcome="e", principles=principles,
    )


@pytest.fixture
def scorer():
    return ComplianceScorer()


class TestBands:
    @pytest.mark.parametrize("score, expected", [(69.9, Verdict.FAIL), (70.0, Verdict.WARN), (84.9, Verdict.WARN), (85.0, Verdict.PASS)])
    def test_verdict_for(self, scorer, score, expected):
        assert scorer.verdict_for(score) == expected

    def test_custom_bands(self):
        scorer = ComplianceScorer(ComplianceSettings(bands=ComplianceBands(fail_below=50, warn_below=60)))
        assert scorer.verdict_for(55) == Verdict.WARN


class TestVendorCompliance:
    def test_empty_population_is_fully_compliant(self, scorer):
        repository = InMemoryRepository({"third_party_profiles": [], "vendor_risk_alerts": []})
        metric = scorer.score_vendor_compliance(repository, now=NOW)
        assert metric.score == pytest.approx(100.0)
        assert metric.verdict == Verdict.PASS
        assert metric.record_count == 0

    def test_clean_population(self, scorer, clean_repository):
        metric = scorer.score_vendor_compliance(clean_repository)
        assert metric.score == pytest.approx(100.0)
        assert set(metric.components) == {"has_assessments", "assessments_recent", "critical_monitored", "alerts_resolved"}

    def test_stale_assessments_and_open_alerts(self, scorer):
        vendors = [
            {"id": "v1", "criticality": "critical", "last_assessment_date": (NOW - timedelta(days=30)).isoformat()},
            {"id": "v2", "criticality": "standard", "last_assessment_date": (NOW - timedelta(days=500)).isoformat()},
            {"id": "v3", "criticality": "standard", "last_assessment_date": None},
            {"id": "v4", "criticality": "standard", "last_assessment_date": "not a date"},
        ]
        alerts = [{"id": "a1", "status": "open"}, {"id": "a2", "status": "Resolved"}]
        measures = scorer.vendor_measures(vendors, alerts, now=NOW)

        assert measures["has_assessments"] == ComponentMeasure(2, 4)
        assert measures["assessments_recent"] == ComponentMeasure(1, 4)
        assert measures["critical_monitored"].ratio == 1.0
        assert measures["alerts_resolved"] == ComponentMeasure(1, 2)

        metric = scorer.score_components("Principle 6", measures)
        # 25 * (0.5 + 0.25 + 1.0 + 0.5)
        assert metric.score == pytest.approx(56.25)
        assert metric.verdict == Verdict.FAIL

    def test_critical_vendors_without_alert_feed(self, scorer):
        vendors = [{"id": "v1", "criticality": "critical", "last_assessment_date": NOW.isoformat()}]
        measures = scorer.vendor_measures(vendors, [], now=NOW)
        assert measures["critical_monitored"].ratio == 0.0
        assert scorer.score_components("Principle 6", measures).score == pytest.approx(75.0)

    def test_scope_filters_population(self, scorer, clean_tables):
        clean_tables["vendor_risk_alerts"].append({"id": "x", "org_id": "org-2", "status": "open"})
        metric = scorer.score_vendor_compliance(InMemoryRepository(clean_tables), scope="org-1")
        assert metric.components["alerts_resolved"] == pytest.approx(25.0)


class TestScoreComponents:
    def test_unmapped_principle_uses_given_measures(self, scorer):
        metric = scorer.score_components("Principle 9", {"has_assessments": ComponentMeasure(1, 2)})
        assert metric.score == pytest.approx(50.0)

    def test_zero_weight_is_vacuous(self):
        scorer = ComplianceScorer(ComplianceSettings(principle_components={}, component_weights={"x": 0.0}))
        assert scorer.score_components("Principle 1", {"x": ComponentMeasure(0, 5)}).score == 100.0

    def test_ratio_clamped(self):
        assert ComponentMeasure(7, 5).ratio == 1.0
        assert ComponentMeasure(-1, 5).ratio == 0.0
        assert ComponentMeasure(0, 0).ratio == 1.0


class TestScorePrinciples:
    def test_weighted_by_priority_and_status(self, scorer):
        catalog = ValidationCatalog([
            _spec("a", Priority.CRITICAL, ("Principle 4",)),
            _spec("b", Priority.MEDIUM, ("Principle 4", "Principle 6")),
            _spec("c", Priority.HIGH, ()),
        ])
        records = [
            _finished("a", ValidationResult.passed("ok")),
            _finished("b", ValidationResult.warned("degraded")),
            _finished("c", ValidationResult.failed("boom", error="boom")),
            RunRecord("a"),
        ]
        metrics = {m.principle: m for m in scorer.score_principles(records, catalog)}

        assert set(metrics) == {"Principle 4", "Principle 6"}
        # (3 * 1.0 + 1 * 0.5) / 4
        assert metrics["Principle 4"].score == pytest.approx(87.5)
        assert metrics["Principle 4"].record_count == 2
        assert metrics["Principle 6"].score == pytest.approx(50.0)
        assert metrics["Principle 6"].verdict == Verdict.FAIL

    def test_unknown_ids_ignored(self, scorer):
        catalog = ValidationCatalog([_spec("a", Priority.HIGH, ("Principle 4",))])
        records = [_finished("zzz", ValidationResult.passed("ok"))]
        assert scorer.score_principles(records, catalog) == []

    def test_overall_score(self, scorer):
        catalog = ValidationCatalog([
            _spec("a", Priority.HIGH, ("Principle 4",)),
            _spec("b", Priority.HIGH, ("Principle 6",)),
        ])
        records = [
            _finished("a", ValidationResult.passed("ok")),
            _finished("b", ValidationResult.failed("bad", error="bad")),
        ]
        assert scorer.overall_score(scorer.score_principles(records, catalog)) == pytest.approx(50.0)
        assert ComplianceScorer.overall_score([]) == 100.0
