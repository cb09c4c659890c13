"""
Weighted compliance scoring per regulatory principle.

Two inputs feed a principle score:

- scored components (numerator/denominator pairs such as "vendors with a
  current assessment"), weighted by configuration
- terminal RunRecords whose ValidationSpec is tagged with the principle,
  credited by status and weighted by priority

Which components feed which principle is configuration, not code.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from ..config.compliance import ComplianceSettings
from ..integrations.repository import Record, Repository, coerce_datetime
from ..verdict import Verdict, clamp_score
from .data_models import ComplianceMetric, ComponentMeasure

if TYPE_CHECKING:
    from ..catalog import ValidationCatalog
    from ..execution.data_models import RunRecord

logger = logging.getLogger(__name__)


class ComplianceScorer:
    """Produces 0-100 scores and pass/warn/fail verdicts per principle."""

    def __init__(self, settings: Optional[ComplianceSettings] = None):
        self.settings = settings or ComplianceSettings()

    def verdict_for(self, score: float) -> Verdict:
        bands = self.settings.bands
        if score < bands.fail_below:
            return Verdict.FAIL
        if score < bands.warn_below:
            return Verdict.WARN
        return Verdict.PASS

    def _metric(self, principle: str, score: float, **kwargs) -> ComplianceMetric:
        score = clamp_score(score)
        return ComplianceMetric(
            principle=principle,
            score=score,
            verdict=self.verdict_for(score),
            fail_below=self.settings.bands.fail_below,
            warn_below=self.settings.bands.warn_below,
            **kwargs,
        )

    def score_components(self, principle: str, measures: Mapping[str, ComponentMeasure]) -> ComplianceMetric:
        """Weighted sum of component ratios, normalized to 0-100.

        Components are taken from the principle mapping when the principle
        is configured, otherwise from ``measures``. A component with a zero
        denominator contributes its full weight.
        """
        names = self.settings.principle_components.get(principle, list(measures))
        weights = self.settings.component_weights
        total_weight = sum(weights.get(n, 0.0) for n in names)
        if total_weight <= 0:
            return self._metric(principle, 100.0)

        contributions: Dict[str, float] = {}
        for name in names:
            measure = measures.get(name, ComponentMeasure(0, 0))
            contributions[name] = weights.get(name, 0.0) / total_weight * 100 * measure.ratio
        return self._metric(principle, sum(contributions.values()), components=contributions)

    # ------------------------------------------------------------------
    # Third-party population
    # ------------------------------------------------------------------

    def vendor_measures(
        self,
        vendors: List[Record],
        alerts: List[Record],
        now: Optional[datetime] = None,
    ) -> Dict[str, ComponentMeasure]:
        """Component measures for a vendor/alert population."""
        s = self.settings
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=s.assessment_max_age_days)
        critical_values = {v.lower() for v in s.critical_values}
        resolved_values = {v.lower() for v in s.resolved_statuses}

        assessed = [coerce_datetime(v.get(s.assessment_field)) for v in vendors]
        with_assessment = sum(1 for a in assessed if a is not None)
        recent = sum(1 for a in assessed if a is not None and a >= cutoff)
        critical = sum(1 for v in vendors if str(v.get(s.criticality_field, "")).lower() in critical_values)
        resolved = sum(1 for a in alerts if str(a.get(s.alert_status_field, "")).lower() in resolved_values)

        return {
            "has_assessments": ComponentMeasure(with_assessment, len(vendors)),
            "assessments_recent": ComponentMeasure(recent, len(vendors)),
            # Critical vendors count as monitored once any alert feed exists
            "critical_monitored": ComponentMeasure(1 if alerts else 0, 1 if critical else 0),
            "alerts_resolved": ComponentMeasure(resolved, len(alerts)),
        }

    def score_vendor_compliance(
        self,
        repository: Repository,
        *,
        scope: Optional[str] = None,
        principle: str = "Principle 6",
        now: Optional[datetime] = None,
    ) -> ComplianceMetric:
        """Read the vendor population from the repository and score it."""
        s = self.settings
        vendors = repository.fetch(s.vendor_table, scope=scope, limit=s.population_limit)
        alerts = repository.fetch(s.alert_table, scope=scope, limit=s.population_limit)
        metric = self.score_components(principle, self.vendor_measures(vendors, alerts, now))
        metric.record_count = len(vendors)
        logger.info(f"{principle} vendor compliance score {metric.score:.1f} ({metric.verdict.value})")
        return metric

    # ------------------------------------------------------------------
    # Run records
    # ------------------------------------------------------------------

    def score_principles(
        self,
        records: Iterable["RunRecord"],
        catalog: "ValidationCatalog",
    ) -> List[ComplianceMetric]:
        """One metric per principle tag seen on terminal records."""
        credit = self.settings.status_credit
        priority_weights = self.settings.priority_weights
        earned: Dict[str, float] = {}
        possible: Dict[str, float] = {}
        counts: Dict[str, int] = {}

        for record in records:
            if not record.is_terminal or record.validation_id not in catalog:
                continue
            spec = catalog.get(record.validation_id)
            weight = priority_weights.get(spec.priority.value, 1.0)
            for principle in spec.principles:
                earned[principle] = earned.get(principle, 0.0) + weight * credit.get(record.status.value, 0.0)
                possible[principle] = possible.get(principle, 0.0) + weight
                counts[principle] = counts.get(principle, 0) + 1

        return [
            self._metric(
                principle,
                earned[principle] / possible[principle] * 100 if possible[principle] else 100.0,
                record_count=counts[principle],
            )
            for principle in possible
        ]

    @staticmethod
    def overall_score(metrics: Iterable[ComplianceMetric]) -> float:
        metrics = list(metrics)
        if not metrics:
            return 100.0
        return clamp_score(sum(m.score for m in metrics) / len(metrics))
