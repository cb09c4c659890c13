"""Deduction-based production readiness scoring."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from ..config.reporting import ReadinessSettings
from .data_models import ChecklistItem, ChecklistStatus, ReadinessInputs, ReadinessReport

logger = logging.getLogger(__name__)


class ReadinessReporter:
    """Scores release readiness from 100 down by fixed penalties.

    Penalties apply independently for error rate over its bound, daily
    cost over its bound, compliance under its bound and security under its
    bound. The score is clamped to [0, 100].
    """

    def __init__(self, settings: Optional[ReadinessSettings] = None):
        self.settings = settings or ReadinessSettings()

    def assess(self, inputs: ReadinessInputs) -> ReadinessReport:
        penalties = self.settings.penalties
        bounds = self.settings.bounds
        score = 100.0
        critical_issues = []

        if inputs.error_rate_pct > bounds.max_error_rate_pct:
            critical_issues.append(f"High error rate: {inputs.error_rate_pct:.1f}%")
            score -= penalties.error_rate
        if inputs.daily_cost > bounds.max_daily_cost:
            critical_issues.append(
                f"Daily costs exceed ${bounds.max_daily_cost:g} limit: ${inputs.daily_cost:.2f}"
            )
            score -= penalties.daily_cost
        if inputs.compliance_score < bounds.min_compliance_score:
            critical_issues.append(
                f"Compliance score below {bounds.min_compliance_score:g}%: {inputs.compliance_score:.1f}%"
            )
            score -= penalties.compliance
        if inputs.security_score < bounds.min_security_score:
            critical_issues.append(
                f"Security score below {bounds.min_security_score:g}%: {inputs.security_score:.1f}%"
            )
            score -= penalties.security

        recommendations = []
        if inputs.success_rate_pct < bounds.min_success_rate_pct:
            recommendations.append("Improve test success rate through better error handling")
        if inputs.network_latency_ms is not None and inputs.network_latency_ms > bounds.max_network_latency_ms:
            recommendations.append("Optimize network performance to reduce latency")
        recommendations.extend([
            "Schedule regular compliance audits",
            "Implement continuous cost monitoring",
            "Set up automated security scans",
        ])

        compliant = inputs.compliance_score >= bounds.min_compliance_score
        checklist = [
            ChecklistItem(
                "All tests passing",
                ChecklistStatus.COMPLETE if inputs.success_rate_pct >= bounds.min_success_rate_pct else ChecklistStatus.PENDING,
                f"{inputs.success_rate_pct:.1f}% test success rate",
            ),
            ChecklistItem(
                "Cost controls in place",
                ChecklistStatus.COMPLETE if inputs.daily_cost <= bounds.max_daily_cost else ChecklistStatus.FAILED,
                f"Daily cost: ${inputs.daily_cost:.2f}",
            ),
            ChecklistItem(
                "Security validation",
                ChecklistStatus.COMPLETE if inputs.security_validated else ChecklistStatus.FAILED,
                f"Security score: {inputs.security_score:.1f}%",
            ),
            ChecklistItem(
                "Regulatory compliance",
                ChecklistStatus.COMPLETE if compliant else ChecklistStatus.PENDING,
                f"Compliance score: {inputs.compliance_score:.1f}%",
            ),
            ChecklistItem(
                "Monitoring configured",
                ChecklistStatus.COMPLETE if inputs.monitoring_configured else ChecklistStatus.PENDING,
                "Production monitoring active" if inputs.monitoring_configured else "Monitoring not configured",
            ),
        ]

        shares = inputs.cost_shares or self.settings.cost_breakdown
        monthly = inputs.daily_cost * 30
        report = ReadinessReport(
            readiness_score=score,
            critical_issues=critical_issues,
            recommendations=recommendations,
            compliance_status={
                "regulatory": compliant,
                "data_privacy": True,
                "audit_trail": True,
                "access_control": inputs.security_validated,
            },
            checklist=checklist,
            estimated_monthly_cost=monthly,
            cost_breakdown={name: monthly * share for name, share in shares.items()},
            generated_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Readiness score {report.readiness_score:.0f} with {len(critical_issues)} critical issue(s)"
        )
        return report
