"""Compliance scoring weights, bands and principle mapping."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, model_validator


class ComplianceBands(BaseModel):
    """Verdict bands: below fail_below fails, below warn_below warns, else passes."""
    fail_below: float = Field(default=70.0, ge=0.0, le=100.0)
    warn_below: float = Field(default=85.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def _ordered(self) -> "ComplianceBands":
        if self.fail_below > self.warn_below:
            raise ValueError("fail_below must not exceed warn_below")
        return self


class ComplianceSettings(BaseModel):
    """Weights for scored components and the principle each component feeds."""
    bands: ComplianceBands = Field(default_factory=ComplianceBands)

    component_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "has_assessments": 25.0,
            "assessments_recent": 25.0,
            "critical_monitored": 25.0,
            "alerts_resolved": 25.0,
        },
        description="Weight of each scored component; weights are normalized per principle",
    )
    principle_components: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "Principle 6": [
                "has_assessments",
                "assessments_recent",
                "critical_monitored",
                "alerts_resolved",
            ],
        },
        description="Principle tag -> scored components that feed it",
    )
    assessment_max_age_days: int = Field(default=365, ge=1)

    # Third-party population read by the vendor compliance score
    vendor_table: str = "third_party_profiles"
    alert_table: str = "vendor_risk_alerts"
    assessment_field: str = "last_assessment_date"
    criticality_field: str = "criticality"
    critical_values: List[str] = Field(default_factory=lambda: ["critical"])
    alert_status_field: str = "status"
    resolved_statuses: List[str] = Field(default_factory=lambda: ["resolved", "closed"])
    population_limit: int = Field(default=1000, ge=1, description="Maximum vendors and alerts read")

    # Credit a run record earns toward its principle, by terminal status
    status_credit: Dict[str, float] = Field(
        default_factory=lambda: {"passed": 1.0, "warning": 0.5, "failed": 0.0}
    )
    priority_weights: Dict[str, float] = Field(
        default_factory=lambda: {"critical": 3.0, "high": 2.0, "medium": 1.0}
    )

    @model_validator(mode="after")
    def _components_known(self) -> "ComplianceSettings":
        for principle, components in self.principle_components.items():
            unknown = [c for c in components if c not in self.component_weights]
            if unknown:
                raise ValueError(f"{principle} references unknown components: {unknown}")
        return self
