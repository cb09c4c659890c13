"""Audit-trail and readiness-report settings."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field


class ReadinessPenalties(BaseModel):
    """Points deducted from a starting readiness score of 100."""
    error_rate: float = Field(default=20.0, ge=0.0, le=100.0)
    daily_cost: float = Field(default=15.0, ge=0.0, le=100.0)
    compliance: float = Field(default=25.0, ge=0.0, le=100.0)
    security: float = Field(default=30.0, ge=0.0, le=100.0)


class ReadinessBounds(BaseModel):
    max_error_rate_pct: float = Field(default=5.0, ge=0.0)
    max_daily_cost: float = Field(default=50.0, ge=0.0)
    min_compliance_score: float = Field(default=90.0, ge=0.0, le=100.0)
    min_security_score: float = Field(default=95.0, ge=0.0, le=100.0)
    min_success_rate_pct: float = Field(default=95.0, ge=0.0, le=100.0)
    max_network_latency_ms: float = Field(default=2000.0, gt=0.0)


class ReadinessSettings(BaseModel):
    penalties: ReadinessPenalties = Field(default_factory=ReadinessPenalties)
    bounds: ReadinessBounds = Field(default_factory=ReadinessBounds)
    cost_breakdown: Dict[str, float] = Field(
        default_factory=lambda: {"ai_completion": 0.7, "email": 0.1, "database": 0.2},
        description="Share of daily cost attributed to each service",
    )


class AuditSettings(BaseModel):
    review_interval_months: int = Field(default=3, ge=1, le=24)
    principle_titles: Dict[str, str] = Field(
        default_factory=lambda: {
            "Principle 4": "Principle 4 - Operational Risk Management",
            "Principle 6": "Principle 6 - Third-Party Risk Management",
            "Principle 7": "Principle 7 - Business Continuity Planning",
            "Principle 8": "Principle 8 - Reporting and Documentation",
        }
    )
    store_filename: str = "audit_trail.jsonl"
    include_catalog_hints: bool = True

    def title_for(self, tag: str) -> str:
        return self.principle_titles.get(tag, tag)


class ReportingSettings(BaseModel):
    readiness: ReadinessSettings = Field(default_factory=ReadinessSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
