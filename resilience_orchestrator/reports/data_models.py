"""
Audit-trail and readiness report models.

AuditTrailEntry is frozen: once written to the audit store it is never
mutated, only superseded by later entries.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config.reporting import ReadinessBounds
from ..execution.data_models import BatchSummary, RunStatus
from ..verdict import clamp_score


class ComplianceStatus(str, Enum):
    COMPLIANT = "compliant"
    WARNING = "warning"
    NON_COMPLIANT = "non_compliant"

    @classmethod
    def from_run_status(cls, status: RunStatus) -> "ComplianceStatus":
        if status == RunStatus.PASSED:
            return cls.COMPLIANT
        if status == RunStatus.WARNING:
            return cls.WARNING
        if status == RunStatus.FAILED:
            return cls.NON_COMPLIANT
        raise ValueError(f"Run status {status.value} is not terminal")


@dataclass(frozen=True)
class AuditTrailEntry:
    """Links one run record to a regulatory principle and its disposition."""

    id: str
    timestamp: datetime
    run_id: str
    validation_id: str
    validation_name: str
    principle: str
    status: ComplianceStatus
    evidence: Mapping[str, Any]
    notes: str
    next_review: datetime
    remedial_actions: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        # Detached read-only snapshot; the caller keeps its own dict
        object.__setattr__(self, "evidence", MappingProxyType(copy.deepcopy(dict(self.evidence))))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "run_id": self.run_id,
            "validation_id": self.validation_id,
            "validation_name": self.validation_name,
            "principle": self.principle,
            "status": self.status.value,
            "evidence": copy.deepcopy(dict(self.evidence)),
            "notes": self.notes,
            "remedial_actions": list(self.remedial_actions) if self.remedial_actions is not None else None,
            "next_review": self.next_review.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditTrailEntry":
        actions = data.get("remedial_actions")
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            run_id=data["run_id"],
            validation_id=data["validation_id"],
            validation_name=data.get("validation_name", data["validation_id"]),
            principle=data["principle"],
            status=ComplianceStatus(data["status"]),
            evidence=data.get("evidence", {}),
            notes=data.get("notes", ""),
            next_review=datetime.fromisoformat(data["next_review"]),
            remedial_actions=tuple(actions) if actions is not None else None,
        )


class ChecklistStatus(str, Enum):
    COMPLETE = "complete"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class ChecklistItem:
    item: str
    status: ChecklistStatus
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item, "status": self.status.value, "description": self.description}


@dataclass
class ReadinessInputs:
    """Operational measurements a readiness assessment is based on."""

    success_rate_pct: float
    error_rate_pct: float
    daily_cost: float = 0.0
    compliance_score: float = 100.0
    security_score: float = 100.0
    security_validated: bool = True
    monitoring_configured: bool = True
    network_latency_ms: Optional[float] = None
    cost_shares: Optional[Dict[str, float]] = None

    @classmethod
    def from_batch(
        cls,
        summary: BatchSummary,
        *,
        daily_cost: float = 0.0,
        security_score: float = 100.0,
        security_validated: Optional[bool] = None,
        network_latency_ms: Optional[float] = None,
        bounds: Optional[ReadinessBounds] = None,
    ) -> "ReadinessInputs":
        """Derive inputs from a batch; security counts as validated at
        ``bounds.min_security_score`` or above unless stated explicitly."""
        compliance = summary.overall_compliance_score
        min_security = (bounds or ReadinessBounds()).min_security_score
        return cls(
            success_rate_pct=summary.success_rate,
            error_rate_pct=summary.error_rate,
            daily_cost=daily_cost,
            compliance_score=100.0 if compliance is None else compliance,
            security_score=security_score,
            security_validated=security_score >= min_security if security_validated is None else security_validated,
            network_latency_ms=network_latency_ms,
        )


@dataclass
class ReadinessReport:
    readiness_score: float
    critical_issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    compliance_status: Dict[str, bool] = field(default_factory=dict)
    checklist: List[ChecklistItem] = field(default_factory=list)
    estimated_monthly_cost: float = 0.0
    cost_breakdown: Dict[str, float] = field(default_factory=dict)
    generated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.readiness_score = clamp_score(self.readiness_score)

    @property
    def ready(self) -> bool:
        return not self.critical_issues and all(
            c.status == ChecklistStatus.COMPLETE for c in self.checklist
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "readiness_score": round(self.readiness_score, 2),
            "ready": self.ready,
            "critical_issues": list(self.critical_issues),
            "recommendations": list(self.recommendations),
            "compliance_status": dict(self.compliance_status),
            "deployment_checklist": [c.to_dict() for c in self.checklist],
            "estimated_costs": {
                "monthly": round(self.estimated_monthly_cost, 2),
                "breakdown": {k: round(v, 2) for k, v in self.cost_breakdown.items()},
            },
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }

    def export_json(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        return path
