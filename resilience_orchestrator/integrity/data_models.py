"""Integrity metric models returned by the analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..verdict import Verdict, clamp_score, worst


@dataclass
class IntegrityMetric:
    """Per-table measurement.

    ``percentage`` is the share the check reports on: flagged share for
    mock scans, score for referential and completeness checks.
    """

    table: str
    records: int
    violations: int
    percentage: float
    verdict: Verdict = Verdict.PASS
    detail: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "records": self.records,
            "violations": self.violations,
            "percentage": round(self.percentage, 2),
            "verdict": self.verdict.value,
            "detail": self.detail,
        }


@dataclass
class CheckResult:
    """Aggregate result of one analyzer sub-check."""

    check: str
    records: int
    violations: int
    percentage: float
    verdict: Verdict
    score: float
    detail: str
    tables: List[IntegrityMetric] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check": self.check,
            "records": self.records,
            "violations": self.violations,
            "percentage": round(self.percentage, 2),
            "verdict": self.verdict.value,
            "score": round(self.score, 2),
            "detail": self.detail,
            "tables": [t.to_dict() for t in self.tables],
            "skipped_tables": list(self.skipped_tables),
        }


@dataclass
class IntegrityReport:
    """All sub-check results from one full analyzer pass."""

    checks: Dict[str, CheckResult] = field(default_factory=dict)

    @property
    def verdict(self) -> Verdict:
        return worst(c.verdict for c in self.checks.values())

    @property
    def overall_score(self) -> float:
        if not self.checks:
            return 100.0
        return clamp_score(sum(c.score for c in self.checks.values()) / len(self.checks))

    def get(self, check: str) -> Optional[CheckResult]:
        return self.checks.get(check)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "overall_score": round(self.overall_score, 2),
            "checks": {name: c.to_dict() for name, c in self.checks.items()},
        }
