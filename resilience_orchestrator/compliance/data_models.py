"""Compliance score models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from ..verdict import Verdict


@dataclass(frozen=True)
class ComponentMeasure:
    """Numerator/denominator for one scored component.

    An empty population (denominator 0) is vacuously compliant.
    """

    numerator: float
    denominator: float

    @property
    def ratio(self) -> float:
        if self.denominator <= 0:
            return 1.0
        return max(0.0, min(1.0, self.numerator / self.denominator))


@dataclass
class ComplianceMetric:
    """Score for one regulatory principle."""

    principle: str
    score: float
    verdict: Verdict
    record_count: int = 0
    fail_below: float = 70.0
    warn_below: float = 85.0
    components: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principle": self.principle,
            "score": round(self.score, 2),
            "verdict": self.verdict.value,
            "record_count": self.record_count,
            "bands": {"fail_below": self.fail_below, "warn_below": self.warn_below},
            "components": {k: round(v, 2) for k, v in self.components.items()},
        }
