"""
Data models for performance benchmarking and cost-control probes.

No internal dependencies beyond the shared verdict type, so the
orchestrator and reports can import these freely.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..verdict import Verdict


class OperationStatus(str, Enum):
    OK = "ok"
    SLOW = "slow"
    ERROR = "error"


@dataclass
class OperationTiming:
    """One timed repository operation or external call"""

    name: str
    latency_ms: float
    threshold_ms: float
    status: OperationStatus = OperationStatus.OK
    error_message: Optional[str] = None
    memory_delta_mb: Optional[float] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def under_target(self) -> bool:
        return self.status == OperationStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.name,
            "latency_ms": round(self.latency_ms, 2),
            "threshold_ms": self.threshold_ms,
            "status": self.status.value,
            "error": self.error_message,
            "memory_delta_mb": round(self.memory_delta_mb, 2) if self.memory_delta_mb is not None else None,
            **self.context,
        }


@dataclass
class BenchmarkReport:
    """Aggregate latency statistics for a benchmark pass"""

    target_ms: float
    min_under_target_pct: float = 95.0
    max_failed_pct: float = 20.0
    operations: List[OperationTiming] = field(default_factory=list)

    @property
    def failed_pct(self) -> float:
        if not self.operations:
            return 0.0
        errors = sum(1 for op in self.operations if op.status == OperationStatus.ERROR)
        return errors / len(self.operations) * 100

    @property
    def under_target_pct(self) -> float:
        if not self.operations:
            return 100.0
        return sum(1 for op in self.operations if op.under_target) / len(self.operations) * 100

    @property
    def average_ms(self) -> float:
        timed = [op.latency_ms for op in self.operations if op.status != OperationStatus.ERROR]
        return sum(timed) / len(timed) if timed else 0.0

    @property
    def max_ms(self) -> float:
        timed = [op.latency_ms for op in self.operations if op.status != OperationStatus.ERROR]
        return max(timed) if timed else 0.0

    @property
    def verdict(self) -> Verdict:
        if self.failed_pct > self.max_failed_pct:
            return Verdict.FAIL
        if self.under_target_pct < self.min_under_target_pct:
            return Verdict.FAIL
        if self.average_ms > self.target_ms:
            return Verdict.WARN
        return Verdict.PASS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_ms": self.target_ms,
            "under_target_pct": round(self.under_target_pct, 2),
            "failed_pct": round(self.failed_pct, 2),
            "average_ms": round(self.average_ms, 2),
            "max_ms": round(self.max_ms, 2),
            "verdict": self.verdict.value,
            "operations": [op.to_dict() for op in self.operations],
        }


class CallClassification(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass
class RateLimitReport:
    """Classified responses from one burst of identical calls"""

    burst_size: int
    expected_limit: int
    cost_per_request: float
    outcomes: List[CallClassification] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def _count(self, kind: CallClassification) -> int:
        return sum(1 for o in self.outcomes if o == kind)

    @property
    def successes(self) -> int:
        return self._count(CallClassification.SUCCESS)

    @property
    def rejected(self) -> int:
        return self._count(CallClassification.REJECTED)

    @property
    def failed(self) -> int:
        return self._count(CallClassification.ERROR)

    @property
    def cost_control_active(self) -> bool:
        return self.rejected > 0

    @property
    def estimated_cost(self) -> float:
        return self.successes * self.cost_per_request

    @property
    def verdict(self) -> Verdict:
        if self.cost_control_active:
            return Verdict.PASS
        return Verdict.FAIL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "burst_size": self.burst_size,
            "expected_limit": self.expected_limit,
            "successes": self.successes,
            "rejected": self.rejected,
            "errors": self.failed,
            "cost_control_active": self.cost_control_active,
            "estimated_cost": round(self.estimated_cost, 4),
            "verdict": self.verdict.value,
        }
