"""
Run-level data models: results, run records and batch summaries.

``ValidationResult`` is a tagged result: its ``status`` is the single
source of truth and ``success``/``warning`` are derived from it, so an
error string can only exist on a failed result.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..compliance.data_models import ComplianceMetric


class ResultStatus(str, Enum):
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.PASSED, RunStatus.WARNING, RunStatus.FAILED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionLog:
    """Ordered, timestamped log trail for one entry execution."""

    def __init__(self) -> None:
        self._lines: List[str] = []

    def log(self, message: str) -> str:
        line = f"[{_utcnow().isoformat(timespec='milliseconds')}] {message}"
        self._lines.append(line)
        return line

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of executing one ValidationSpec."""

    status: ResultStatus
    outcome: str
    logs: Tuple[str, ...] = ()
    metrics: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status == ResultStatus.FAILED:
            if not self.error:
                raise ValueError("A failed result must carry an error")
        elif self.error is not None or self.error_kind is not None:
            raise ValueError(f"A {self.status.value} result cannot carry an error")
        if not self.outcome:
            raise ValueError("Result outcome cannot be empty")

    @property
    def success(self) -> bool:
        return self.status != ResultStatus.FAILED

    @property
    def warning(self) -> bool:
        return self.status == ResultStatus.WARNING

    @classmethod
    def passed(cls, outcome: str, logs: Tuple[str, ...] = (), metrics: Optional[Dict[str, Any]] = None) -> "ValidationResult":
        return cls(ResultStatus.PASSED, outcome, tuple(logs), dict(metrics or {}))

    @classmethod
    def warned(cls, outcome: str, logs: Tuple[str, ...] = (), metrics: Optional[Dict[str, Any]] = None) -> "ValidationResult":
        return cls(ResultStatus.WARNING, outcome, tuple(logs), dict(metrics or {}))

    @classmethod
    def failed(
        cls,
        outcome: str,
        error: str,
        logs: Tuple[str, ...] = (),
        metrics: Optional[Dict[str, Any]] = None,
        error_kind: str = "exception",
    ) -> "ValidationResult":
        return cls(ResultStatus.FAILED, outcome, tuple(logs), dict(metrics or {}), error, error_kind)

    def with_logs(self, logs: Tuple[str, ...]) -> "ValidationResult":
        """Copy with ``logs`` prepended to this result's own lines."""
        return ValidationResult(
            self.status, self.outcome, tuple(logs) + self.logs, dict(self.metrics), self.error, self.error_kind
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "success": self.success,
            "warning": self.warning,
            "outcome": self.outcome,
            "logs": list(self.logs),
            "metrics": self.metrics,
            "error": self.error,
            "error_kind": self.error_kind,
        }


_STATUS_FOR_RESULT = {
    ResultStatus.PASSED: RunStatus.PASSED,
    ResultStatus.WARNING: RunStatus.WARNING,
    ResultStatus.FAILED: RunStatus.FAILED,
}


class RunStateError(RuntimeError):
    """Illegal RunRecord transition"""


@dataclass
class RunRecord:
    """One execution of a ValidationSpec.

    Transitions: pending -> running -> passed | warning | failed. Once a
    terminal status is reached every attribute is read-only.
    """

    validation_id: str
    batch_id: Optional[str] = None
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RunStatus = RunStatus.PENDING
    result: Optional[ValidationResult] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_sealed"):
            raise RunStateError(f"RunRecord {self.__dict__.get('run_id')} is terminal; cannot set {name}")
        super().__setattr__(name, value)

    def start(self) -> None:
        if self.status != RunStatus.PENDING:
            raise RunStateError(f"Cannot start run in status {self.status.value}")
        self.started_at = _utcnow()
        self.status = RunStatus.RUNNING

    def finish(self, result: ValidationResult) -> None:
        if self.status != RunStatus.RUNNING:
            raise RunStateError(f"Cannot finish run in status {self.status.value}")
        self.result = result
        self.ended_at = _utcnow()
        self.status = _STATUS_FOR_RESULT[result.status]
        object.__setattr__(self, "_sealed", True)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return None

    @property
    def outcome(self) -> str:
        return self.result.outcome if self.result else self.status.value

    @property
    def error(self) -> Optional[str]:
        return self.result.error if self.result else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "batch_id": self.batch_id,
            "validation_id": self.validation_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
            "result": self.result.to_dict() if self.result else None,
        }


@dataclass
class BatchSummary:
    """Aggregate view over the terminal RunRecords of one batch."""

    batch_id: str
    catalog_version: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    records: List[RunRecord] = field(default_factory=list)
    not_started: List[str] = field(default_factory=list)
    cancelled: bool = False
    critical_success_indicators: Dict[str, bool] = field(default_factory=dict)
    compliance_metrics: List[ComplianceMetric] = field(default_factory=list)
    overall_compliance_score: Optional[float] = None

    def _count(self, status: RunStatus) -> int:
        return sum(1 for r in self.records if r.status == status)

    @property
    def total_tests(self) -> int:
        return len(self.records)

    @property
    def passed_tests(self) -> int:
        return self._count(RunStatus.PASSED)

    @property
    def failed_tests(self) -> int:
        return self._count(RunStatus.FAILED)

    @property
    def warning_tests(self) -> int:
        return self._count(RunStatus.WARNING)

    @property
    def success_rate(self) -> float:
        """Share of entries that did not fail, in percent."""
        if not self.records:
            return 0.0
        return (self.total_tests - self.failed_tests) / self.total_tests * 100

    @property
    def error_rate(self) -> float:
        if not self.records:
            return 0.0
        return self.failed_tests / self.total_tests * 100

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return None

    def record_for(self, validation_id: str) -> Optional[RunRecord]:
        for record in self.records:
            if record.validation_id == validation_id:
                return record
        return None

    def failures(self) -> List[RunRecord]:
        return [r for r in self.records if r.status == RunStatus.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "catalog_version": self.catalog_version,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_seconds": self.duration_seconds,
            "cancelled": self.cancelled,
            "not_started": list(self.not_started),
            "summary": {
                "total_tests": self.total_tests,
                "passed_tests": self.passed_tests,
                "failed_tests": self.failed_tests,
                "warning_tests": self.warning_tests,
                "success_rate": round(self.success_rate, 2),
            },
            "critical_success_indicators": dict(self.critical_success_indicators),
            "compliance": [m.to_dict() for m in self.compliance_metrics],
            "overall_compliance_score": self.overall_compliance_score,
            "records": [r.to_dict() for r in self.records],
        }

    def export_json(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, default=str))
        return path
