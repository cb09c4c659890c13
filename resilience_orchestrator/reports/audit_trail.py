"""
Audit Trail Generator

Maps terminal RunRecords whose ValidationSpec carries a regulatory
principle onto AuditTrailEntry records and appends them to a store.

Stores are append-only: ``append`` adds entries, nothing rewrites or
removes them. ``AuditTrailStore`` writes one JSON object per line.
"""

from __future__ import annotations

import calendar
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from ..catalog import ValidationCatalog
from ..config.reporting import AuditSettings
from ..error_catalog import get_error_catalog
from ..execution.data_models import RunRecord, RunStatus
from .data_models import AuditTrailEntry, ComplianceStatus

logger = logging.getLogger(__name__)


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar-month arithmetic; the day is clamped to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class AuditStore(Protocol):
    def append(self, entries: Iterable[AuditTrailEntry]) -> int:
        ...

    def read_all(self) -> List[AuditTrailEntry]:
        ...


class InMemoryAuditStore:
    def __init__(self) -> None:
        self._entries: List[AuditTrailEntry] = []
        self._lock = threading.Lock()

    def append(self, entries: Iterable[AuditTrailEntry]) -> int:
        entries = list(entries)
        with self._lock:
            self._entries.extend(entries)
        return len(entries)

    def read_all(self) -> List[AuditTrailEntry]:
        with self._lock:
            return list(self._entries)


class AuditTrailStore:
    """Append-only JSON-lines audit store."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, entries: Iterable[AuditTrailEntry]) -> int:
        lines = [json.dumps(e.to_dict(), default=str) for e in entries]
        if not lines:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock, open(self.path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
        logger.info(f"Appended {len(lines)} audit entries to {self.path}")
        return len(lines)

    def read_all(self) -> List[AuditTrailEntry]:
        if not self.path.exists():
            return []
        entries = []
        with open(self.path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    entries.append(AuditTrailEntry.from_dict(json.loads(line)))
                except (ValueError, KeyError) as e:
                    logger.warning(f"Skipping unreadable audit line {line_no} in {self.path}: {e}")
        return entries


class AuditTrailGenerator:
    """Builds audit entries from run records.

    Only records whose catalog entry carries at least one principle tag produce an
    entry; the first tag is the principle the entry is filed under.
    """

    def __init__(
        self,
        catalog: ValidationCatalog,
        settings: Optional[AuditSettings] = None,
        store: Optional[AuditStore] = None,
    ):
        self.catalog = catalog
        self.settings = settings or AuditSettings()
        self.store = store

    def audit_notes(self, name: str, status: RunStatus) -> str:
        notes = (
            f"Test {name} executed with status {status.value}. "
            "Evidence collected includes execution logs and performance metrics."
        )
        if status == RunStatus.PASSED:
            return notes + " All compliance requirements met."
        return notes + " Remedial actions required."

    def remedial_actions(self, record: RunRecord) -> List[str]:
        actions = [
            "Investigate root cause of test failure",
            "Implement corrective measures",
            "Re-execute test to verify compliance",
        ]
        if record.error:
            actions.append(f"Address specific error: {record.error}")
            if self.settings.include_catalog_hints:
                for hint in get_error_catalog().find_resolution_hints(record.error):
                    actions.append(f"{hint.title}: {hint.description}")
        actions.append("Document lessons learned")
        actions.append("Update test procedures if necessary")
        return actions

    def entry_for(self, record: RunRecord, now: Optional[datetime] = None) -> Optional[AuditTrailEntry]:
        if not record.is_terminal or record.validation_id not in self.catalog:
            return None
        spec = self.catalog.get(record.validation_id)
        if spec.primary_principle is None:
            return None
        now = now or datetime.now(timezone.utc)
        status = ComplianceStatus.from_run_status(record.status)
        result = record.result
        return AuditTrailEntry(
            id=f"audit-{spec.id}-{uuid.uuid4().hex[:12]}",
            timestamp=now,
            run_id=record.run_id,
            validation_id=spec.id,
            validation_name=spec.name,
            principle=self.settings.title_for(spec.primary_principle),
            status=status,
            evidence={
                "run_id": record.run_id,
                "batch_id": record.batch_id,
                "outcome": record.outcome,
                "metrics": dict(result.metrics) if result else {},
                "logs": list(result.logs) if result else [],
                "error": record.error,
            },
            notes=self.audit_notes(spec.name, record.status),
            remedial_actions=(
                tuple(self.remedial_actions(record)) if status == ComplianceStatus.NON_COMPLIANT else None
            ),
            next_review=add_months(now, self.settings.review_interval_months),
        )

    def generate(self, records: Iterable[RunRecord], now: Optional[datetime] = None) -> List[AuditTrailEntry]:
        """Build entries for ``records`` and append them to the store, if any."""
        entries = [e for e in (self.entry_for(r, now) for r in records) if e is not None]
        if self.store is not None and entries:
            self.store.append(entries)
        logger.info(f"Generated {len(entries)} audit trail entries")
        return entries
