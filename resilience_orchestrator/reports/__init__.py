"""Audit trail, readiness scoring and console reporting."""

from .audit_trail import (
    AuditTrailGenerator,
    AuditTrailStore,
    InMemoryAuditStore,
    add_months,
)
from .data_models import (
    AuditTrailEntry,
    ChecklistItem,
    ChecklistStatus,
    ComplianceStatus,
    ReadinessInputs,
    ReadinessReport,
)
from .formatters import ConsoleReporter
from .readiness import ReadinessReporter

__all__ = [
    "AuditTrailEntry",
    "AuditTrailGenerator",
    "AuditTrailStore",
    "ChecklistItem",
    "ChecklistStatus",
    "ComplianceStatus",
    "ConsoleReporter",
    "InMemoryAuditStore",
    "ReadinessInputs",
    "ReadinessReport",
    "ReadinessReporter",
    "add_months",
]
