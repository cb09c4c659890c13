"""
Validation Catalog - versioned registry of validation entries

The catalog is pure data: it answers "what does id X mean" and nothing
else. The orchestrator looks every entry up here before running it, so an
id that is not registered can never be executed.

Usage:
    catalog = build_default_catalog()
    spec = catalog.get("kri-logs-integrity")
    critical = catalog.by_priority(Priority.CRITICAL)
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from _version import __catalog_version__

from ..exceptions import UnknownValidationError
from .models import Priority, TimeoutClass, ValidationCategory, ValidationSpec

logger = logging.getLogger(__name__)


class ValidationCatalog:
    """
    Immutable, ordered mapping of validation id -> ValidationSpec.

    Duplicate ids are rejected when the catalog is built; registration
    order is preserved and used as the default execution order.
    """

    def __init__(self, specs: Iterable[ValidationSpec], version: str = __catalog_version__):
        self.version = version
        self._specs: Dict[str, ValidationSpec] = {}
        for spec in specs:
            if spec.id in self._specs:
                raise ValueError(f"Duplicate validation id '{spec.id}' in catalog {version}")
            self._specs[spec.id] = spec
        logger.debug(f"Built validation catalog {version} with {len(self._specs)} entries")

    def get(self, validation_id: str) -> ValidationSpec:
        """Return the entry for an id.

        Raises:
            UnknownValidationError: If the id is not registered
        """
        try:
            return self._specs[validation_id]
        except KeyError:
            raise UnknownValidationError(validation_id) from None

    def ids(self) -> List[str]:
        return list(self._specs)

    def by_category(self, category: ValidationCategory) -> List[ValidationSpec]:
        return [s for s in self._specs.values() if s.category == category]

    def by_priority(self, priority: Priority) -> List[ValidationSpec]:
        return [s for s in self._specs.values() if s.priority == priority]

    def by_phase(self, phase: str) -> List[ValidationSpec]:
        return [s for s in self._specs.values() if s.phase == phase]

    def by_principle(self, principle: str) -> List[ValidationSpec]:
        return [s for s in self._specs.values() if principle in s.principles]

    def subset(self, ids: Iterable[str]) -> "ValidationCatalog":
        """Catalog restricted to known ids; unknown ids raise."""
        return ValidationCatalog([self.get(i) for i in ids], version=self.version)

    def principles(self) -> List[str]:
        seen: Dict[str, None] = {}
        for spec in self._specs.values():
            for principle in spec.principles:
                seen.setdefault(principle, None)
        return list(seen)

    def __contains__(self, validation_id: object) -> bool:
        return validation_id in self._specs

    def __iter__(self) -> Iterator[ValidationSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


def _spec(
    id: str,
    name: str,
    category: ValidationCategory,
    priority: Priority,
    description: str,
    expected_outcome: str,
    principles: tuple = (),
    timeout_class: TimeoutClass = TimeoutClass.GENERIC,
    phase: str = "Phase 1",
) -> ValidationSpec:
    return ValidationSpec(
        id=id,
        name=name,
        phase=phase,
        category=category,
        priority=priority,
        description=description,
        expected_outcome=expected_outcome,
        principles=principles,
        timeout_class=timeout_class,
    )


DEFAULT_SPECS: List[ValidationSpec] = [
    # Phase 1: critical-path workflows
    _spec("auth-session-real", "Authentication Flow", ValidationCategory.WORKFLOW, Priority.CRITICAL,
          "Authenticate against the live identity provider and read back the session",
          "Session issued within the authentication latency bound",
          timeout_class=TimeoutClass.AUTHENTICATION),
    _spec("ai-completion-production", "AI Completion Quality", ValidationCategory.WORKFLOW, Priority.CRITICAL,
          "Send a regulatory prompt to the production completion service",
          "Non-placeholder domain-specific answer within 5 seconds",
          ("Principle 4",), TimeoutClass.AI_COMPLETION),
    _spec("breach-realtime-db", "Appetite Breach Detection", ValidationCategory.WORKFLOW, Priority.CRITICAL,
          "Insert a transient KRI reading above threshold and confirm breach detection",
          "Breach detected and probe row removed",
          ("Principle 4",), TimeoutClass.ALERTING),
    _spec("email-delivery", "Transactional Email Delivery", ValidationCategory.WORKFLOW, Priority.CRITICAL,
          "Send a notification through the transactional email service",
          "Service message id returned within the delivery SLA",
          ("Principle 7",), TimeoutClass.ALERTING),
    _spec("report-real-data", "Regulatory Report Data", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Assemble report inputs from live KRI, incident and control records",
          "Every report section backed by at least one real record",
          ("Principle 8",)),
    _spec("vendor-feed-integration", "Vendor Feed Integration", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Read third-party profiles and their latest risk alerts",
          "Vendor alerts reference registered vendors",
          ("Principle 6",)),
    _spec("ai-vendor-analysis", "AI Vendor Risk Analysis", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Ask the completion service to assess a registered vendor",
          "Risk narrative returned for a real vendor",
          ("Principle 6",), TimeoutClass.AI_COMPLETION),
    _spec("realtime-subscription", "Realtime Subscription", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Open a change subscription on KRI logs and observe a transient insert",
          "Change observed within the subscription setup bound",
          ("Principle 4",), TimeoutClass.ALERTING),
    _spec("session-management", "Session Management", ValidationCategory.WORKFLOW, Priority.MEDIUM,
          "Refresh and revoke an authenticated session",
          "Session refresh succeeds and revoked session is rejected",
          timeout_class=TimeoutClass.AUTHENTICATION),
    _spec("compliance-workflow-end2end", "Compliance Workflow End-to-End", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Walk KRI breach, incident, vendor and report records as one workflow",
          "Every workflow stage has live records",
          ("Principle 4", "Principle 6", "Principle 7", "Principle 8")),
    _spec("incident-response-chain", "Incident Response Chain", ValidationCategory.WORKFLOW, Priority.CRITICAL,
          "Check that incidents are acknowledged and resolved in order",
          "No incident responded to before it was reported"),
    _spec("governance-policy-workflow", "Governance Policy Workflow", ValidationCategory.WORKFLOW, Priority.HIGH,
          "Confirm governance policies carry owners and review dates",
          "Policies complete and current"),
    # Phase 2: data integrity, compliance and performance
    _spec("kri-logs-integrity", "KRI Log Integrity", ValidationCategory.DATABASE, Priority.CRITICAL,
          "Sample KRI logs for real measured values and paired dates",
          "At least 80% real values and 95% valid dates",
          ("Principle 4",), phase="Phase 2"),
    _spec("vendor-alerts-integrity", "Vendor Alert Integrity", ValidationCategory.DATABASE, Priority.HIGH,
          "Sample vendor risk alerts for real vendor names",
          "At least 70% of alerts name a real vendor",
          ("Principle 6",), phase="Phase 2"),
    _spec("cross-table-consistency", "Cross-Table Consistency", ValidationCategory.DATABASE, Priority.HIGH,
          "Check declared foreign-key relationships over sampled child rows",
          "Referential integrity of at least 98%",
          phase="Phase 2"),
    _spec("mock-data-scan", "Mock Data Scan", ValidationCategory.DATABASE, Priority.CRITICAL,
          "Scan sampled records across operational tables for synthetic data",
          "Fewer than 15% of sampled records flagged",
          ("Principle 8",), phase="Phase 2"),
    _spec("completeness-audit", "Completeness Audit", ValidationCategory.DATABASE, Priority.HIGH,
          "Measure population of critical fields per table",
          "Overall completeness of at least 95%",
          phase="Phase 2"),
    _spec("temporal-consistency", "Temporal Consistency", ValidationCategory.DATABASE, Priority.MEDIUM,
          "Apply ordering invariants between paired timestamps",
          "At least 98% of rows consistent",
          phase="Phase 2"),
    _spec("business-rules", "Business Rule Validation", ValidationCategory.DATABASE, Priority.MEDIUM,
          "Apply domain predicates to sampled rows",
          "No business-rule violations",
          phase="Phase 2"),
    _spec("data-volume", "Data Volume", ValidationCategory.DATABASE, Priority.MEDIUM,
          "Compare table row counts with minimum operating volumes",
          "Every monitored table meets its minimum",
          phase="Phase 2"),
    _spec("data-freshness", "Data Freshness", ValidationCategory.DATABASE, Priority.MEDIUM,
          "Check that KRI data was recorded within the last day",
          "Newest KRI log younger than 24 hours",
          phase="Phase 2"),
    _spec("vendor-compliance-score", "Third-Party Compliance Score", ValidationCategory.COMPLIANCE, Priority.CRITICAL,
          "Score vendor assessments, monitoring and alert resolution",
          "Third-party compliance score of at least 85",
          ("Principle 6",), phase="Phase 2"),
    _spec("performance-benchmark", "Repository Performance", ValidationCategory.PERFORMANCE, Priority.HIGH,
          "Time representative repository operations against the latency target",
          "95% of operations under 2 seconds",
          phase="Phase 2"),
    _spec("cost-control-rate-limit", "Cost Control Rate Limiting", ValidationCategory.INTEGRATION, Priority.HIGH,
          "Issue a burst of completion calls and classify each response",
          "At least one call rejected by the rate limiter",
          timeout_class=TimeoutClass.AI_COMPLETION, phase="Phase 2"),
]


def build_default_catalog(version: Optional[str] = None) -> ValidationCatalog:
    """Build the catalog shipped with this release."""
    return ValidationCatalog(DEFAULT_SPECS, version=version or __catalog_version__)
