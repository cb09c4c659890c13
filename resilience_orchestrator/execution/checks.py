"""
Check implementations keyed by validation id.

A check is a plain function ``fn(ctx) -> ValidationResult``. It may also
raise; the orchestrator converts exceptions into terminal results:

- ConfigurationError  -> warning (integration not configured)
- ThresholdViolation  -> failed, error_kind "threshold"
- DataAccessError     -> failed, error_kind "data_access"
- anything else       -> failed, error_kind "exception"

Checks that write rows or open subscriptions do it through ``ctx.fixtures``
so the orchestrator can release them on every exit path.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from ..catalog.models import ValidationSpec
from ..compliance.scorer import ComplianceScorer
from ..config.integrity import ForeignKeyRelation
from ..config.loader import ValidationConfig
from ..exceptions import ConfigurationError, DataAccessError, ThresholdViolation
from ..integrations.probes import CompletionProbe, EmailProbe, ProbeSet, SessionInfo, SessionProbe
from ..integrations.repository import Record, Repository, coerce_datetime
from ..integrity.analyzer import DataIntegrityAnalyzer
from ..integrity.data_models import CheckResult
from ..integrity.rules import MockDataDetector, is_populated
from ..monitoring.benchmark import PerformanceBenchmark
from ..verdict import Verdict
from .data_models import ExecutionLog, ValidationResult
from .fixtures import FixtureScope

CheckFn = Callable[["CheckContext"], ValidationResult]


@dataclass
class CheckContext:
    """Everything a check may touch during one execution."""

    spec: ValidationSpec
    repository: Repository
    config: ValidationConfig
    fixtures: FixtureScope
    probes: ProbeSet = field(default_factory=ProbeSet)
    scope: Optional[str] = None
    log: ExecutionLog = field(default_factory=ExecutionLog)
    cancel_event: Optional[threading.Event] = None

    @property
    def analyzer(self) -> DataIntegrityAnalyzer:
        return DataIntegrityAnalyzer(self.repository, self.config.integrity, self.scope)

    def note(self, message: str) -> None:
        self.log.log(message)

    def completion_probe(self) -> CompletionProbe:
        if self.probes.completion is None:
            raise ConfigurationError("AI completion service is not configured", integration="completion")
        return self.probes.completion

    def email_probe(self) -> EmailProbe:
        if self.probes.email is None:
            raise ConfigurationError("Email service is not configured", integration="email")
        return self.probes.email

    def session_probe(self) -> SessionProbe:
        if self.probes.session is None:
            raise ConfigurationError("Authentication service is not configured", integration="session")
        return self.probes.session

    def fetch(self, table: str, limit: Optional[int] = None, **kwargs: Any) -> List[Record]:
        return self.repository.fetch(
            table, scope=self.scope, limit=limit or self.config.integrity.sample_limit, **kwargs
        )

    def result(
        self,
        verdict: Verdict,
        outcome: str,
        metrics: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> ValidationResult:
        """Map a pass/warn/fail verdict onto a ValidationResult."""
        if verdict == Verdict.FAIL:
            return ValidationResult.failed(
                outcome, error or outcome, self.log.lines, metrics, error_kind="threshold"
            )
        if verdict == Verdict.WARN:
            return ValidationResult.warned(outcome, self.log.lines, metrics)
        return ValidationResult.passed(outcome, self.log.lines, metrics)


class CheckRegistry:
    """Maps validation ids to check functions."""

    def __init__(self) -> None:
        self._checks: Dict[str, CheckFn] = {}

    def register(self, validation_id: str) -> Callable[[CheckFn], CheckFn]:
        def decorator(fn: CheckFn) -> CheckFn:
            if validation_id in self._checks:
                raise ValueError(f"Check for '{validation_id}' is already registered")
            self._checks[validation_id] = fn
            return fn
        return decorator

    def add(self, validation_id: str, fn: CheckFn) -> None:
        """Register or replace a check."""
        self._checks[validation_id] = fn

    def get(self, validation_id: str) -> Optional[CheckFn]:
        return self._checks.get(validation_id)

    def ids(self) -> List[str]:
        return list(self._checks)

    def __contains__(self, validation_id: object) -> bool:
        return validation_id in self._checks

    def copy(self) -> "CheckRegistry":
        clone = CheckRegistry()
        clone._checks = dict(self._checks)
        return clone


DEFAULT_CHECKS = CheckRegistry()
check = DEFAULT_CHECKS.register


def not_implemented(ctx: CheckContext) -> ValidationResult:
    """Fallback for catalog entries without an implementation."""
    ctx.note(f"No check implementation registered for {ctx.spec.id}")
    return ValidationResult.warned(f"Validation {ctx.spec.id} is not implemented", ctx.log.lines)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _from_integrity(ctx: CheckContext, result: CheckResult) -> ValidationResult:
    ctx.note(result.detail)
    if result.skipped_tables:
        ctx.note(f"Skipped tables: {', '.join(result.skipped_tables)}")
    metrics = {
        "records": result.records,
        "violations": result.violations,
        "percentage": round(result.percentage, 2),
        "score": round(result.score, 2),
    }
    return ctx.result(result.verdict, result.detail, metrics)


# ----------------------------------------------------------------------
# Phase 1: workflows and integrations
# ----------------------------------------------------------------------

@check("auth-session-real")
def check_authentication(ctx: CheckContext) -> ValidationResult:
    probe = ctx.session_probe()
    bound = ctx.config.performance.latency.auth_flow_ms
    start = time.perf_counter()
    session = probe.authenticate()
    ctx.fixtures.defer(lambda: probe.revoke(session), label=f"session:{session.session_id}")
    latency = _elapsed_ms(start)
    ctx.note(f"Authenticated as {session.user_id or 'unknown user'} in {latency:.0f}ms")
    if not probe.is_valid(session):
        raise ThresholdViolation("Issued session was rejected on read-back")
    if latency > bound:
        raise ThresholdViolation("Authentication exceeded latency bound", measured=round(latency), bound=bound)
    return ValidationResult.passed(
        f"Session issued in {latency:.0f}ms", ctx.log.lines, {"latency_ms": round(latency, 1)}
    )


def _hold_session(ctx: CheckContext, probe: SessionProbe, session: SessionInfo, revoked: Set[str]) -> None:
    """Revoke ``session`` when the entry ends unless the check already did."""
    def release() -> None:
        if session.session_id not in revoked:
            probe.revoke(session)

    ctx.fixtures.defer(release, label=f"session:{session.session_id}")


@check("session-management")
def check_session_management(ctx: CheckContext) -> ValidationResult:
    probe = ctx.session_probe()
    revoked: Set[str] = set()
    session = probe.authenticate()
    _hold_session(ctx, probe, session, revoked)
    ctx.note(f"Authenticated session {session.session_id}")
    refreshed = probe.refresh(session)
    _hold_session(ctx, probe, refreshed, revoked)
    if not probe.is_valid(refreshed):
        raise ThresholdViolation("Refreshed session is not valid")
    ctx.note("Session refreshed")
    probe.revoke(refreshed)
    revoked.add(refreshed.session_id)
    if probe.is_valid(refreshed):
        raise ThresholdViolation("Revoked session is still accepted")
    ctx.note("Revoked session rejected")
    return ValidationResult.passed("Session refresh and revocation behave correctly", ctx.log.lines)


@check("ai-completion-production")
def check_ai_completion(ctx: CheckContext) -> ValidationResult:
    settings = ctx.config.execution.probes
    probe = ctx.completion_probe()
    start = time.perf_counter()
    response = probe.complete(settings.ai_prompt)
    latency = _elapsed_ms(start)
    ctx.note(f"Completion returned {len(response.text)} chars in {latency:.0f}ms")
    metrics = {"latency_ms": round(latency, 1), "length": len(response.text)}

    if response.rejected:
        raise ThresholdViolation("Completion request was rejected by the service")
    if latency >= settings.ai_max_latency_ms:
        raise ThresholdViolation(
            "Completion exceeded latency bound", measured=round(latency), bound=settings.ai_max_latency_ms
        )
    text = response.text.strip()
    lowered = text.lower()
    if len(text) <= settings.ai_min_length:
        raise ThresholdViolation(
            "Completion response too short", measured=len(text), bound=settings.ai_min_length
        )
    marker = next((m for m in settings.ai_placeholder_markers if m.lower() in lowered), None)
    if marker:
        raise ThresholdViolation(f"Completion response contains placeholder text '{marker}'")
    if not any(k.lower() in lowered for k in settings.ai_domain_keywords):
        ctx.note("No domain keyword found in response")
        return ValidationResult.warned(
            "Completion returned but lacks regulatory domain content", ctx.log.lines, metrics
        )
    return ValidationResult.passed(f"Domain-specific completion in {latency:.0f}ms", ctx.log.lines, metrics)


@check("ai-vendor-analysis")
def check_ai_vendor_analysis(ctx: CheckContext) -> ValidationResult:
    settings = ctx.config.execution.probes
    detector = MockDataDetector(ctx.config.integrity.mock_rules)
    vendors = ctx.fetch("third_party_profiles", limit=20)
    vendor = next((v for v in vendors if detector.match(v) is None and is_populated(v.get("vendor_name"))), None)
    if vendor is None:
        ctx.note(f"{len(vendors)} vendors sampled, none usable")
        return ValidationResult.warned("No real vendor available for analysis", ctx.log.lines)

    probe = ctx.completion_probe()
    prompt = (
        f"Assess the third-party risk of vendor {vendor['vendor_name']} "
        f"(criticality: {vendor.get('criticality', 'unknown')}) under operational risk guidance."
    )
    response = probe.complete(prompt, context="vendor-risk")
    if response.rejected:
        raise ThresholdViolation("Vendor analysis request was rejected by the service")
    text = response.text.strip()
    ctx.note(f"Analysis for {vendor['vendor_name']} returned {len(text)} chars")
    if len(text) <= settings.ai_min_length:
        raise ThresholdViolation("Vendor analysis too short", measured=len(text), bound=settings.ai_min_length)
    if any(m.lower() in text.lower() for m in settings.ai_placeholder_markers):
        raise ThresholdViolation("Vendor analysis contains placeholder text")
    return ValidationResult.passed(
        f"Risk narrative returned for {vendor['vendor_name']}", ctx.log.lines, {"length": len(text)}
    )


@check("breach-realtime-db")
def check_breach_detection(ctx: CheckContext) -> ValidationResult:
    settings = ctx.config.execution.probes
    definitions = ctx.fetch("kri_definitions", limit=1)
    now = datetime.now(timezone.utc)
    probe_row: Record = {
        "kri_id": definitions[0].get("id") if definitions else None,
        "actual_value": settings.breach_probe_value,
        "target_value": settings.breach_threshold,
        "measurement_date": now.date().isoformat(),
        "created_at": now.isoformat(),
    }
    if ctx.scope is not None:
        probe_row[ctx.config.integrity.scope_field or "org_id"] = ctx.scope
    inserted = ctx.fixtures.acquire("kri_logs", probe_row)
    ctx.note(f"Inserted breach probe reading {inserted['id']}")

    recent = ctx.fetch("kri_logs", limit=50, order_by="created_at")
    stored = next((r for r in recent if str(r.get("id")) == str(inserted["id"])), None)
    if stored is None:
        raise DataAccessError("Breach probe reading was not readable after insert", table="kri_logs")
    value = float(stored.get("actual_value") or 0)
    if value <= settings.breach_threshold:
        raise ThresholdViolation(
            "Breach not detected for probe reading", measured=value, bound=settings.breach_threshold
        )
    ctx.note(f"Breach detected: {value:g} > {settings.breach_threshold:g}")
    return ValidationResult.passed(
        "Appetite breach detected for probe reading",
        ctx.log.lines,
        {"value": value, "threshold": settings.breach_threshold},
    )


@check("email-delivery")
def check_email_delivery(ctx: CheckContext) -> ValidationResult:
    settings = ctx.config.execution.probes
    probe = ctx.email_probe()
    start = time.perf_counter()
    response = probe.send(
        settings.email_recipient,
        "Resilience validation: delivery probe",
        {"type": "delivery_probe", "sent_at": datetime.now(timezone.utc).isoformat()},
    )
    latency = _elapsed_ms(start)
    metrics = {"latency_ms": round(latency, 1), "message_id": response.message_id}
    ctx.note(f"Email service responded in {latency:.0f}ms (status {response.status})")
    if not response.has_service_id:
        return ValidationResult.warned(
            "Email accepted without a service message id", ctx.log.lines, metrics
        )
    if latency > settings.email_sla_ms:
        raise ThresholdViolation("Email delivery exceeded SLA", measured=round(latency), bound=settings.email_sla_ms)
    return ValidationResult.passed(f"Email delivered as {response.message_id}", ctx.log.lines, metrics)


@check("realtime-subscription")
def check_realtime_subscription(ctx: CheckContext) -> ValidationResult:
    settings = ctx.config.execution.probes
    subscribe = getattr(ctx.repository, "subscribe", None)
    if subscribe is None:
        raise ConfigurationError("Repository does not provide a change feed", integration="realtime")

    # The change event can be delivered before acquire() returns the id
    seen: Dict[str, float] = {}
    arrived = threading.Condition()

    def on_change(event: str, record: Record) -> None:
        if event != "INSERT":
            return
        with arrived:
            seen[str(record.get("id"))] = time.perf_counter()
            arrived.notify_all()

    start = time.perf_counter()
    ctx.fixtures.track(subscribe("kri_logs", on_change), label="subscription:kri_logs")
    setup_ms = _elapsed_ms(start)
    ctx.note(f"Subscription open in {setup_ms:.0f}ms")

    now = datetime.now(timezone.utc)
    inserted = ctx.fixtures.acquire("kri_logs", {
        "actual_value": 1.0,
        "measurement_date": now.date().isoformat(),
        "created_at": now.isoformat(),
    })
    probe_id = str(inserted["id"])
    with arrived:
        delivered = arrived.wait_for(
            lambda: probe_id in seen, timeout=settings.realtime_max_setup_ms / 1000
        )
    if not delivered:
        raise ThresholdViolation(
            "Change event not observed", measured=round(_elapsed_ms(start)), bound=settings.realtime_max_setup_ms
        )
    total_ms = (seen[probe_id] - start) * 1000
    ctx.note(f"Change observed {total_ms:.0f}ms after subscribing")
    return ValidationResult.passed(
        f"Change observed in {total_ms:.0f}ms",
        ctx.log.lines,
        {"setup_ms": round(setup_ms, 1), "total_ms": round(total_ms, 1)},
    )


@check("report-real-data")
def check_report_real_data(ctx: CheckContext) -> ValidationResult:
    detector = MockDataDetector(ctx.config.integrity.mock_rules)
    sections = ["kri_logs", "incident_logs", "controls", "third_party_profiles"]
    real_counts: Dict[str, int] = {}
    for table in sections:
        rows = ctx.fetch(table)
        real_counts[table] = sum(1 for r in rows if detector.match(r) is None)
        ctx.note(f"{table}: {real_counts[table]} real of {len(rows)} sampled")
    empty = [t for t, n in real_counts.items() if n == 0]
    if len(empty) == len(sections):
        raise ThresholdViolation("No report section is backed by real records")
    if empty:
        return ValidationResult.warned(
            f"Report sections without real data: {', '.join(empty)}", ctx.log.lines, real_counts
        )
    return ValidationResult.passed("Every report section backed by real records", ctx.log.lines, real_counts)


@check("vendor-feed-integration")
def check_vendor_feed(ctx: CheckContext) -> ValidationResult:
    vendors = ctx.repository.count("third_party_profiles", scope=ctx.scope)
    if vendors == 0:
        ctx.note("No third-party profiles registered")
        return ValidationResult.warned("No vendors registered", ctx.log.lines)
    relation = ForeignKeyRelation(
        child_table="vendor_risk_alerts", child_key="vendor_profile_id", parent_table="third_party_profiles"
    )
    return _from_integrity(ctx, ctx.analyzer.check_foreign_keys([relation]))


@check("compliance-workflow-end2end")
def check_compliance_workflow(ctx: CheckContext) -> ValidationResult:
    stages = {
        "breach": "appetite_breach_logs",
        "incident": "incident_logs",
        "vendor": "third_party_profiles",
        "report": "kri_logs",
    }
    counts: Dict[str, int] = {}
    for stage, table in stages.items():
        if ctx.cancel_event is not None and ctx.cancel_event.is_set():
            ctx.note("Cancellation requested; stopping workflow walk")
            break
        try:
            counts[stage] = ctx.repository.count(table, scope=ctx.scope)
        except DataAccessError as e:
            ctx.note(f"{stage} stage unavailable: {e.message}")
            counts[stage] = 0
        ctx.note(f"{stage} stage: {counts[stage]} records in {table}")
    missing = [s for s in stages if counts.get(s, 0) == 0]
    if len(missing) == len(stages):
        raise ThresholdViolation("No workflow stage has live records")
    if missing:
        return ValidationResult.warned(f"Workflow stages without records: {', '.join(missing)}", ctx.log.lines, counts)
    return ValidationResult.passed("All workflow stages have live records", ctx.log.lines, counts)


@check("incident-response-chain")
def check_incident_chain(ctx: CheckContext) -> ValidationResult:
    analyzer = ctx.analyzer
    settings = ctx.config.integrity
    temporal = analyzer.check_temporal_consistency(
        [r for r in settings.temporal_rules if r.table == "incident_logs"]
    )
    rules = analyzer.validate_business_rules(
        [r for r in settings.business_rules if r.table == "incident_logs"]
    )
    ctx.note(temporal.detail)
    ctx.note(rules.detail)
    verdict = Verdict.FAIL if Verdict.FAIL in (temporal.verdict, rules.verdict) else (
        Verdict.WARN if Verdict.WARN in (temporal.verdict, rules.verdict) else Verdict.PASS
    )
    outcome = f"{temporal.violations} ordering and {rules.violations} response-time violations"
    return ctx.result(verdict, outcome, {
        "ordering_violations": temporal.violations,
        "response_violations": rules.violations,
    })


@check("governance-policy-workflow")
def check_governance_policies(ctx: CheckContext) -> ValidationResult:
    policies = ctx.fetch("governance_policies")
    if not policies:
        return ValidationResult.warned("No governance policies found", ctx.log.lines)
    now = datetime.now(timezone.utc)
    incomplete = [p for p in policies if not (is_populated(p.get("owner")) and is_populated(p.get("review_date")))]
    review_dates = [coerce_datetime(p.get("review_date")) for p in policies]
    overdue = [d for d in review_dates if d is not None and d < now]
    ctx.note(f"{len(policies)} policies: {len(incomplete)} incomplete, {len(overdue)} overdue for review")
    metrics = {"policies": len(policies), "incomplete": len(incomplete), "overdue": len(overdue)}
    if len(incomplete) > len(policies) / 2:
        raise ThresholdViolation("Most governance policies lack an owner or review date")
    if incomplete or overdue:
        return ValidationResult.warned("Some policies incomplete or overdue for review", ctx.log.lines, metrics)
    return ValidationResult.passed("Policies complete and current", ctx.log.lines, metrics)


# ----------------------------------------------------------------------
# Phase 2: integrity, compliance, performance
# ----------------------------------------------------------------------

@check("kri-logs-integrity")
def check_kri_logs(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_kri_logs())


@check("vendor-alerts-integrity")
def check_vendor_alerts(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_vendor_alerts())


@check("cross-table-consistency")
def check_cross_table(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_foreign_keys())


@check("mock-data-scan")
def check_mock_data(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.detect_mock_data())


@check("completeness-audit")
def check_completeness(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.audit_completeness())


@check("temporal-consistency")
def check_temporal(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_temporal_consistency())


@check("business-rules")
def check_business_rules(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.validate_business_rules())


@check("data-volume")
def check_data_volume(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_data_volume())


@check("data-freshness")
def check_data_freshness(ctx: CheckContext) -> ValidationResult:
    return _from_integrity(ctx, ctx.analyzer.check_freshness())


@check("vendor-compliance-score")
def check_vendor_compliance(ctx: CheckContext) -> ValidationResult:
    scorer = ComplianceScorer(ctx.config.compliance)
    metric = scorer.score_vendor_compliance(
        ctx.repository, scope=ctx.scope, principle=ctx.spec.primary_principle or "Principle 6"
    )
    for name, contribution in metric.components.items():
        ctx.note(f"{name}: {contribution:.1f}")
    outcome = f"{metric.principle} score {metric.score:.1f} over {metric.record_count} vendors"
    return ctx.result(metric.verdict, outcome, metric.to_dict())


@check("performance-benchmark")
def check_performance(ctx: CheckContext) -> ValidationResult:
    benchmark = PerformanceBenchmark(ctx.repository, ctx.config.performance, ctx.scope)
    report = benchmark.run_repository_benchmark()
    for timing in report.operations:
        ctx.note(f"{timing.name}: {timing.latency_ms:.1f}ms ({timing.status.value})")
    outcome = (
        f"{report.under_target_pct:.1f}% of operations under {report.target_ms:g}ms "
        f"(avg {report.average_ms:.1f}ms)"
    )
    return ctx.result(report.verdict, outcome, report.to_dict())


@check("cost-control-rate-limit")
def check_rate_limit(ctx: CheckContext) -> ValidationResult:
    benchmark = PerformanceBenchmark(settings=ctx.config.performance)
    report = benchmark.probe_rate_limit(ctx.completion_probe())
    ctx.note(f"{report.successes} ok, {report.rejected} rejected, {report.failed} errors")
    if report.cost_control_active:
        outcome = "Rate limiting active"
    elif report.failed == report.burst_size:
        outcome = f"Every request in a burst of {report.burst_size} errored: {report.errors[0]}"
    else:
        outcome = f"No request rejected in a burst of {report.burst_size}"
    return ctx.result(report.verdict, outcome, report.to_dict())
