"""
Validation Orchestrator

Runs catalog entries as independent units of work on a bounded worker
pool and folds the terminal RunRecords into a BatchSummary.

Guarantees:
- an unknown id fails that entry only; the batch continues
- any exception raised by a check becomes a failed RunRecord carrying the
  exception message
- each entry is bounded by the timeout of its TimeoutClass; a timeout is a
  failure with error_kind "timeout"
- fixtures created by an entry are released on success, failure, timeout
  and cancellation
- cancellation stops launching entries; in-flight entries finish or time
  out and the summary covers whatever reached a terminal status

Usage:
    orchestrator = ValidationOrchestrator(repository, load_validation_config())
    summary = orchestrator.run(["mock-data-scan", "kri-logs-integrity"])
    print(summary.success_rate, summary.critical_success_indicators)
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from ..catalog import Priority, TimeoutClass, ValidationCatalog, ValidationSpec, build_default_catalog
from ..compliance.scorer import ComplianceScorer
from ..config.loader import ValidationConfig
from ..error_catalog import get_error_catalog
from ..exceptions import (
    BatchAbortedError,
    ConfigurationError,
    ProbeTimeoutError,
    ResilienceError,
    UnknownValidationError,
)
from ..integrations.probes import ProbeSet
from ..integrations.repository import Repository
from ..logger import ProductionLogger
from ..utils import time_block
from .checks import DEFAULT_CHECKS, CheckContext, CheckRegistry, not_implemented
from .data_models import BatchSummary, ExecutionLog, RunRecord, RunStatus, ValidationResult
from .fixtures import FixtureScope
from .hooks import HookManager, HookType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_batch_id() -> str:
    return f"batch-{datetime.now().strftime('%Y%m%d_%H%M%S')}-{str(uuid.uuid4())[:8]}"


class ValidationOrchestrator:
    """Executes validation batches against a repository and external probes."""

    def __init__(
        self,
        repository: Repository,
        config: Optional[ValidationConfig] = None,
        *,
        catalog: Optional[ValidationCatalog] = None,
        checks: Optional[CheckRegistry] = None,
        probes: Optional[ProbeSet] = None,
        hooks: Optional[HookManager] = None,
        logger: Optional[ProductionLogger] = None,
        max_workers: Optional[int] = None,
        scope: Optional[str] = None,
    ):
        self.repository = repository
        self.config = config or ValidationConfig()
        self.catalog = catalog or build_default_catalog(self.config.catalog_version)
        self.checks = checks or DEFAULT_CHECKS
        self.probes = probes or ProbeSet()
        self.hooks = hooks or HookManager()
        self.logger = logger or ProductionLogger(console=False)
        self.max_workers = max_workers or self.config.execution.max_workers
        self.scope = scope if scope is not None else self.config.execution.scope
        self.scorer = ComplianceScorer(self.config.compliance)
        self._error_catalog = get_error_catalog()

    # ------------------------------------------------------------------
    # Batch execution
    # ------------------------------------------------------------------

    def timeout_for(self, spec: ValidationSpec) -> float:
        timeouts = self.config.execution.timeouts
        return {
            TimeoutClass.AUTHENTICATION: timeouts.authentication,
            TimeoutClass.AI_COMPLETION: timeouts.ai_completion,
            TimeoutClass.ALERTING: timeouts.alerting,
            TimeoutClass.GENERIC: timeouts.generic,
        }[spec.timeout_class]

    def preflight(self) -> None:
        """Abort before launching anything if the repository is unreachable."""
        ping = getattr(self.repository, "ping", None)
        if ping is None:
            return
        try:
            ping()
        except ResilienceError as e:
            raise BatchAbortedError(
                f"Repository unreachable: {e.message}", original_exception=e
            ) from e

    def run(
        self,
        ids: Optional[Iterable[str]] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        batch_id: Optional[str] = None,
    ) -> BatchSummary:
        """Execute ``ids`` (default: the whole catalog) and summarize.

        Raises:
            BatchAbortedError: If the repository fails the preflight check
        """
        batch_id = batch_id or new_batch_id()
        cancel_event = cancel_event or threading.Event()
        pending: List[Tuple[int, str]] = list(enumerate(self.catalog.ids() if ids is None else list(ids)))

        try:
            self.preflight()
        except BatchAbortedError as e:
            self.logger.critical(f"Batch {batch_id} aborted: {e.message}", batch_id=batch_id)
            raise

        summary = BatchSummary(batch_id=batch_id, catalog_version=self.catalog.version, started_at=_utcnow())
        self.logger.log_event(
            "INFO", f"Starting validation batch {batch_id}",
            event="batch_started", batch_id=batch_id, entries=len(pending), max_workers=self.max_workers,
            catalog_version=self.catalog.version,
        )
        self.hooks.execute_hooks(HookType.PRE_BATCH, {"batch_id": batch_id, "ids": [i for _, i in pending]})

        finished: Dict[int, RunRecord] = {}
        not_started: List[Tuple[int, str]] = []
        queue = list(reversed(pending))
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="validation") as executor:
            future_to_entry: Dict[Future, Tuple[int, str]] = {}
            while queue or future_to_entry:
                while queue and len(future_to_entry) < self.max_workers and not cancel_event.is_set():
                    index, validation_id = queue.pop()
                    future = executor.submit(self._run_entry, validation_id, batch_id, cancel_event)
                    future_to_entry[future] = (index, validation_id)
                if not future_to_entry:
                    break
                done, _ = wait(future_to_entry, return_when=FIRST_COMPLETED)
                for future in done:
                    index, validation_id = future_to_entry.pop(future)
                    record = future.result()
                    if record is None:
                        not_started.append((index, validation_id))
                    else:
                        finished[index] = record

        not_started.extend(reversed(queue))
        summary.records = [finished[i] for i in sorted(finished)]
        summary.not_started = [vid for _, vid in sorted(not_started)]
        summary.cancelled = cancel_event.is_set()
        summary.critical_success_indicators = self.critical_success_indicators(summary.records)
        summary.compliance_metrics = self.scorer.score_principles(summary.records, self.catalog)
        summary.overall_compliance_score = self.scorer.overall_score(summary.compliance_metrics)
        summary.ended_at = _utcnow()

        self.logger.log_event(
            "INFO",
            f"Batch {batch_id} finished: {summary.passed_tests} passed, "
            f"{summary.warning_tests} warnings, {summary.failed_tests} failed",
            event="batch_finished",
            batch_id=batch_id,
            total=summary.total_tests,
            success_rate=round(summary.success_rate, 2),
            cancelled=summary.cancelled,
            not_started=summary.not_started,
        )
        self.hooks.execute_hooks(HookType.POST_BATCH, {"batch_id": batch_id, "summary": summary})
        return summary

    # ------------------------------------------------------------------
    # Entry execution
    # ------------------------------------------------------------------

    def _run_entry(
        self,
        validation_id: str,
        batch_id: str,
        cancel_event: threading.Event,
    ) -> Optional[RunRecord]:
        """Run one entry to a terminal RunRecord; None if cancelled before start."""
        if cancel_event.is_set():
            return None
        record = RunRecord(validation_id=validation_id, batch_id=batch_id)
        try:
            spec = self.catalog.get(validation_id)
        except UnknownValidationError as e:
            record.start()
            log = ExecutionLog()
            log.log(f"Lookup failed: {e.message}")
            record.finish(ValidationResult.failed(
                f"Unknown validation id '{validation_id}'", e.message, log.lines, error_kind=e.error_kind
            ))
            self.logger.error(e.message, batch_id=batch_id, validation_id=validation_id)
            return record

        context = {"batch_id": batch_id, "validation_id": spec.id, "category": spec.category, "spec": spec}
        self.hooks.execute_hooks(HookType.PRE_ENTRY, context)
        record.start()
        with time_block(f"entry:{spec.id}"):
            result = self._execute(spec, cancel_event)
        record.finish(result)

        self.logger.log_event(
            "ERROR" if record.status == RunStatus.FAILED else "INFO",
            f"{spec.id}: {record.status.value} - {record.outcome}",
            event="entry_finished",
            batch_id=batch_id,
            validation_id=spec.id,
            run_id=record.run_id,
            status=record.status.value,
            duration_seconds=record.duration_seconds,
            error_kind=record.result.error_kind if record.result else None,
        )
        self.hooks.execute_hooks(HookType.POST_ENTRY, {**context, "record": record, "status": record.status})
        return record

    def _execute(
        self,
        spec: ValidationSpec,
        cancel_event: threading.Event,
    ) -> ValidationResult:
        log = ExecutionLog()
        log.log(f"Starting {spec.id} ({spec.name})")
        fixtures = FixtureScope(self.repository, owner=spec.id)
        ctx = CheckContext(
            spec=spec,
            repository=self.repository,
            config=self.config,
            fixtures=fixtures,
            probes=self.probes,
            scope=self.scope,
            log=log,
            cancel_event=cancel_event,
        )
        check_fn = self.checks.get(spec.id) or not_implemented
        timeout = self.timeout_for(spec)

        result: Optional[ValidationResult] = None
        error: Optional[BaseException] = None
        future = self._start_check(check_fn, ctx)
        try:
            result = future.result(timeout=timeout)
        except FuturesTimeoutError:
            error = ProbeTimeoutError(spec.id, timeout)
        except Exception as e:
            error = e
        finally:
            # Idempotent; also refuses acquisitions from a still-running check
            release_errors = fixtures.close()

        for message in release_errors:
            self.logger.warning(message, validation_id=spec.id)
        if error is not None:
            return self.result_from_exception(error, log)
        if not isinstance(result, ValidationResult):
            return self.result_from_exception(
                TypeError(f"Check for '{spec.id}' returned {type(result).__name__}, not a ValidationResult"), log
            )
        # The trail always opens with the orchestrator's own lines
        missing = tuple(line for line in log.lines if line not in result.logs)
        return result.with_logs(missing) if missing else result

    @staticmethod
    def _invoke(check_fn, ctx: CheckContext) -> ValidationResult:
        with ctx.fixtures:
            return check_fn(ctx)

    @classmethod
    def _start_check(cls, check_fn, ctx: CheckContext) -> Future:
        """Run a check on its own daemon thread.

        The timeout clock starts with the check itself, and a hung check
        only ever holds its own thread. Checks that time out keep running
        until they return, but the closed FixtureScope refuses any further
        acquisition.
        """
        future: Future = Future()
        future.set_running_or_notify_cancel()

        def target() -> None:
            try:
                future.set_result(cls._invoke(check_fn, ctx))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=target, name=f"check-{ctx.spec.id}", daemon=True).start()
        return future

    def result_from_exception(self, error: BaseException, log: ExecutionLog) -> ValidationResult:
        """Convert an exception raised while running a check into a result."""
        if isinstance(error, ConfigurationError):
            log.log(f"Integration not configured: {error.message}")
            return ValidationResult.warned(f"Integration not configured: {error.message}", log.lines)

        if isinstance(error, ResilienceError):
            message, kind = error.message, error.error_kind
            hints = self._error_catalog.enrich(error).resolution_hints
        else:
            message, kind = str(error) or type(error).__name__, "exception"
            hints = self._error_catalog.find_resolution_hints(message)
        log.log(f"Error ({kind}): {message}")
        for hint in hints:
            log.log(f"Hint: {hint.title} - {hint.description}")

        outcome = {
            "timeout": message,
            "threshold": message,
            "data_access": f"Data access failed: {message}",
        }.get(kind, f"Unexpected error: {message}")
        return ValidationResult.failed(outcome, message, log.lines, error_kind=kind)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def critical_success_indicators(self, records: List[RunRecord]) -> Dict[str, bool]:
        """Named boolean predicates over the terminal records of a batch."""
        by_id = {r.validation_id: r for r in records}

        def passed(validation_id: str) -> bool:
            record = by_id.get(validation_id)
            return record is not None and record.status == RunStatus.PASSED

        passed_count = sum(1 for r in records if r.status == RunStatus.PASSED)
        failed_count = sum(1 for r in records if r.status == RunStatus.FAILED)
        critical = [
            r for r in records
            if r.validation_id in self.catalog
            and self.catalog.get(r.validation_id).priority == Priority.CRITICAL
        ]
        return {
            "zero_mock_data": passed_count > failed_count,
            "production_ai": passed("ai-completion-production"),
            "realtime_sync": passed("realtime-subscription"),
            "email_sla": passed("email-delivery"),
            "regulatory_compliance": all(r.status == RunStatus.PASSED for r in critical),
        }
