"""
Performance benchmark for repository operations and external probes.

Features:
- Timed repository reads against a per-operation latency target
- Process memory delta per operation (psutil)
- Burst probe that classifies each call as success / rejected / error
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import psutil

from ..config.performance import BenchmarkOperation, PerformanceSettings
from ..exceptions import ConfigurationError, ResilienceError
from ..integrations.probes import CompletionProbe, CompletionResponse
from ..integrations.repository import Repository
from .data_models import (
    BenchmarkReport,
    CallClassification,
    OperationStatus,
    OperationTiming,
    RateLimitReport,
)

logger = logging.getLogger(__name__)

_RATE_LIMIT_TEXT = re.compile(r"(rate.?limit|429|too many requests|quota)", re.IGNORECASE)


class PerformanceBenchmark:
    """Times representative operations and classifies burst responses."""

    def __init__(
        self,
        repository: Optional[Repository] = None,
        settings: Optional[PerformanceSettings] = None,
        scope: Optional[str] = None,
    ):
        self.repository = repository
        self.settings = settings or PerformanceSettings()
        self.scope = scope
        self._process = psutil.Process()

    def _memory_mb(self) -> float:
        return self._process.memory_info().rss / 1024 / 1024

    def time_operation(
        self,
        name: str,
        fn: Callable[[], Any],
        threshold_ms: Optional[float] = None,
    ) -> OperationTiming:
        """Run ``fn`` once and classify it against ``threshold_ms``.

        Exceptions raised by ``fn`` are recorded on the timing, not raised.
        """
        threshold = threshold_ms or self.settings.benchmark.target_ms
        start_mem = self._memory_mb()
        start = time.perf_counter()
        try:
            fn()
        except Exception as e:
            latency = (time.perf_counter() - start) * 1000
            logger.warning(f"Benchmark operation '{name}' failed: {e}")
            return OperationTiming(
                name=name, latency_ms=latency, threshold_ms=threshold,
                status=OperationStatus.ERROR, error_message=str(e),
            )
        latency = (time.perf_counter() - start) * 1000
        return OperationTiming(
            name=name,
            latency_ms=latency,
            threshold_ms=threshold,
            status=OperationStatus.OK if latency <= threshold else OperationStatus.SLOW,
            memory_delta_mb=self._memory_mb() - start_mem,
        )

    def run(self, operations: Dict[str, Callable[[], Any]]) -> BenchmarkReport:
        """Time an arbitrary set of named callables."""
        cfg = self.settings.benchmark
        report = BenchmarkReport(
            target_ms=cfg.target_ms,
            min_under_target_pct=cfg.min_under_target_pct,
            max_failed_pct=cfg.max_failed_pct,
        )
        for name, fn in operations.items():
            report.operations.append(self.time_operation(name, fn))
        return report

    def _repository_call(self, op: BenchmarkOperation) -> Callable[[], Any]:
        if self.repository is None:
            raise ValueError("PerformanceBenchmark needs a repository for repository operations")
        if op.kind == "count":
            return lambda: self.repository.count(op.table, scope=self.scope)
        return lambda: self.repository.fetch(op.table, scope=self.scope, limit=op.limit)

    def run_repository_benchmark(
        self, operations: Optional[Iterable[BenchmarkOperation]] = None
    ) -> BenchmarkReport:
        """Time the configured representative repository operations."""
        calls: Dict[str, Callable[[], Any]] = {}
        for op in operations or self.settings.benchmark.operations:
            fn = self._repository_call(op)
            for i in range(op.repeat):
                calls[op.name if op.repeat == 1 else f"{op.name}#{i + 1}"] = fn
        report = self.run(calls)
        logger.info(
            f"Repository benchmark: {report.under_target_pct:.1f}% under "
            f"{report.target_ms:g}ms, avg {report.average_ms:.1f}ms, max {report.max_ms:.1f}ms"
        )
        return report

    # ------------------------------------------------------------------
    # Cost control
    # ------------------------------------------------------------------

    @staticmethod
    def classify(call: Callable[[], CompletionResponse]) -> Tuple[CallClassification, Optional[str]]:
        """Return ``(classification, error_text)`` for a single call.

        Raises:
            ConfigurationError: The integration itself is misconfigured
        """
        try:
            response = call()
        except ConfigurationError:
            raise
        except ResilienceError as e:
            if _RATE_LIMIT_TEXT.search(e.message):
                return CallClassification.REJECTED, None
            return CallClassification.ERROR, e.message or type(e).__name__
        except Exception as e:
            if _RATE_LIMIT_TEXT.search(str(e)):
                return CallClassification.REJECTED, None
            return CallClassification.ERROR, str(e) or type(e).__name__
        if getattr(response, "rejected", False):
            return CallClassification.REJECTED, None
        return CallClassification.SUCCESS, None

    def probe_rate_limit(self, probe: CompletionProbe) -> RateLimitReport:
        """Issue a concurrent burst of identical completion calls and classify each."""
        cfg = self.settings.rate_limit
        report = RateLimitReport(
            burst_size=cfg.burst_size,
            expected_limit=cfg.expected_limit,
            cost_per_request=cfg.cost_per_request,
        )

        def call() -> CompletionResponse:
            return probe.complete(cfg.prompt)

        with ThreadPoolExecutor(max_workers=cfg.burst_size, thread_name_prefix="burst") as executor:
            futures = [executor.submit(self.classify, call) for _ in range(cfg.burst_size)]
            # Submission order; a ConfigurationError from any call propagates
            for future in futures:
                outcome, error = future.result()
                report.outcomes.append(outcome)
                if error:
                    report.errors.append(error)
        logger.info(
            f"Rate-limit burst: {report.successes} ok, {report.rejected} rejected, "
            f"{report.failed} errors (cost control active: {report.cost_control_active})"
        )
        return report
