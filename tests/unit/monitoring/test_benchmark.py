"""Tests for repository benchmarks and the rate-limit burst probe."""

import time

import pytest

from resilience_orchestrator.config.performance import (
    BenchmarkOperation,
    BenchmarkSettings,
    PerformanceSettings,
    RateLimitSettings,
)
from resilience_orchestrator.exceptions import ConfigurationError, DataAccessError
from resilience_orchestrator.integrations.probes import CompletionResponse
from resilience_orchestrator.monitoring import (
    BenchmarkReport,
    CallClassification,
    OperationStatus,
    OperationTiming,
    PerformanceBenchmark,
    RateLimitReport,
)
from resilience_orchestrator.verdict import Verdict
from tests.fixtures.probes import FakeCompletionProbe


def _timing(status, latency=10.0):
    return OperationTiming(name="op", latency_ms=latency, threshold_ms=100.0, status=status)


class TestBenchmarkReport:
    def test_all_fast_passes(self):
        report = BenchmarkReport(target_ms=100.0, operations=[_timing(OperationStatus.OK)] * 20)
        assert report.under_target_pct == 100.0
        assert report.verdict == Verdict.PASS

    def test_too_many_slow_fails(self):
        ops = [_timing(OperationStatus.OK)] * 18 + [_timing(OperationStatus.SLOW, 150.0)] * 2
        report = BenchmarkReport(target_ms=100.0, operations=ops)
        assert report.under_target_pct == pytest.approx(90.0)
        assert report.verdict == Verdict.FAIL

    def test_errors_above_limit_fail(self):
        ops = [_timing(OperationStatus.OK)] * 3 + [_timing(OperationStatus.ERROR)] * 2
        report = BenchmarkReport(target_ms=100.0, min_under_target_pct=0.0, operations=ops)
        assert report.failed_pct == pytest.approx(40.0)
        assert report.verdict == Verdict.FAIL

    def test_slow_average_warns(self):
        ops = [_timing(OperationStatus.OK, 90.0)] * 19 + [_timing(OperationStatus.SLOW, 500.0)]
        report = BenchmarkReport(target_ms=100.0, min_under_target_pct=90.0, operations=ops)
        assert report.average_ms > 100.0
        assert report.verdict == Verdict.WARN

    def test_error_latency_excluded_from_stats(self):
        ops = [_timing(OperationStatus.OK, 20.0), _timing(OperationStatus.ERROR, 9999.0)]
        report = BenchmarkReport(target_ms=100.0, min_under_target_pct=0.0, max_failed_pct=60.0, operations=ops)
        assert report.average_ms == 20.0
        assert report.max_ms == 20.0


class TestPerformanceBenchmark:
    def test_time_operation_classifies(self):
        bench = PerformanceBenchmark()
        assert bench.time_operation("fast", lambda: None, threshold_ms=1000).status == OperationStatus.OK
        assert bench.time_operation("slow", lambda: time.sleep(0.02), threshold_ms=1).status == OperationStatus.SLOW

    def test_time_operation_records_errors(self):
        def boom():
            raise DataAccessError("Table 'kri_logs' does not exist")

        timing = PerformanceBenchmark().time_operation("broken", boom)
        assert timing.status == OperationStatus.ERROR
        assert "does not exist" in timing.error_message
        assert timing.memory_delta_mb is None

    def test_repository_benchmark_on_clean_data(self, clean_repository):
        report = PerformanceBenchmark(clean_repository).run_repository_benchmark()
        assert [op.name for op in report.operations] == [
            "kri_logs_recent",
            "incident_logs_recent",
            "vendor_alerts_count",
            "controls_page",
            "third_party_profiles_page",
        ]
        assert report.verdict == Verdict.PASS

    def test_repeated_operations_are_numbered(self, clean_repository):
        ops = [BenchmarkOperation(name="kri", table="kri_logs", repeat=3)]
        report = PerformanceBenchmark(clean_repository).run_repository_benchmark(ops)
        assert [op.name for op in report.operations] == ["kri#1", "kri#2", "kri#3"]

    def test_missing_table_counts_as_error(self, clean_repository):
        ops = [BenchmarkOperation(name="ghost", table="ghost_table")]
        report = PerformanceBenchmark(clean_repository).run_repository_benchmark(ops)
        assert report.failed_pct == 100.0
        assert report.verdict == Verdict.FAIL

    def test_repository_required(self):
        with pytest.raises(ValueError):
            PerformanceBenchmark().run_repository_benchmark()


class TestRateLimit:
    @pytest.fixture
    def bench(self):
        return PerformanceBenchmark(settings=PerformanceSettings(rate_limit=RateLimitSettings(burst_size=12)))

    def test_limiter_engages(self, bench):
        report = bench.probe_rate_limit(FakeCompletionProbe(limit=10))
        assert report.successes == 10
        assert report.rejected == 2
        assert report.cost_control_active
        assert report.verdict == Verdict.PASS
        assert report.estimated_cost == pytest.approx(10 * 0.002)

    def test_no_rejection_fails(self, bench):
        report = bench.probe_rate_limit(FakeCompletionProbe())
        assert report.successes == 12
        assert report.verdict == Verdict.FAIL

    def test_rate_limit_exceptions_count_as_rejections(self):
        def throttled():
            raise RuntimeError("HTTP 429 Too Many Requests")

        assert PerformanceBenchmark.classify(throttled) == (CallClassification.REJECTED, None)

    def test_other_errors_recorded(self, bench):
        report = bench.probe_rate_limit(FakeCompletionProbe(error=DataAccessError("ai-completion request failed")))
        assert report.failed == 12
        assert report.errors[0] == "ai-completion request failed"
        assert report.verdict == Verdict.FAIL

    def test_burst_is_sent_concurrently(self, bench):
        probe = FakeCompletionProbe(delay=0.2, limit=10)
        started = time.perf_counter()
        report = bench.probe_rate_limit(probe)
        elapsed = time.perf_counter() - started

        assert probe.calls == 12
        assert report.successes == 10
        assert report.rejected == 2
        assert elapsed < 1.2

    def test_configuration_error_propagates(self, bench):
        probe = FakeCompletionProbe(error=ConfigurationError("Completion service rejected the API key (HTTP 401)"))
        with pytest.raises(ConfigurationError, match="HTTP 401"):
            bench.probe_rate_limit(probe)

    def test_rejected_response_flag(self):
        outcome, error = PerformanceBenchmark.classify(lambda: CompletionResponse(text="", rejected=True))
        assert outcome == CallClassification.REJECTED
        assert error is None

    def test_report_dict(self):
        report = RateLimitReport(burst_size=2, expected_limit=1, cost_per_request=0.5)
        report.outcomes = [CallClassification.SUCCESS, CallClassification.REJECTED]
        assert report.to_dict()["estimated_cost"] == 0.5
        assert report.to_dict()["verdict"] == "pass"
