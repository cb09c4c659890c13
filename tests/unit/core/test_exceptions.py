"""Tests for the structured exception hierarchy and error catalog."""

import pytest

from resilience_orchestrator.error_catalog import ErrorCatalog, get_error_catalog
from resilience_orchestrator.exceptions import (
    BatchAbortedError,
    ConfigurationError,
    DataAccessError,
    ErrorCategory,
    ErrorSeverity,
    ExecutionContext,
    ProbeTimeoutError,
    ResilienceError,
    ResolutionHint,
    ThresholdViolation,
    UnknownValidationError,
)


class TestExecutionContext:
    def test_to_dict_drops_unset_fields(self):
        context = ExecutionContext(batch_id="b-1", validation_id="rate-limiting")
        data = context.to_dict()
        assert data["batch_id"] == "b-1"
        assert data["validation_id"] == "rate-limiting"
        assert "category" not in data
        assert "elapsed_seconds" not in data
        assert len(data["correlation_id"]) == 8


class TestErrorKinds:
    @pytest.mark.parametrize(
        "error, kind, category",
        [
            (ConfigurationError("Email probe not configured", integration="email"), "configuration", ErrorCategory.CONFIGURATION),
            (ThresholdViolation("Too slow"), "threshold", ErrorCategory.THRESHOLD),
            (DataAccessError("boom", table="kri_logs"), "data_access", ErrorCategory.DATA_ACCESS),
            (UnknownValidationError("nope"), "unknown_validation", ErrorCategory.CATALOG),
            (ProbeTimeoutError("session-management", 5), "timeout", ErrorCategory.TIMEOUT),
            (BatchAbortedError("Repository unreachable"), "batch_aborted", ErrorCategory.BATCH),
        ],
    )
    def test_kind_and_category(self, error, kind, category):
        assert isinstance(error, ResilienceError)
        assert error.error_kind == kind
        assert error.category == category

    def test_configuration_error_defaults_to_warning(self):
        error = ConfigurationError("Completion probe not configured", integration="completion")
        assert error.severity == ErrorSeverity.WARNING
        assert error.integration == "completion"
        assert error.to_dict()["integration"] == "completion"

    def test_batch_aborted_is_critical(self):
        assert BatchAbortedError("down").severity == ErrorSeverity.CRITICAL

    def test_threshold_message_includes_bounds(self):
        error = ThresholdViolation("Query latency above limit", measured=812.5, bound=500)
        assert str(error) == "Query latency above limit (measured 812.5, bound 500)"
        assert error.measured == 812.5
        assert error.bound == 500

    def test_timeout_message(self):
        error = ProbeTimeoutError("ai-chat", 2.5)
        assert error.message == "Validation 'ai-chat' timed out after 2.5s"
        assert error.timeout_seconds == 2.5

    def test_unknown_validation_keeps_id(self):
        error = UnknownValidationError("kri-missing")
        assert error.validation_id == "kri-missing"
        assert "kri-missing" in str(error)


class TestDiagnostics:
    def test_format_diagnostic_message(self):
        original = ValueError("connection reset")
        error = DataAccessError(
            "Query against kri_logs failed",
            table="kri_logs",
            context=ExecutionContext(batch_id="b-7", validation_id="kri-logging"),
            resolution_hints=[
                ResolutionHint(title="Retry", description="Transient failure", steps=["Run the batch again"]),
            ],
            original_exception=original,
        )
        text = error.format_diagnostic_message()
        assert "ERROR: Query against kri_logs failed" in text
        assert "Severity: ERROR | Category: data_access" in text
        assert "batch_id: b-7" in text
        assert "1. Retry" in text
        assert "- Run the batch again" in text
        assert "ValueError: connection reset" in text

    def test_to_dict(self):
        error = ThresholdViolation("Mock data above limit", measured=3.5, bound=1.0)
        data = error.to_dict()
        assert data["error_type"] == "ThresholdViolation"
        assert data["error_kind"] == "threshold"
        assert data["severity"] == "error"
        assert data["measured"] == 3.5
        assert data["original_exception"] is None


class TestErrorCatalog:
    def test_matches_timeout(self):
        catalog = ErrorCatalog()
        hints = catalog.find_resolution_hints("Validation 'x' timed out after 5s")
        assert [h.title for h in hints] == ["Check Upstream Latency"]

    def test_no_match(self):
        assert ErrorCatalog().find_resolution_hints("everything is fine") == []

    def test_enrich_only_fills_missing_hints(self):
        catalog = ErrorCatalog()
        error = DataAccessError("Table kri_logs does not exist")
        assert catalog.enrich(error).resolution_hints[0].title == "Verify Schema Migrations"

        existing = ResolutionHint(title="Custom", description="d", steps=[])
        error = DataAccessError("Table kri_logs does not exist", resolution_hints=[existing])
        assert catalog.enrich(error).resolution_hints == [existing]

    def test_global_catalog_is_singleton(self):
        assert get_error_catalog() is get_error_catalog()
