"""
Structured exception hierarchy with execution context for validation runs.

All exceptions include:
- correlation_id: Trace an error back to its batch and validation entry
- execution_context: Batch, validation id, category, timing
- resolution_hints: Actionable suggestions for common issues
- error_kind: Short machine-readable label copied onto failed run records
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


class ErrorSeverity(str, Enum):
    """Error severity levels for triage and alerting"""
    CRITICAL = "critical"      # Whole batch cannot proceed
    ERROR = "error"            # Entry failed
    WARNING = "warning"        # Entry degraded, not failed


class ErrorCategory(str, Enum):
    """Error categories for diagnostics and resolution routing"""
    CONFIGURATION = "configuration"    # Integration absent or misconfigured
    THRESHOLD = "threshold"            # Measured value outside a numeric bound
    DATA_ACCESS = "data_access"        # Repository or probe call failed
    CATALOG = "catalog"                # Unknown or duplicate validation id
    TIMEOUT = "timeout"                # Entry exceeded its category timeout
    BATCH = "batch"                    # Caller-level failure


@dataclass
class ExecutionContext:
    """Execution context for error diagnosis"""

    batch_id: Optional[str] = None
    validation_id: Optional[str] = None
    category: Optional[str] = None
    operation: Optional[str] = None

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    elapsed_seconds: Optional[float] = None

    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize context for logging and storage"""
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }


@dataclass
class ResolutionHint:
    """Actionable resolution guidance for common error patterns"""

    title: str
    description: str
    steps: List[str]
    documentation_url: Optional[str] = None
    estimated_resolution_time: Optional[str] = None


class ResilienceError(Exception):
    """
    Base exception for the validation engine with structured context.

    Subclasses set ``error_kind`` so the orchestrator can label a failed
    run record without inspecting exception types.
    """

    error_kind = "exception"

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ExecutionContext] = None,
        category: ErrorCategory = ErrorCategory.DATA_ACCESS,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[BaseException] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ExecutionContext()
        self.category = category
        self.severity = severity
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception
        self.additional_data = kwargs

    def format_diagnostic_message(self) -> str:
        """
        Format diagnostic message for logs and operator display.

        Returns multi-line formatted error with the message, severity,
        execution context, resolution hints and original exception.
        """
        lines = [
            f"{'='*80}",
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
            f"{'='*80}",
            "",
            "EXECUTION CONTEXT:",
        ]

        context_dict = self.context.to_dict()
        for key, value in context_dict.items():
            if key == 'metadata' and isinstance(value, dict):
                for meta_key, meta_value in value.items():
                    lines.append(f"  {meta_key}: {meta_value}")
            else:
                lines.append(f"  {key}: {value}")

        if self.resolution_hints:
            lines.append("")
            lines.append("RESOLUTION HINTS:")
            for i, hint in enumerate(self.resolution_hints, 1):
                lines.append(f"\n{i}. {hint.title}")
                lines.append(f"   {hint.description}")
                if hint.steps:
                    lines.append("   Steps:")
                    for step in hint.steps:
                        lines.append(f"     - {step}")
                if hint.documentation_url:
                    lines.append(f"   Docs: {hint.documentation_url}")
                if hint.estimated_resolution_time:
                    lines.append(f"   Est. Time: {hint.estimated_resolution_time}")

        if self.original_exception:
            lines.append("")
            lines.append("ORIGINAL EXCEPTION:")
            lines.append(f"  {type(self.original_exception).__name__}: {str(self.original_exception)}")

        lines.append("")
        lines.append(f"{'='*80}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging and storage"""
        return {
            "error_type": self.__class__.__name__,
            "error_kind": self.error_kind,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "resolution_hints": [
                {
                    "title": hint.title,
                    "description": hint.description,
                    "steps": hint.steps,
                    "documentation_url": hint.documentation_url,
                    "estimated_time": hint.estimated_resolution_time
                }
                for hint in self.resolution_hints
            ],
            "original_exception": str(self.original_exception) if self.original_exception else None,
            **self.additional_data
        }


class ConfigurationError(ResilienceError):
    """Required external integration is absent or misconfigured.

    Expected outside production, so the orchestrator records the entry as
    a warning instead of a failure.
    """

    error_kind = "configuration"

    def __init__(self, message: str, integration: Optional[str] = None, **kwargs):
        if integration:
            kwargs["integration"] = integration
        kwargs.setdefault("severity", ErrorSeverity.WARNING)
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.integration = integration


class ThresholdViolation(ResilienceError):
    """A measured value fails a documented numeric bound."""

    error_kind = "threshold"

    def __init__(
        self,
        message: str,
        measured: Optional[float] = None,
        bound: Optional[float] = None,
        **kwargs
    ):
        if measured is not None and bound is not None:
            message = f"{message} (measured {measured:g}, bound {bound:g})"
        super().__init__(
            message,
            category=ErrorCategory.THRESHOLD,
            measured=measured,
            bound=bound,
            **kwargs
        )
        self.measured = measured
        self.bound = bound


class DataAccessError(ResilienceError):
    """Repository or external-probe call raised or returned an error"""

    error_kind = "data_access"

    def __init__(self, message: str, table: Optional[str] = None, **kwargs):
        if table:
            kwargs["table"] = table
        super().__init__(message, category=ErrorCategory.DATA_ACCESS, **kwargs)
        self.table = table


class UnknownValidationError(ResilienceError):
    """Requested validation id is not present in the catalog"""

    error_kind = "unknown_validation"

    def __init__(self, validation_id: str, **kwargs):
        super().__init__(
            f"Unknown validation id: {validation_id}",
            category=ErrorCategory.CATALOG,
            **kwargs
        )
        self.validation_id = validation_id


class ProbeTimeoutError(ResilienceError):
    """Entry exceeded the timeout configured for its category"""

    error_kind = "timeout"

    def __init__(self, validation_id: str, timeout_seconds: float, **kwargs):
        super().__init__(
            f"Validation '{validation_id}' timed out after {timeout_seconds:g}s",
            category=ErrorCategory.TIMEOUT,
            timeout_seconds=timeout_seconds,
            **kwargs
        )
        self.validation_id = validation_id
        self.timeout_seconds = timeout_seconds


class BatchAbortedError(ResilienceError):
    """Caller-level failure that prevents the whole batch from running"""

    error_kind = "batch_aborted"

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.BATCH,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )
