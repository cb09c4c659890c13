"""
Resilience Orchestrator core package.

Validation catalog, sampled data-integrity analysis, compliance scoring,
benchmarks and the batch orchestrator that runs them against a
repository and external probes.
"""

from _version import __version__, get_full_version, get_version_dict

from .catalog import (DEFAULT_SPECS, Priority, TimeoutClass, ValidationCatalog,
                      ValidationCategory, ValidationSpec, build_default_catalog)
from .compliance import ComplianceMetric, ComplianceScorer
from .config import ValidationConfig, load_validation_config
from .error_catalog import ErrorCatalog, get_error_catalog
from .exceptions import (BatchAbortedError, ConfigurationError, DataAccessError,
                         ProbeTimeoutError, ResilienceError, ThresholdViolation,
                         UnknownValidationError)
from .execution import (BatchSummary, CheckContext, CheckRegistry, FixtureScope,
                        HookManager, HookType, RunRecord, RunStatus,
                        ValidationOrchestrator, ValidationResult)
from .integrations import (DuckDBRepository, InMemoryRepository, ProbeSet,
                           probes_from_env)
from .integrity import DataIntegrityAnalyzer, IntegrityReport
from .logger import JSONFormatter, ProductionLogger, get_logger
from .monitoring import BenchmarkReport, PerformanceBenchmark, RateLimitReport
from .reports import (AuditTrailEntry, AuditTrailGenerator, AuditTrailStore,
                      ConsoleReporter, ReadinessInputs, ReadinessReport,
                      ReadinessReporter)
from .run_summary import RunIssue, RunSummaryGenerator
from .scheduling import Frequency, ScheduleConfig, ScheduleStore
from .verdict import Verdict

__all__ = [
    # Version
    "__version__",
    "get_full_version",
    "get_version_dict",
    # Catalog
    "DEFAULT_SPECS",
    "Priority",
    "TimeoutClass",
    "ValidationCatalog",
    "ValidationCategory",
    "ValidationSpec",
    "build_default_catalog",
    # Config
    "ValidationConfig",
    "load_validation_config",
    # Errors
    "ErrorCatalog",
    "get_error_catalog",
    "ResilienceError",
    "ConfigurationError",
    "ThresholdViolation",
    "DataAccessError",
    "UnknownValidationError",
    "ProbeTimeoutError",
    "BatchAbortedError",
    # Execution
    "ValidationOrchestrator",
    "ValidationResult",
    "RunRecord",
    "RunStatus",
    "BatchSummary",
    "CheckContext",
    "CheckRegistry",
    "FixtureScope",
    "HookManager",
    "HookType",
    # Integrations
    "DuckDBRepository",
    "InMemoryRepository",
    "ProbeSet",
    "probes_from_env",
    # Analysis
    "DataIntegrityAnalyzer",
    "IntegrityReport",
    "ComplianceScorer",
    "ComplianceMetric",
    "PerformanceBenchmark",
    "BenchmarkReport",
    "RateLimitReport",
    "Verdict",
    # Reporting
    "AuditTrailEntry",
    "AuditTrailGenerator",
    "AuditTrailStore",
    "ConsoleReporter",
    "ReadinessInputs",
    "ReadinessReport",
    "ReadinessReporter",
    "RunIssue",
    "RunSummaryGenerator",
    # Scheduling
    "Frequency",
    "ScheduleConfig",
    "ScheduleStore",
    # Logging
    "JSONFormatter",
    "ProductionLogger",
    "get_logger",
]
