"""Validation engine configuration.

Settings are split by concern; everything is re-exported here so callers
import from ``resilience_orchestrator.config`` only.
"""

from .compliance import ComplianceBands, ComplianceSettings
from .execution import ExecutionSettings, ProbeSettings, TimeoutSettings
from .integrity import (
    BusinessRule,
    CompletenessThresholds,
    ElapsedBoundRule,
    ForbiddenPairRule,
    ForeignKeyRelation,
    ForeignKeyThresholds,
    FreshnessRule,
    IntegritySettings,
    KRILogRules,
    MaxRatioRule,
    MockDataRules,
    MockDataThresholds,
    TemporalRule,
    TemporalThresholds,
    VendorAlertRules,
)
from .loader import (
    ValidationConfig,
    dump_validation_config,
    load_validation_config,
)
from .paths import (
    get_artifacts_dir,
    get_database_path,
    get_default_config_path,
    get_project_root,
)
from .performance import (
    BenchmarkOperation,
    BenchmarkSettings,
    LatencyThresholds,
    PerformanceSettings,
    RateLimitSettings,
)
from .reporting import (
    AuditSettings,
    ReadinessBounds,
    ReadinessPenalties,
    ReadinessSettings,
    ReportingSettings,
)

__all__ = [
    # Top level
    "ValidationConfig",
    "load_validation_config",
    "dump_validation_config",
    # Paths
    "get_project_root",
    "get_default_config_path",
    "get_database_path",
    "get_artifacts_dir",
    # Integrity
    "IntegritySettings",
    "MockDataRules",
    "MockDataThresholds",
    "ForeignKeyRelation",
    "ForeignKeyThresholds",
    "CompletenessThresholds",
    "TemporalRule",
    "TemporalThresholds",
    "BusinessRule",
    "MaxRatioRule",
    "ForbiddenPairRule",
    "ElapsedBoundRule",
    "KRILogRules",
    "VendorAlertRules",
    "FreshnessRule",
    # Compliance
    "ComplianceSettings",
    "ComplianceBands",
    # Performance
    "PerformanceSettings",
    "LatencyThresholds",
    "BenchmarkSettings",
    "BenchmarkOperation",
    "RateLimitSettings",
    # Execution
    "ExecutionSettings",
    "TimeoutSettings",
    "ProbeSettings",
    # Reporting
    "ReportingSettings",
    "ReadinessSettings",
    "ReadinessPenalties",
    "ReadinessBounds",
    "AuditSettings",
]
