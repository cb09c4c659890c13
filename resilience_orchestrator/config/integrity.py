"""Data-integrity rule sets and verdict thresholds.

Every pattern, field list and cutoff used by the integrity analyzer is
declared here so it can be tuned from YAML without code changes.
"""

from __future__ import annotations

import re
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Mock / synthetic data detection
# =============================================================================

DEFAULT_MOCK_TABLES = [
    "kri_logs",
    "kri_definitions",
    "incident_logs",
    "controls",
    "third_party_profiles",
    "vendor_risk_alerts",
    "appetite_breach_logs",
    "business_functions",
    "governance_policies",
    "continuity_plans",
]


def _check_regex(pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid regex {pattern!r}: {e}") from e


class MockDataRules(BaseModel):
    """Rule set used to flag seeded, placeholder or synthetic records."""
    substrings: List[str] = Field(
        default_factory=lambda: [
            "mock", "test", "dummy", "sample", "placeholder", "example",
            "lorem ipsum", "john doe", "fake", "demo",
            "999-999-9999", "123-456-7890",
        ],
        description="Case-insensitive substrings that flag a string field",
    )
    email_patterns: List[str] = Field(
        default_factory=lambda: [
            r"^test@test\.com$",
            r"@example\.(com|org|net)$",
            r"^(test|mock|demo|fake|dummy)[^@]*@",
        ],
        description="Regexes applied to values that look like email addresses",
    )
    incremental_pattern: str = Field(
        default=r"^(test|mock|sample|demo)\s*\d+",
        description="Regex for numbered seed values such as 'Test 12'",
    )
    generic_placeholder_pattern: str = Field(
        default=r"^(vendor|company|supplier|customer|user|organization|control|incident)\s*\d*$",
        description="Regex for bare entity-name placeholders such as 'Vendor 3'",
    )
    excluded_fields: List[str] = Field(
        default_factory=lambda: ["id", "org_id"],
        description="Fields never scanned (identifiers)",
    )
    tables: List[str] = Field(default_factory=lambda: list(DEFAULT_MOCK_TABLES), description="Tables scanned for mock data")

    @field_validator("email_patterns")
    @classmethod
    def _compile_email_patterns(cls, v: List[str]) -> List[str]:
        for pattern in v:
            _check_regex(pattern)
        return v

    @field_validator("incremental_pattern", "generic_placeholder_pattern")
    @classmethod
    def _compile_pattern(cls, v: str) -> str:
        _check_regex(v)
        return v


class MockDataThresholds(BaseModel):
    """Mock percentage bands: above fail_above_pct fails, at or above warn_at_pct warns."""
    fail_above_pct: float = Field(default=30.0, ge=0.0, le=100.0)
    warn_at_pct: float = Field(default=15.0, ge=0.0, le=100.0)


# =============================================================================
# Referential integrity
# =============================================================================

class ForeignKeyRelation(BaseModel):
    """Declared child -> parent relationship."""
    child_table: str
    child_key: str
    parent_table: str
    parent_key: str = "id"


class ForeignKeyThresholds(BaseModel):
    fail_below_score: float = Field(default=95.0, ge=0.0, le=100.0)
    warn_below_score: float = Field(default=98.0, ge=0.0, le=100.0)
    max_total_violations: int = Field(default=10, ge=0, description="More violations than this fails")


# =============================================================================
# Completeness
# =============================================================================

class CompletenessThresholds(BaseModel):
    fail_below_pct: float = Field(default=85.0, ge=0.0, le=100.0, description="Overall score failing cutoff")
    warn_below_pct: float = Field(default=95.0, ge=0.0, le=100.0, description="Overall score warning cutoff")
    table_floor_pct: float = Field(default=90.0, ge=0.0, le=100.0, description="Per-table floor")
    max_tables_below_floor: int = Field(default=2, ge=0, description="More tables under the floor than this fails")


# =============================================================================
# Temporal ordering
# =============================================================================

class TemporalRule(BaseModel):
    """``earlier_field`` must not come after ``later_field`` on the same row."""
    table: str
    earlier_field: str
    later_field: str
    description: str = ""
    compare_dates_only: bool = Field(default=False, description="Compare calendar dates instead of instants")


class TemporalThresholds(BaseModel):
    fail_above_violations: int = Field(default=5, ge=0)
    fail_below_pct: float = Field(default=95.0, ge=0.0, le=100.0)
    warn_below_pct: float = Field(default=98.0, ge=0.0, le=100.0)


# =============================================================================
# Business rules
# =============================================================================

class MaxRatioRule(BaseModel):
    """``field`` must not exceed ``factor`` times ``reference_field``."""
    kind: Literal["max_ratio"] = "max_ratio"
    name: str
    table: str
    field: str
    reference_field: str
    factor: float = Field(default=10.0, gt=0.0)


class ForbiddenPairRule(BaseModel):
    """Rows where ``field == equals`` must not carry any of ``forbidden_values`` in ``other_field``."""
    kind: Literal["forbidden_pair"] = "forbidden_pair"
    name: str
    table: str
    field: str
    equals: str
    other_field: str
    forbidden_values: List[str]


class ElapsedBoundRule(BaseModel):
    """Hours between ``start_field`` and ``end_field`` must not exceed the bound for ``index_field``."""
    kind: Literal["elapsed_bound"] = "elapsed_bound"
    name: str
    table: str
    start_field: str
    end_field: str
    index_field: str
    bounds_hours: Dict[str, float]


BusinessRule = Annotated[
    Union[MaxRatioRule, ForbiddenPairRule, ElapsedBoundRule],
    Field(discriminator="kind"),
]


class BusinessRuleThresholds(BaseModel):
    fail_above_violations: int = Field(default=10, ge=0)


# =============================================================================
# Entity-specific checks
# =============================================================================

class KRILogRules(BaseModel):
    table: str = "kri_logs"
    sample_limit: int = Field(default=100, ge=1)
    value_field: str = "actual_value"
    date_fields: List[str] = Field(default_factory=lambda: ["measurement_date", "created_at"])
    min_real_data_pct: float = Field(default=80.0, ge=0.0, le=100.0)
    min_valid_date_pct: float = Field(default=95.0, ge=0.0, le=100.0)


class VendorAlertRules(BaseModel):
    table: str = "vendor_risk_alerts"
    sample_limit: int = Field(default=50, ge=1)
    name_field: str = "vendor_name"
    invalid_name_substrings: List[str] = Field(default_factory=lambda: ["test", "mock", "sample"])
    min_real_name_pct: float = Field(default=70.0, ge=0.0, le=100.0)


class FreshnessRule(BaseModel):
    table: str = "kri_logs"
    timestamp_field: str = "created_at"
    max_age_hours: float = Field(default=24.0, gt=0.0)


# =============================================================================
# Aggregate
# =============================================================================

class IntegritySettings(BaseModel):
    """Integrity analyzer configuration."""
    sample_limit: int = Field(default=100, ge=1, le=10000, description="Maximum records sampled per table")
    parent_id_limit: int = Field(default=10000, ge=1, description="Maximum parent ids loaded for a relationship")

    mock_rules: MockDataRules = Field(default_factory=MockDataRules)
    mock_thresholds: MockDataThresholds = Field(default_factory=MockDataThresholds)

    foreign_keys: List[ForeignKeyRelation] = Field(
        default_factory=lambda: [
            ForeignKeyRelation(child_table="kri_logs", child_key="kri_id", parent_table="kri_definitions"),
            ForeignKeyRelation(child_table="appetite_breach_logs", child_key="kri_id", parent_table="kri_definitions"),
            ForeignKeyRelation(child_table="vendor_risk_alerts", child_key="vendor_profile_id", parent_table="third_party_profiles"),
            ForeignKeyRelation(child_table="incident_logs", child_key="business_function_id", parent_table="business_functions"),
        ]
    )
    foreign_key_thresholds: ForeignKeyThresholds = Field(default_factory=ForeignKeyThresholds)

    critical_fields: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "kri_logs": ["kri_id", "actual_value", "measurement_date"],
            "incident_logs": ["title", "severity", "status", "reported_at"],
            "third_party_profiles": ["vendor_name", "criticality", "risk_rating"],
            "controls": ["title", "status", "owner"],
            "vendor_risk_alerts": ["vendor_name", "severity", "status"],
        }
    )
    completeness_thresholds: CompletenessThresholds = Field(default_factory=CompletenessThresholds)

    temporal_rules: List[TemporalRule] = Field(
        default_factory=lambda: [
            TemporalRule(
                table="kri_logs", earlier_field="measurement_date", later_field="created_at",
                description="measurement date must not be after record creation",
                compare_dates_only=True,
            ),
            TemporalRule(
                table="incident_logs", earlier_field="reported_at", later_field="first_response_at",
                description="first response must not precede the report",
            ),
            TemporalRule(
                table="incident_logs", earlier_field="reported_at", later_field="resolved_at",
                description="resolution must not precede the report",
            ),
        ]
    )
    temporal_thresholds: TemporalThresholds = Field(default_factory=TemporalThresholds)

    business_rules: List[BusinessRule] = Field(
        default_factory=lambda: [
            MaxRatioRule(
                name="kri_value_within_10x_target", table="kri_logs",
                field="actual_value", reference_field="target_value", factor=10.0,
            ),
            ForbiddenPairRule(
                name="critical_vendor_not_low_risk", table="third_party_profiles",
                field="criticality", equals="critical", other_field="risk_rating",
                forbidden_values=["low"],
            ),
            ElapsedBoundRule(
                name="incident_response_within_severity_bound", table="incident_logs",
                start_field="reported_at", end_field="first_response_at", index_field="severity",
                bounds_hours={"critical": 4.0, "high": 24.0, "medium": 72.0, "low": 168.0},
            ),
        ]
    )
    business_rule_thresholds: BusinessRuleThresholds = Field(default_factory=BusinessRuleThresholds)

    kri_logs: KRILogRules = Field(default_factory=KRILogRules)
    vendor_alerts: VendorAlertRules = Field(default_factory=VendorAlertRules)

    volume_minimums: Dict[str, int] = Field(
        default_factory=lambda: {
            "kri_logs": 100,
            "appetite_breach_logs": 10,
            "vendor_risk_alerts": 50,
            "controls": 25,
            "incident_logs": 20,
        }
    )
    freshness: FreshnessRule = Field(default_factory=FreshnessRule)
    scope_field: Optional[str] = Field(default="org_id", description="Column holding the owning-scope id")
