"""Latency thresholds, benchmark operations and rate-limit probe settings."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field


class LatencyThresholds(BaseModel):
    """Per-operation latency ceilings in milliseconds."""
    database_query_ms: float = Field(default=2000.0, gt=0)
    database_bulk_ms: float = Field(default=10000.0, gt=0)
    database_join_ms: float = Field(default=5000.0, gt=0)
    database_indexed_ms: float = Field(default=500.0, gt=0)
    ai_simple_ms: float = Field(default=5000.0, gt=0)
    ai_complex_ms: float = Field(default=15000.0, gt=0)
    integration_api_ms: float = Field(default=3000.0, gt=0)
    integration_webhook_ms: float = Field(default=2000.0, gt=0)
    integration_email_ms: float = Field(default=5000.0, gt=0)
    realtime_subscription_ms: float = Field(default=1000.0, gt=0)
    auth_flow_ms: float = Field(default=3000.0, gt=0)


class BenchmarkOperation(BaseModel):
    """Representative repository operation timed by the benchmark."""
    name: str
    table: str
    kind: Literal["fetch", "count"] = "fetch"
    limit: int = Field(default=100, ge=1)
    repeat: int = Field(default=1, ge=1, le=100)


class BenchmarkSettings(BaseModel):
    target_ms: float = Field(default=2000.0, gt=0, description="Latency target per operation")
    min_under_target_pct: float = Field(default=95.0, ge=0.0, le=100.0)
    max_failed_pct: float = Field(default=20.0, ge=0.0, le=100.0, description="Share of ops allowed to error")
    operations: List[BenchmarkOperation] = Field(
        default_factory=lambda: [
            BenchmarkOperation(name="kri_logs_recent", table="kri_logs", limit=100),
            BenchmarkOperation(name="incident_logs_recent", table="incident_logs", limit=100),
            BenchmarkOperation(name="vendor_alerts_count", table="vendor_risk_alerts", kind="count"),
            BenchmarkOperation(name="controls_page", table="controls", limit=50),
            BenchmarkOperation(name="third_party_profiles_page", table="third_party_profiles", limit=50),
        ]
    )


class RateLimitSettings(BaseModel):
    burst_size: int = Field(default=12, ge=1, le=100)
    expected_limit: int = Field(default=10, ge=1)
    cost_per_request: float = Field(default=0.002, ge=0.0, description="USD per completion request")
    prompt: str = "Rate limit probe"


class PerformanceSettings(BaseModel):
    latency: LatencyThresholds = Field(default_factory=LatencyThresholds)
    benchmark: BenchmarkSettings = Field(default_factory=BenchmarkSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
