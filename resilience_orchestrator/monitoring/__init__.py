"""Latency benchmarks and cost-control probes."""

from .benchmark import PerformanceBenchmark
from .data_models import (
    BenchmarkReport,
    CallClassification,
    OperationStatus,
    OperationTiming,
    RateLimitReport,
)

__all__ = [
    "PerformanceBenchmark",
    "BenchmarkReport",
    "CallClassification",
    "OperationStatus",
    "OperationTiming",
    "RateLimitReport",
]
