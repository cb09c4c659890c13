"""Sampled data-integrity checks."""

from .analyzer import DataIntegrityAnalyzer
from .data_models import CheckResult, IntegrityMetric, IntegrityReport
from .rules import MockDataDetector

__all__ = [
    "DataIntegrityAnalyzer",
    "CheckResult",
    "IntegrityMetric",
    "IntegrityReport",
    "MockDataDetector",
]
