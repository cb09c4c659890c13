"""Compliance scoring per regulatory principle."""

from .data_models import ComplianceMetric, ComponentMeasure
from .scorer import ComplianceScorer

__all__ = ["ComplianceMetric", "ComponentMeasure", "ComplianceScorer"]
