"""Validation entry types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class ValidationCategory(str, Enum):
    WORKFLOW = "workflow"
    DATABASE = "database"
    INTEGRATION = "integration"
    PERFORMANCE = "performance"
    COMPLIANCE = "compliance"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class TimeoutClass(str, Enum):
    """Kind of blocking work an entry performs; selects its timeout."""
    AUTHENTICATION = "authentication"
    AI_COMPLETION = "ai_completion"
    ALERTING = "alerting"
    GENERIC = "generic"


@dataclass(frozen=True)
class ValidationSpec:
    """Immutable description of one named check.

    ``principles`` holds regulatory-principle tags (for example
    ``"Principle 4"``); an entry without tags produces no audit entry.
    """

    id: str
    name: str
    phase: str
    category: ValidationCategory
    priority: Priority
    description: str
    expected_outcome: str
    principles: Tuple[str, ...] = ()
    timeout_class: TimeoutClass = TimeoutClass.GENERIC

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("ValidationSpec id cannot be empty")
        # Accept lists from callers but store an immutable tuple
        if not isinstance(self.principles, tuple):
            object.__setattr__(self, "principles", tuple(self.principles))

    @property
    def primary_principle(self) -> str | None:
        return self.principles[0] if self.principles else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phase": self.phase,
            "category": self.category.value,
            "priority": self.priority.value,
            "description": self.description,
            "expected_outcome": self.expected_outcome,
            "principles": list(self.principles),
            "timeout_class": self.timeout_class.value,
        }
