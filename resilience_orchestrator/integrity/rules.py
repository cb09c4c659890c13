"""Compiled rule evaluators used by the integrity analyzer."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Pattern, Tuple

from ..config.integrity import (
    BusinessRule,
    ElapsedBoundRule,
    ForbiddenPairRule,
    MaxRatioRule,
    MockDataRules,
    TemporalRule,
)
from ..integrations.repository import Record, coerce_datetime


class MockDataDetector:
    """Flags records whose string fields match any configured mock rule."""

    def __init__(self, rules: MockDataRules):
        self.substrings = [s.lower() for s in rules.substrings if s]
        self.email_patterns: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in rules.email_patterns]
        self.incremental = re.compile(rules.incremental_pattern, re.IGNORECASE)
        self.placeholder = re.compile(rules.generic_placeholder_pattern, re.IGNORECASE)
        self.excluded = {f.lower() for f in rules.excluded_fields}

    def match_value(self, value: str) -> Optional[str]:
        """Name of the first rule matching ``value``, or None."""
        text = value.strip()
        if not text:
            return None
        lowered = text.lower()
        if "@" in text:
            for pattern in self.email_patterns:
                if pattern.search(text):
                    return "email"
        if self.incremental.match(text):
            return "incremental"
        if self.placeholder.match(text):
            return "generic_placeholder"
        for substring in self.substrings:
            if substring in lowered:
                return f"substring:{substring}"
        return None

    def match(self, record: Record) -> Optional[Tuple[str, str]]:
        """``(field, rule)`` of the first flagged field, or None."""
        for key, value in record.items():
            if key.lower() in self.excluded or not isinstance(value, str):
                continue
            rule = self.match_value(value)
            if rule:
                return key, rule
        return None


def is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def temporal_violation(rule: TemporalRule, record: Record) -> Optional[bool]:
    """True on violation, False when ordered, None when not evaluable."""
    earlier = coerce_datetime(record.get(rule.earlier_field))
    later = coerce_datetime(record.get(rule.later_field))
    if earlier is None or later is None:
        return None
    if rule.compare_dates_only:
        return earlier.date() > later.date()
    return earlier > later


def business_rule_violation(rule: BusinessRule, record: Record) -> Optional[bool]:
    """True on violation, False when satisfied, None when the rule does not apply."""
    if isinstance(rule, MaxRatioRule):
        value = _as_float(record.get(rule.field))
        reference = _as_float(record.get(rule.reference_field))
        if value is None or reference is None or reference <= 0:
            return None
        return value > rule.factor * reference

    if isinstance(rule, ForbiddenPairRule):
        current = record.get(rule.field)
        if current is None or str(current).lower() != rule.equals.lower():
            return None
        other = record.get(rule.other_field)
        if other is None:
            return None
        return str(other).lower() in {v.lower() for v in rule.forbidden_values}

    if isinstance(rule, ElapsedBoundRule):
        index = record.get(rule.index_field)
        bounds = {k.lower(): v for k, v in rule.bounds_hours.items()}
        if index is None or str(index).lower() not in bounds:
            return None
        start = coerce_datetime(record.get(rule.start_field))
        end = coerce_datetime(record.get(rule.end_field))
        if start is None or end is None:
            return None
        hours = (end - start).total_seconds() / 3600
        return hours > bounds[str(index).lower()]

    raise TypeError(f"Unsupported business rule: {type(rule).__name__}")


@dataclass(frozen=True)
class RuleTally:
    evaluated: int = 0
    violations: int = 0

    @property
    def consistency_pct(self) -> float:
        if self.evaluated == 0:
            return 100.0
        return (self.evaluated - self.violations) / self.evaluated * 100

    def add(self, violation: Optional[bool]) -> "RuleTally":
        if violation is None:
            return self
        return RuleTally(self.evaluated + 1, self.violations + (1 if violation else 0))
