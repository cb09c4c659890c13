"""Three-way verdict shared by integrity, compliance and benchmark checks."""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class Verdict(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def rank(self) -> int:
        return _RANK[self]


_RANK = {Verdict.PASS: 0, Verdict.WARN: 1, Verdict.FAIL: 2}


def worst(verdicts: Iterable[Verdict]) -> Verdict:
    """Most severe verdict; PASS for an empty iterable."""
    result = Verdict.PASS
    for verdict in verdicts:
        if verdict.rank > result.rank:
            result = verdict
    return result


def clamp_score(value: float) -> float:
    """Clamp a derived score to [0, 100]."""
    return max(0.0, min(100.0, float(value)))
