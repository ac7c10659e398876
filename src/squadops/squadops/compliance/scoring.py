from __future__ import annotations

from typing import Iterable

from ..core.constants import DEFAULT_PENALTY_PER_SEVERITY, MAX_SCORE
from .model import Violation


def penalty(violations: Iterable[Violation], penalty_per_severity: float = DEFAULT_PENALTY_PER_SEVERITY) -> float:
    return sum(v.severity for v in violations) * float(penalty_per_severity)


def compute_score(violations: Iterable[Violation], penalty_per_severity: float = DEFAULT_PENALTY_PER_SEVERITY) -> float:
    """``MAX_SCORE`` minus the severity-weighted penalty, floored at zero.

    Non-increasing in the number and severity of violations.
    """
    return round(max(0.0, MAX_SCORE - penalty(violations, penalty_per_severity)), 2)
