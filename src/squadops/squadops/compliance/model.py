from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import PeriodType, RuleType


@dataclass(frozen=True)
class ComplianceRule:
    rule_id: int
    squad_id: int
    rule_name: str
    rule_type: RuleType
    rule_config: dict[str, Any]
    severity: int = 1
    is_active: bool = True


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    period_type: PeriodType = PeriodType.WEEKLY
    sprint_id: Optional[int] = None


@dataclass(frozen=True)
class Violation:
    rule_id: int
    rule_name: str
    rule_type: RuleType
    severity: int
    user_id: int
    on_date: date
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def sort_key(self) -> tuple[date, int, int]:
        return self.on_date, self.user_id, self.rule_id

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "rule_type": self.rule_type.value,
            "severity": self.severity,
            "user_id": self.user_id,
            "date": self.on_date.isoformat(),
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class ComplianceResult:
    """Output of one evaluation: score in [0, 100] plus what produced it."""

    score: float
    violations: list[Violation]
    metrics: dict[str, Any]


@dataclass(frozen=True)
class ComplianceReport:
    squad_id: int
    period: Period
    result: ComplianceResult

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def violations(self) -> list[Violation]:
        return self.result.violations

    @property
    def metrics(self) -> dict[str, Any]:
        return self.result.metrics


@dataclass(frozen=True)
class ComplianceScore:
    """A persisted report snapshot."""

    score_id: int
    squad_id: int
    period_start: date
    period_end: date
    period_type: PeriodType
    score: float
    violations: list[dict]
    metrics: dict[str, Any]
    sprint_id: Optional[int] = None
    created_at: Optional[datetime] = None
