from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional, Sequence

from ...attendance.model import AttendanceRecord
from ...common.time_window import iter_days
from ...core.constants import MAX_SEVERITY, MIN_SEVERITY
from ...core.exceptions import ValidationError
from ..model import ComplianceRule, Period, Violation


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a rule may look at. Built once per evaluation and shared by all rules."""

    period: Period
    member_ids: frozenset[int]
    records: Sequence[AttendanceRecord]
    leave_days: dict[int, frozenset[date]] = field(default_factory=dict)
    timezone: str = "UTC"
    workdays: tuple[int, ...] = (1, 2, 3, 4, 5)
    as_of: Optional[date] = None

    def on_leave(self, user_id: int, day: date) -> bool:
        return day in self.leave_days.get(user_id, frozenset())

    def is_workday(self, day: date) -> bool:
        return day.isoweekday() in self.workdays

    @property
    def last_day(self) -> date:
        """Last day that counts: the period end, or ``as_of`` for a period still running."""
        if self.as_of is None:
            return self.period.end
        return min(self.period.end, self.as_of)

    def elapsed_workdays(self) -> list[date]:
        return [d for d in iter_days(self.period.start, self.last_day) if self.is_workday(d)]

    def records_by_user_day(self) -> dict[tuple[int, date], list[AttendanceRecord]]:
        """Records grouped per (user, work_date), leave days and non-workdays excluded."""
        grouped: dict[tuple[int, date], list[AttendanceRecord]] = defaultdict(list)
        for r in self.records:
            if self.on_leave(r.user_id, r.work_date) or not self.is_workday(r.work_date):
                continue
            grouped[(r.user_id, r.work_date)].append(r)
        return dict(sorted(grouped.items(), key=lambda kv: (kv[0][1], kv[0][0])))


class RuleEvaluator(ABC):
    """Strategy Pattern: one evaluator per rule type.

    Config is parsed eagerly in ``__init__`` so a broken rule fails before any
    record is looked at.
    """

    def __init__(self, rule: ComplianceRule):
        if not MIN_SEVERITY <= int(rule.severity) <= MAX_SEVERITY:
            raise self._invalid(rule, f"severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}")
        self.rule = rule
        self._parse_config(dict(rule.rule_config or {}))

    @abstractmethod
    def _parse_config(self, config: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        raise NotImplementedError

    def _violation(self, user_id: int, on_date: date, message: str, **details: Any) -> Violation:
        return Violation(
            rule_id=self.rule.rule_id,
            rule_name=self.rule.rule_name,
            rule_type=self.rule.rule_type,
            severity=int(self.rule.severity),
            user_id=int(user_id),
            on_date=on_date,
            message=message,
            details=details,
        )

    @staticmethod
    def _invalid(rule: ComplianceRule, message: str) -> ValidationError:
        return ValidationError(
            f"Invalid compliance rule {rule.rule_name!r}: {message}",
            details={"rule_id": rule.rule_id, "rule_name": rule.rule_name},
        )

    # -------- config helpers --------
    def _number(self, config: dict[str, Any], key: str, default: float, *, low: float = 0, high: Optional[float] = None) -> float:
        raw = config.get(key, default)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise self._invalid(self.rule, f"{key} must be numeric")
        if value < low or (high is not None and value > high):
            bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
            raise self._invalid(self.rule, f"{key} must be {bounds}")
        return value

    def _clock(self, config: dict[str, Any], key: str, default: str) -> time:
        raw = config.get(key, default)
        try:
            return datetime.strptime(str(raw).strip(), "%H:%M").time()
        except ValueError:
            raise self._invalid(self.rule, f"{key} must use the HH:MM format")
