"""Compliance evaluation over one squad and one period.

``evaluate`` is pure: identical inputs always give an identical result, and
nothing here reads or writes storage.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..common.time_window import iter_days
from ..core.constants import DEFAULT_PENALTY_PER_SEVERITY, DEFAULT_TIMEZONE, DEFAULT_WORKDAYS
from ..core.enums import LeaveStatus
from ..leaves.model import LeaveRequest
from .model import ComplianceResult, ComplianceRule, Period, Violation
from .rules.base import EvaluationContext
from .rules.factory import RuleEvaluatorFactory
from .scoring import compute_score


def leave_days_by_user(leaves: Iterable[LeaveRequest], period: Period) -> dict[int, frozenset[date]]:
    """Approved leave days per user, clipped to the period."""
    days: dict[int, set[date]] = {}
    for lr in leaves:
        if lr.status != LeaveStatus.APPROVED:
            continue
        start = max(lr.start_date, period.start)
        end = min(lr.end_date, period.end)
        if start > end:
            continue
        days.setdefault(lr.user_id, set()).update(iter_days(start, end))
    return {user_id: frozenset(d) for user_id, d in days.items()}


def evaluate(
    rules: Sequence[ComplianceRule],
    period: Period,
    member_ids: Iterable[int],
    records: Sequence[AttendanceRecord],
    leaves: Iterable[LeaveRequest],
    *,
    timezone: Optional[str] = None,
    workdays: Sequence[int] = DEFAULT_WORKDAYS,
    penalty_per_severity: float = DEFAULT_PENALTY_PER_SEVERITY,
    factory: Optional[RuleEvaluatorFactory] = None,
    as_of: Optional[date] = None,
) -> ComplianceResult:
    """Score ``records`` against ``rules``.

    ``as_of`` is the squad-local current day when the period is still running;
    workdays after it are not expected yet.
    """
    factory = factory or RuleEvaluatorFactory()
    in_period = [r for r in records if period.start <= r.work_date <= period.end]
    ctx = EvaluationContext(
        period=period,
        member_ids=frozenset(int(m) for m in member_ids),
        records=in_period,
        leave_days=leave_days_by_user(leaves, period),
        timezone=timezone or DEFAULT_TIMEZONE,
        workdays=tuple(workdays),
        as_of=as_of,
    )

    # Build every evaluator first so a misconfigured rule fails the whole run.
    evaluators = [factory.for_rule(rule) for rule in sorted(rules, key=lambda r: r.rule_id) if rule.is_active]

    violations: list[Violation] = []
    for evaluator in evaluators:
        violations.extend(evaluator.evaluate(ctx))
    violations.sort(key=lambda v: v.sort_key)

    return ComplianceResult(
        score=compute_score(violations, penalty_per_severity),
        violations=violations,
        metrics=_metrics(ctx, violations),
    )


def _metrics(ctx: EvaluationContext, violations: Sequence[Violation]) -> dict:
    return {
        "total_records": len(ctx.records),
        "total_hours": sum(r.total_hours or 0 for r in ctx.records),
        "members": len(ctx.member_ids),
        "workdays": len(ctx.elapsed_workdays()),
        "leave_days": sum(len(d) for d in ctx.leave_days.values()),
        "violations_by_rule": dict(sorted(Counter(str(v.rule_id) for v in violations).items())),
        "violations_by_user": dict(sorted(Counter(str(v.user_id) for v in violations).items())),
    }
