from __future__ import annotations

from typing import Any

from ..model import Violation
from .base import EvaluationContext, RuleEvaluator


class AttendanceRateRule(RuleEvaluator):
    """Share of expected workdays a member showed up on.

    Expected workdays are the squad's workdays in the period minus the member's
    approved leave days. Days after ``as_of`` have not happened yet and are not
    expected. One violation per member, dated at the last counted day.
    """

    def _parse_config(self, config: dict[str, Any]) -> None:
        self.min_rate = self._number(config, "min_rate", 0.8, high=1)

    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        workdays = ctx.elapsed_workdays()
        attended: dict[int, set] = {}
        for r in ctx.records:
            attended.setdefault(r.user_id, set()).add(r.work_date)

        out: list[Violation] = []
        for user_id in sorted(ctx.member_ids):
            expected = [d for d in workdays if not ctx.on_leave(user_id, d)]
            if not expected:
                continue
            present = sum(1 for d in expected if d in attended.get(user_id, ()))
            rate = present / len(expected)
            if rate < self.min_rate:
                out.append(
                    self._violation(
                        user_id,
                        ctx.last_day,
                        f"Attended {present} of {len(expected)} workdays ({rate:.0%}), below {self.min_rate:.0%}",
                        attended_days=present,
                        expected_days=len(expected),
                        rate=round(rate, 4),
                        min_rate=self.min_rate,
                    )
                )
        return out
