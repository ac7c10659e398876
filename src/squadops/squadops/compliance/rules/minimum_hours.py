from __future__ import annotations

from typing import Any

from ..model import Violation
from .base import EvaluationContext, RuleEvaluator


class MinimumHoursRule(RuleEvaluator):
    """Closed hours summed per member and day must reach ``min_hours``."""

    def _parse_config(self, config: dict[str, Any]) -> None:
        self.min_hours = self._number(config, "min_hours", 8, high=24)

    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        out: list[Violation] = []
        for (user_id, day), records in ctx.records_by_user_day().items():
            closed = [r for r in records if not r.is_open]
            if not closed:
                continue
            hours = sum(r.total_hours or 0 for r in closed)
            if hours < self.min_hours:
                out.append(
                    self._violation(
                        user_id,
                        day,
                        f"Worked {hours}h, below the {self.min_hours:g}h minimum",
                        hours=hours,
                        min_hours=self.min_hours,
                    )
                )
        return out
