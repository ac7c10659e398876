from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ...common.datetime_utils import to_local
from ..model import Violation
from .base import EvaluationContext, RuleEvaluator


class LateArrivalRule(RuleEvaluator):
    """First check-in of the day, in squad local time, after start_time + grace_minutes."""

    def _parse_config(self, config: dict[str, Any]) -> None:
        self.start_time = self._clock(config, "start_time", "09:00")
        self.grace_minutes = int(self._number(config, "grace_minutes", 0, high=24 * 60))

    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        out: list[Violation] = []
        for (user_id, day), records in ctx.records_by_user_day().items():
            first = min(to_local(r.check_in_time, ctx.timezone) for r in records)
            deadline = datetime.combine(day, self.start_time) + timedelta(minutes=self.grace_minutes)
            if first.replace(tzinfo=None) > deadline:
                out.append(
                    self._violation(
                        user_id,
                        day,
                        f"Checked in at {first:%H:%M}, expected by {deadline:%H:%M}",
                        check_in=first.strftime("%H:%M"),
                        expected_by=deadline.strftime("%H:%M"),
                    )
                )
        return out
