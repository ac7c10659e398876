from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from ...common.datetime_utils import to_local
from ..model import Violation
from .base import EvaluationContext, RuleEvaluator


class EarlyCheckoutRule(RuleEvaluator):
    """Last check-out of the day, in squad local time, before end_time - grace_minutes.

    Days where the member is still checked in are skipped.
    """

    def _parse_config(self, config: dict[str, Any]) -> None:
        self.end_time = self._clock(config, "end_time", "17:00")
        self.grace_minutes = int(self._number(config, "grace_minutes", 0, high=24 * 60))

    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        out: list[Violation] = []
        for (user_id, day), records in ctx.records_by_user_day().items():
            if any(r.is_open for r in records):
                continue
            last = max(to_local(r.check_out_time, ctx.timezone) for r in records)
            earliest_ok = datetime.combine(day, self.end_time) - timedelta(minutes=self.grace_minutes)
            if last.replace(tzinfo=None) < earliest_ok:
                out.append(
                    self._violation(
                        user_id,
                        day,
                        f"Checked out at {last:%H:%M}, expected from {earliest_ok:%H:%M}",
                        check_out=last.strftime("%H:%M"),
                        expected_from=earliest_ok.strftime("%H:%M"),
                    )
                )
        return out
