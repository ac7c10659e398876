from __future__ import annotations

from typing import Any

from ..model import Violation
from .base import EvaluationContext, RuleEvaluator

FIELDS = ("work_mode", "event_tag", "status")


class CustomFieldRule(RuleEvaluator):
    """Allow-list or deny-list over one enum field of each record.

    Config: ``{"field": "work_mode", "allowed": ["office"]}`` or
    ``{"field": "work_mode", "disallowed": ["ooo"]}``.
    """

    def _parse_config(self, config: dict[str, Any]) -> None:
        self.field = str(config.get("field") or "")
        if self.field not in FIELDS:
            raise self._invalid(self.rule, f"field must be one of: {', '.join(FIELDS)}")

        allowed = config.get("allowed")
        disallowed = config.get("disallowed")
        if (allowed is None) == (disallowed is None):
            raise self._invalid(self.rule, "exactly one of allowed or disallowed is required")
        values = allowed if allowed is not None else disallowed
        if not isinstance(values, (list, tuple)):
            raise self._invalid(self.rule, "allowed/disallowed must be a list")

        self.values = frozenset(str(v) for v in values)
        self.is_allow_list = allowed is not None

    def _breaks(self, value: str) -> bool:
        if self.is_allow_list:
            return value not in self.values
        return value in self.values

    def evaluate(self, ctx: EvaluationContext) -> list[Violation]:
        out: list[Violation] = []
        for (user_id, day), records in ctx.records_by_user_day().items():
            for r in records:
                value = getattr(r, self.field).value
                if self._breaks(value):
                    out.append(
                        self._violation(
                            user_id,
                            day,
                            f"{self.field} {value!r} is not permitted",
                            attendance_id=r.attendance_id,
                            field=self.field,
                            value=value,
                        )
                    )
        return out
