from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import RuleType
from ..model import ComplianceRule
from .attendance_rate import AttendanceRateRule
from .base import RuleEvaluator
from .custom import CustomFieldRule
from .early_checkout import EarlyCheckoutRule
from .late_arrival import LateArrivalRule
from .minimum_hours import MinimumHoursRule

_EVALUATORS: dict[RuleType, type[RuleEvaluator]] = {
    RuleType.MINIMUM_HOURS: MinimumHoursRule,
    RuleType.LATE_ARRIVAL: LateArrivalRule,
    RuleType.EARLY_CHECKOUT: EarlyCheckoutRule,
    RuleType.ATTENDANCE_RATE: AttendanceRateRule,
    RuleType.CUSTOM: CustomFieldRule,
}


@dataclass
class RuleEvaluatorFactory:
    """Factory Pattern: pick the evaluator strategy for a rule type."""

    def for_rule(self, rule: ComplianceRule) -> RuleEvaluator:
        return _EVALUATORS[RuleType(rule.rule_type)](rule)
