from __future__ import annotations

from dataclasses import dataclass

from ..core.exceptions import ValidationError
from .calculator.base import HoursCalculator
from .calculator.rounding_calculator import RoundingHoursCalculator
from .calculator.truncating_calculator import TruncatingHoursCalculator


@dataclass
class HoursCalculatorFactory:
    """Factory Pattern: choose the hours calculator configured by HOURS_POLICY."""

    def for_policy(self, policy: str) -> HoursCalculator:
        key = (policy or "truncate").strip().lower()
        if key == "truncate":
            return TruncatingHoursCalculator()
        if key == "round":
            return RoundingHoursCalculator()
        raise ValidationError.for_field("HOURS_POLICY", f"Unknown hours policy: {policy!r}")
