from __future__ import annotations

from datetime import datetime

from .base import HoursCalculator


class RoundingHoursCalculator(HoursCalculator):
    """Nearest whole hour, half hours round up (09:00-17:30 -> 9)."""

    def total_hours(self, check_in_time: datetime, check_out_time: datetime) -> int:
        return int((self._elapsed_seconds(check_in_time, check_out_time) + 1800) // 3600)
