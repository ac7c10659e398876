from __future__ import annotations

from datetime import datetime

from .base import HoursCalculator


class TruncatingHoursCalculator(HoursCalculator):
    """Whole hours between check-in and check-out, fraction dropped (09:00-17:30 -> 8)."""

    def total_hours(self, check_in_time: datetime, check_out_time: datetime) -> int:
        return int(self._elapsed_seconds(check_in_time, check_out_time) // 3600)
