from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def total_hours(self, check_in_time: datetime, check_out_time: datetime) -> int:
        raise NotImplementedError

    @staticmethod
    def _elapsed_seconds(check_in_time: datetime, check_out_time: datetime) -> float:
        return max((check_out_time - check_in_time).total_seconds(), 0.0)
