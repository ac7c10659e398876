from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_TIMEZONE, DEFAULT_WORKDAYS
from ..core.enums import SprintStatus


@dataclass(frozen=True)
class Squad:
    """Team unit with its own timezone and workday set (ISO weekdays, Monday=1)."""

    squad_id: int
    name: str
    timezone: str = DEFAULT_TIMEZONE
    workdays: tuple[int, ...] = DEFAULT_WORKDAYS
    is_active: bool = True

    def is_workday(self, day: date) -> bool:
        return day.isoweekday() in self.workdays


@dataclass(frozen=True)
class Sprint:
    sprint_id: int
    squad_id: int
    name: str
    start_date: date
    end_date: date
    status: SprintStatus = SprintStatus.PLANNED


@dataclass(frozen=True)
class Member:
    """Active roster entry for a squad."""

    user_id: int
    name: str
    email: Optional[str] = None
