from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization decisions."""

    ADMIN = "admin"
    SQUAD_LEAD = "squad_lead"
    MEMBER = "member"
    VIEWER = "viewer"


class WorkMode(str, Enum):
    REMOTE = "remote"
    OFFICE = "office"
    CLIENT_SITE = "client_site"
    OOO = "ooo"


class EventTag(str, Enum):
    STANDUP = "standup"
    RETRO = "retro"
    PLANNING = "planning"
    DEMO = "demo"
    REGULAR = "regular"


class AttendanceStatus(str, Enum):
    FULL_DAY = "full_day"
    PARTIAL_DAY = "partial_day"
    LEAVE = "leave"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PUBLIC_HOLIDAY = "public_holiday"
    TRAINING = "training"
    OTHER = "other"


class LeaveStatus(str, Enum):
    """Leave request lifecycle: PENDING moves once to one of the terminal states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


class DecisionOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalLevel(str, Enum):
    SQUAD_LEAD = "squad_lead"
    ADMIN = "admin"


class SprintStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RuleType(str, Enum):
    MINIMUM_HOURS = "minimum_hours"
    LATE_ARRIVAL = "late_arrival"
    EARLY_CHECKOUT = "early_checkout"
    ATTENDANCE_RATE = "attendance_rate"
    CUSTOM = "custom"


class PeriodType(str, Enum):
    WEEKLY = "weekly"
    SPRINT = "sprint"
