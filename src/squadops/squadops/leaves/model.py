from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalLevel, DecisionOutcome, LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    created_at: datetime
    squad_id: Optional[int] = None
    attachments: tuple[str, ...] = ()
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return not self.status.is_terminal


@dataclass(frozen=True)
class LeaveApproval:
    """Append-only audit entry, one per terminal decision."""

    approval_id: int
    request_id: int
    approver_id: int
    level: ApprovalLevel
    outcome: DecisionOutcome
    reviewed_at: datetime
    comments: Optional[str] = None


@dataclass(frozen=True)
class NewLeaveRequest:
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    squad_id: Optional[int] = None
    attachments: tuple[str, ...] = ()


@dataclass(frozen=True)
class LeavePatch:
    """Owner edits to a pending request. ``None`` leaves a field untouched."""

    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    attachments: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class Decision:
    """Everything written when a pending request reaches approved or rejected."""

    request_id: int
    approver_id: int
    level: ApprovalLevel
    outcome: DecisionOutcome
    decided_at: datetime
    comments: Optional[str] = None
    rejection_reason: Optional[str] = None

    @property
    def status(self) -> LeaveStatus:
        return LeaveStatus.APPROVED if self.outcome == DecisionOutcome.APPROVED else LeaveStatus.REJECTED


@dataclass(frozen=True)
class LeaveCalendar:
    squad_id: int
    month_start: date
    month_end: date
    requests: list[LeaveRequest] = field(default_factory=list)
