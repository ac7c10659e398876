from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import Decision, LeaveApproval, LeavePatch, LeaveRequest, NewLeaveRequest


class LeaveRepository(Protocol):
    def create(self, new: NewLeaveRequest) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def amend_pending(self, *, request_id: int, patch: LeavePatch, total_days: int) -> bool:
        """Apply the patch only while the request is pending. Returns False otherwise."""

        raise NotImplementedError

    def cancel_pending(self, *, request_id: int) -> bool:
        raise NotImplementedError

    def decide_pending(self, decision: Decision) -> bool:
        """Transition a pending request and append its approval entry atomically.

        Returns False, writing nothing, when the request is no longer pending.
        """

        raise NotImplementedError

    def list_pending(self, *, squad_ids: Optional[Collection[int]] = None) -> Sequence[LeaveRequest]:
        """Pending requests ordered by (created_at, request_id).

        ``squad_ids=None`` means every squad; an empty collection yields nothing.
        """

        raise NotImplementedError

    def list_approved_overlapping(self, *, squad_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        visible_to_user: Optional[int] = None,
        visible_squads: Optional[Collection[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        """Newest first.

        When ``visible_to_user`` is given, only that user's requests or requests of
        ``visible_squads`` are returned.
        """

        raise NotImplementedError

    def approvals_for(self, request_id: int) -> Sequence[LeaveApproval]:
        raise NotImplementedError
