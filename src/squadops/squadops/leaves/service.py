from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import local_today, utc_now
from ..common.time_window import inclusive_day_count, month_bounds
from ..common.validators import optional_text, require_enum, require_max_length, require_non_empty, require_urls
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_TIMEZONE, MAX_COMMENTS_LENGTH, MAX_REASON_LENGTH
from ..core.enums import DecisionOutcome, LeaveStatus, LeaveType
from ..core.exceptions import Forbidden, InvalidRange, NotFound, NotPending, ValidationError
from ..squads.model import Squad
from ..squads.repository import SquadRepository
from ..users.model import User
from . import policy
from .model import Decision, LeaveApproval, LeaveCalendar, LeavePatch, LeaveRequest, NewLeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveService:
    """Leave request lifecycle: pending moves once to approved, rejected or cancelled."""

    def __init__(
        self,
        leaves: LeaveRepository,
        squads: SquadRepository,
        *,
        default_timezone: str = DEFAULT_TIMEZONE,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self._leaves = leaves
        self._squads = squads
        self._default_timezone = default_timezone
        self._list_limit = int(list_limit)

    # -------- helpers --------
    def _get_squad(self, squad_id: int) -> Squad:
        squad = self._squads.get_by_id(int(squad_id))
        if not squad:
            raise NotFound("Squad not found", details={"squad_id": squad_id})
        return squad

    def _get_request(self, request_id: int) -> LeaveRequest:
        req = self._leaves.get_by_id(int(request_id))
        if not req:
            raise NotFound("Leave request not found", details={"request_id": request_id})
        return req

    def _leads_of(self, req: LeaveRequest) -> set[int]:
        if req.squad_id is None:
            return set()
        return self._squads.leads(req.squad_id)

    def _today(self, squad: Optional[Squad], now: datetime) -> date:
        return local_today(now, squad.timezone if squad else self._default_timezone)

    @staticmethod
    def _check_dates(start_date: date, end_date: date, today: date) -> int:
        total_days = inclusive_day_count(start_date, end_date)
        if start_date < today:
            raise InvalidRange(
                "Leave cannot start in the past",
                details={"start_date": start_date.isoformat(), "today": today.isoformat()},
            )
        return total_days

    @staticmethod
    def _attachments(values: Optional[Iterable[str]]) -> tuple[str, ...]:
        return tuple(require_urls(values, "attachments"))

    # -------- lifecycle --------
    def submit(
        self,
        actor: User,
        *,
        leave_type,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        squad_id: Optional[int] = None,
        attachments: Optional[Iterable[str]] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or utc_now()
        squad = self._get_squad(squad_id) if squad_id is not None else None

        kind = require_enum(LeaveType, leave_type, "leave_type")
        reason = require_max_length(require_non_empty(reason, "reason"), "reason", MAX_REASON_LENGTH)
        total_days = self._check_dates(start_date, end_date, self._today(squad, now))

        request_id = self._leaves.create(
            NewLeaveRequest(
                user_id=actor.user_id,
                squad_id=squad.squad_id if squad else None,
                leave_type=kind,
                start_date=start_date,
                end_date=end_date,
                total_days=total_days,
                reason=reason,
                attachments=self._attachments(attachments),
            )
        )
        logger.info("User %s submitted leave request %s (%s days)", actor.user_id, request_id, total_days)
        return self._get_request(request_id)

    def amend(self, actor: User, request_id: int, patch: LeavePatch, *, now: datetime | None = None) -> LeaveRequest:
        now = now or utc_now()
        req = self._get_request(request_id)

        if not policy.can_amend(actor, req):
            raise Forbidden("Only the requester can amend a leave request")
        if not req.is_pending:
            raise NotPending("Cannot update a leave request that is not pending")

        start_date = patch.start_date or req.start_date
        end_date = patch.end_date or req.end_date
        total_days = inclusive_day_count(start_date, end_date)
        if patch.start_date is not None:
            squad = self._squads.get_by_id(req.squad_id) if req.squad_id is not None else None
            total_days = self._check_dates(start_date, end_date, self._today(squad, now))

        patch = LeavePatch(
            leave_type=require_enum(LeaveType, patch.leave_type, "leave_type") if patch.leave_type else None,
            start_date=patch.start_date,
            end_date=patch.end_date,
            reason=(
                require_max_length(require_non_empty(patch.reason, "reason"), "reason", MAX_REASON_LENGTH)
                if patch.reason is not None
                else None
            ),
            attachments=self._attachments(patch.attachments) if patch.attachments is not None else None,
        )

        if not self._leaves.amend_pending(request_id=req.request_id, patch=patch, total_days=total_days):
            raise NotPending("Cannot update a leave request that is not pending")

        logger.info("User %s amended leave request %s", actor.user_id, req.request_id)
        return self._get_request(req.request_id)

    def cancel(self, actor: User, request_id: int) -> LeaveRequest:
        req = self._get_request(request_id)

        if not policy.can_cancel(actor, req):
            raise Forbidden("Only the requester or an administrator can cancel a leave request")
        if not req.is_pending or not self._leaves.cancel_pending(request_id=req.request_id):
            logger.warning("Rejected cancel of leave request %s in status %s", req.request_id, req.status.value)
            raise NotPending()

        logger.info("User %s cancelled leave request %s", actor.user_id, req.request_id)
        return self._get_request(req.request_id)

    def decide(
        self,
        actor: User,
        request_id: int,
        outcome,
        *,
        comments: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or utc_now()
        req = self._get_request(request_id)
        outcome = require_enum(DecisionOutcome, outcome, "outcome")

        if not policy.can_decide(actor, req, self._leads_of(req)):
            raise Forbidden("Only administrators or leads of this squad can decide leave requests")
        if not req.is_pending:
            logger.warning("Rejected %s of leave request %s in status %s", outcome.value, req.request_id, req.status.value)
            raise NotPending()

        comments = optional_text(comments, "comments", MAX_COMMENTS_LENGTH)
        if outcome == DecisionOutcome.REJECTED:
            rejection_reason = require_max_length(
                require_non_empty(rejection_reason, "rejection_reason"),
                "rejection_reason",
                MAX_COMMENTS_LENGTH,
            )
            comments = comments or rejection_reason
        else:
            rejection_reason = None

        decision = Decision(
            request_id=req.request_id,
            approver_id=actor.user_id,
            level=policy.approval_level(actor),
            outcome=outcome,
            decided_at=now,
            comments=comments,
            rejection_reason=rejection_reason,
        )
        if not self._leaves.decide_pending(decision):
            # Another reviewer decided between our read and our write.
            logger.warning("Lost decision race on leave request %s", req.request_id)
            raise NotPending()

        logger.info(
            "User %s %s leave request %s at level %s",
            actor.user_id,
            outcome.value,
            req.request_id,
            decision.level.value,
        )
        return self._get_request(req.request_id)

    def approve(self, actor: User, request_id: int, *, comments: Optional[str] = None, now: datetime | None = None) -> LeaveRequest:
        return self.decide(actor, request_id, DecisionOutcome.APPROVED, comments=comments, now=now)

    def reject(
        self,
        actor: User,
        request_id: int,
        *,
        rejection_reason: Optional[str],
        comments: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        return self.decide(
            actor,
            request_id,
            DecisionOutcome.REJECTED,
            comments=comments,
            rejection_reason=rejection_reason,
            now=now,
        )

    # -------- queries --------
    def list_pending_approvals(self, actor: User) -> Sequence[LeaveRequest]:
        if not policy.can_review_queue(actor):
            raise Forbidden("Only administrators or squad leads can review leave requests")
        if policy.is_admin(actor):
            return self._leaves.list_pending()
        return self._leaves.list_pending(squad_ids=self._squads.squads_led_by(actor.user_id))

    def calendar(self, squad_id: int, year_month: str) -> LeaveCalendar:
        squad = self._get_squad(squad_id)
        first, last = month_bounds(year_month)
        requests = self._leaves.list_approved_overlapping(squad_id=squad.squad_id, start_date=first, end_date=last)
        return LeaveCalendar(squad_id=squad.squad_id, month_start=first, month_end=last, requests=list(requests))

    def get_request(self, actor: User, request_id: int) -> LeaveRequest:
        req = self._get_request(request_id)
        if not policy.can_view(actor, req, self._leads_of(req)):
            raise Forbidden("You cannot view this leave request")
        return req

    def list_requests(
        self,
        actor: User,
        *,
        status=None,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        status = require_enum(LeaveStatus, status, "status") if status else None
        limit = min(int(limit or self._list_limit), self._list_limit)
        if limit <= 0:
            raise ValidationError.for_field("limit", "limit must be positive")

        if policy.is_admin(actor):
            return self._leaves.list_requests(status=status, squad_id=squad_id, user_id=user_id, limit=limit)
        return self._leaves.list_requests(
            status=status,
            squad_id=squad_id,
            user_id=user_id,
            visible_to_user=actor.user_id,
            visible_squads=self._squads.squads_led_by(actor.user_id),
            limit=limit,
        )

    def approvals_for(self, actor: User, request_id: int) -> Sequence[LeaveApproval]:
        req = self.get_request(actor, request_id)
        return self._leaves.approvals_for(req.request_id)
