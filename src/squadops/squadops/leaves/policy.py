"""Authorization rules for leave requests.

Each function answers one question from the actor, the request and the set of
user ids leading the request's squad. Nothing here reads storage.
"""

from __future__ import annotations

from typing import Collection

from ..core.enums import ApprovalLevel
from ..users.model import User
from ..users.policy import is_admin, is_squad_lead, leads_squad
from .model import LeaveRequest

__all__ = [
    "approval_level",
    "can_amend",
    "can_cancel",
    "can_decide",
    "can_review_queue",
    "can_view",
    "is_admin",
    "is_squad_lead",
]


def can_decide(actor: User, request: LeaveRequest, squad_leads: Collection[int]) -> bool:
    """Admins decide anything; otherwise only a designated lead of the request's squad."""
    if is_admin(actor):
        return True
    return request.squad_id is not None and leads_squad(actor, squad_leads)


def can_amend(actor: User, request: LeaveRequest) -> bool:
    return actor.user_id == request.user_id


def can_cancel(actor: User, request: LeaveRequest) -> bool:
    return actor.user_id == request.user_id or is_admin(actor)


def can_view(actor: User, request: LeaveRequest, squad_leads: Collection[int]) -> bool:
    if is_admin(actor) or actor.user_id == request.user_id:
        return True
    return request.squad_id is not None and leads_squad(actor, squad_leads)


def can_review_queue(actor: User) -> bool:
    return is_admin(actor) or is_squad_lead(actor)


def approval_level(actor: User) -> ApprovalLevel:
    return ApprovalLevel.ADMIN if is_admin(actor) else ApprovalLevel.SQUAD_LEAD
