from __future__ import annotations

from typing import Collection

from ..core.enums import Role
from .model import User


def is_admin(actor: User) -> bool:
    return actor.role == Role.ADMIN


def is_squad_lead(actor: User) -> bool:
    return actor.role == Role.SQUAD_LEAD


def leads_squad(actor: User, squad_leads: Collection[int]) -> bool:
    """True when the actor is one of the squad's designated leads."""
    return actor.user_id in squad_leads


def can_edit_attendance(actor: User) -> bool:
    return is_admin(actor) or is_squad_lead(actor)


def can_delete_attendance(actor: User) -> bool:
    return is_admin(actor)


def can_check_in(actor: User, member_ids: Collection[int]) -> bool:
    return is_admin(actor) or actor.user_id in member_ids


def can_view_reports(actor: User, squad_leads: Collection[int]) -> bool:
    return is_admin(actor) or leads_squad(actor, squad_leads)
