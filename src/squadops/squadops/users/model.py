from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: the authenticated actor behind every action.

    Note: Plain data object; identity issuance lives outside this package.
    """

    user_id: int
    name: str
    role: Role
    email: Optional[str] = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_squad_lead(self) -> bool:
        return self.role == Role.SQUAD_LEAD
