from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Member, Sprint, Squad


class SquadRepository(Protocol):
    """Read-only view of the squad roster and sprint calendar."""

    def get_by_id(self, squad_id: int) -> Optional[Squad]:
        raise NotImplementedError

    def active_members(self, squad_id: int) -> Sequence[Member]:
        """Active members ordered by user id."""

        raise NotImplementedError

    def leads(self, squad_id: int) -> set[int]:
        raise NotImplementedError

    def squads_led_by(self, user_id: int) -> set[int]:
        raise NotImplementedError

    def active_sprint(self, squad_id: int) -> Optional[Sprint]:
        raise NotImplementedError

    def get_sprint(self, sprint_id: int) -> Optional[Sprint]:
        raise NotImplementedError
