from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_TIMEZONE, DEFAULT_WORKDAYS
from ..core.enums import SprintStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import Member, Sprint, Squad
from .repository import SquadRepository


def _row_to_sprint(r: dict) -> Sprint:
    return Sprint(
        sprint_id=int(r["sprint_id"]),
        squad_id=int(r["squad_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=SprintStatus(r["status"]),
    )


class MySQLSquadRepository(SquadRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, squad_id: int) -> Optional[Squad]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT squad_id, name, timezone, workdays, is_active FROM squads WHERE squad_id=%s",
                (int(squad_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            workdays = load_json(r.get("workdays")) or list(DEFAULT_WORKDAYS)
            return Squad(
                squad_id=int(r["squad_id"]),
                name=r["name"],
                timezone=r.get("timezone") or DEFAULT_TIMEZONE,
                workdays=tuple(int(d) for d in workdays),
                is_active=bool(r.get("is_active", True)),
            )

    def active_members(self, squad_id: int) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.name, u.email
                FROM squad_members m
                JOIN users u ON u.user_id = m.user_id
                WHERE m.squad_id=%s AND m.is_active=1 AND u.is_active=1
                ORDER BY u.user_id
                """,
                (int(squad_id),),
            )
            return [
                Member(user_id=int(r["user_id"]), name=r["name"], email=r.get("email"))
                for r in fetchall(cur)
            ]

    def leads(self, squad_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id FROM squad_members WHERE squad_id=%s AND role='lead' AND is_active=1",
                (int(squad_id),),
            )
            return {int(r["user_id"]) for r in fetchall(cur)}

    def squads_led_by(self, user_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT squad_id FROM squad_members WHERE user_id=%s AND role='lead' AND is_active=1",
                (int(user_id),),
            )
            return {int(r["squad_id"]) for r in fetchall(cur)}

    def active_sprint(self, squad_id: int) -> Optional[Sprint]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sprint_id, squad_id, name, start_date, end_date, status
                FROM sprints
                WHERE squad_id=%s AND status=%s
                ORDER BY start_date DESC
                LIMIT 1
                """,
                (int(squad_id), SprintStatus.ACTIVE.value),
            )
            r = fetchone(cur)
            return _row_to_sprint(r) if r else None

    def get_sprint(self, sprint_id: int) -> Optional[Sprint]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT sprint_id, squad_id, name, start_date, end_date, status FROM sprints WHERE sprint_id=%s",
                (int(sprint_id),),
            )
            r = fetchone(cur)
            return _row_to_sprint(r) if r else None
