from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import from_db, to_db
from ..core.enums import AttendanceStatus, EventTag, WorkMode
from ..core.exceptions import AlreadyCheckedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import (
    AttendancePatch,
    AttendanceRecord,
    AttendanceReportRow,
    ClosedShift,
    GeoStamp,
    OpenShift,
)
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.user_id, a.squad_id, a.sprint_id, a.work_date,
    a.check_in_time, a.check_in_latitude, a.check_in_longitude, a.check_in_address,
    a.check_out_time, a.check_out_latitude, a.check_out_longitude, a.check_out_address,
    a.work_mode, a.event_tag, a.status, a.notes, a.total_hours
"""


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_record(r: dict) -> AttendanceRecord:
    check_in_geo = GeoStamp(
        latitude=_float(r.get("check_in_latitude")),
        longitude=_float(r.get("check_in_longitude")),
        address=r.get("check_in_address"),
    )
    if r.get("check_out_time") is None:
        shift = OpenShift(check_in_time=from_db(r["check_in_time"]), check_in_geo=check_in_geo)
    else:
        shift = ClosedShift(
            check_in_time=from_db(r["check_in_time"]),
            check_out_time=from_db(r["check_out_time"]),
            total_hours=int(r.get("total_hours") or 0),
            check_in_geo=check_in_geo,
            check_out_geo=GeoStamp(
                latitude=_float(r.get("check_out_latitude")),
                longitude=_float(r.get("check_out_longitude")),
                address=r.get("check_out_address"),
            ),
        )
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        squad_id=int(r["squad_id"]),
        sprint_id=int(r["sprint_id"]) if r.get("sprint_id") is not None else None,
        work_date=r["work_date"],
        shift=shift,
        work_mode=WorkMode(r["work_mode"]),
        event_tag=EventTag(r["event_tag"]),
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_open(self, *, user_id: int, squad_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records a
                WHERE a.user_id=%s AND a.squad_id=%s AND a.work_date=%s AND a.check_out_time IS NULL
                """,
                (int(user_id), int(squad_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create_checkin(
        self,
        *,
        user_id: int,
        squad_id: int,
        sprint_id: Optional[int],
        work_date: date,
        check_in_time: datetime,
        geo: GeoStamp,
        work_mode: WorkMode,
        event_tag: EventTag,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, squad_id, sprint_id, work_date, check_in_time,
                        check_in_latitude, check_in_longitude, check_in_address,
                        work_mode, event_tag, status, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        int(squad_id),
                        sprint_id,
                        work_date,
                        to_db(check_in_time),
                        geo.latitude,
                        geo.longitude,
                        geo.address,
                        work_mode.value,
                        event_tag.value,
                        status.value,
                        notes,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise AlreadyCheckedIn() from e
            raise

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        geo: GeoStamp,
        total_hours: int,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s, check_out_latitude=%s, check_out_longitude=%s,
                    check_out_address=%s, total_hours=%s, notes=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (
                    to_db(check_out_time),
                    geo.latitude,
                    geo.longitude,
                    geo.address,
                    int(total_hours),
                    notes,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def list_for_squad_between(self, *, squad_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records a
                WHERE a.squad_id=%s AND a.work_date BETWEEN %s AND %s
                ORDER BY a.work_date, a.check_in_time, a.attendance_id
                """,
                (int(squad_id), start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_records(
        self,
        *,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        if squad_id is not None:
            clauses.append("a.squad_id=%s")
            params.append(int(squad_id))
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))
        if start_date is not None:
            clauses.append("a.work_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("a.work_date<=%s")
            params.append(end_date)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records a
                WHERE {where}
                ORDER BY a.work_date DESC, a.check_in_time DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def update_details(self, *, attendance_id: int, patch: AttendancePatch) -> bool:
        sets: list[str] = []
        params: list[object] = []
        for column, value in (
            ("work_mode", patch.work_mode),
            ("event_tag", patch.event_tag),
            ("status", patch.status),
        ):
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value.value)
        if patch.notes is not None:
            sets.append("notes=%s")
            params.append(patch.notes)
        if not sets:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET {', '.join(sets)} WHERE attendance_id=%s",
                tuple(params + [int(attendance_id)]),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def get_report_rows(
        self,
        *,
        squad_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["a.squad_id=%s", "a.work_date BETWEEN %s AND %s"]
        params: list[object] = [int(squad_id), start_date, end_date]
        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.name AS user_name
                FROM attendance_records a
                JOIN users u ON u.user_id = a.user_id
                WHERE {' AND '.join(clauses)}
                ORDER BY a.work_date, u.name, a.check_in_time
                """,
                tuple(params),
            )
            out: list[AttendanceReportRow] = []
            for r in fetchall(cur):
                rec = _row_to_record(r)
                out.append(
                    AttendanceReportRow(
                        attendance_id=rec.attendance_id,
                        user_id=rec.user_id,
                        user_name=r["user_name"],
                        squad_id=rec.squad_id,
                        work_date=rec.work_date,
                        check_in_time=rec.check_in_time,
                        check_out_time=rec.check_out_time,
                        total_hours=rec.total_hours,
                        work_mode=rec.work_mode,
                        event_tag=rec.event_tag,
                        status=rec.status,
                        notes=rec.notes,
                    )
                )
            return out
