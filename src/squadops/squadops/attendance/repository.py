from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, EventTag, WorkMode
from .model import AttendancePatch, AttendanceRecord, AttendanceReportRow, GeoStamp


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open(self, *, user_id: int, squad_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert an open record.

        Must raise AlreadyCheckedIn when an open record already exists for
        (user, squad, work_date), including when a concurrent insert won the race.
        """

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        geo: GeoStamp,
        total_hours: int,
        notes: Optional[str] = None,
    ) -> bool:
        """Close the record only if it is still open. Returns False otherwise."""

        raise NotImplementedError

    def list_for_squad_between(self, *, squad_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        """Records ordered by (work_date, check_in_time, attendance_id)."""

        raise NotImplementedError

    def list_records(
        self,
        *,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError

    def update_details(self, *, attendance_id: int, patch: AttendancePatch) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        squad_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
