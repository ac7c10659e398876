from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import local_today, utc_now
from ..common.time_window import inclusive_day_count
from ..common.validators import optional_text, require_between, require_enum, require_max_length
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_TIMEZONE, MAX_NOTES_LENGTH
from ..core.enums import AttendanceStatus, EventTag, WorkMode
from ..core.exceptions import AlreadyCheckedIn, AlreadyCheckedOut, Forbidden, NotFound, NotOwner
from ..squads.model import Squad
from ..squads.repository import SquadRepository
from ..users.model import User
from ..users.policy import can_check_in, can_delete_attendance, can_edit_attendance
from . import aggregator
from .calculator.base import HoursCalculator
from .calculator.truncating_calculator import TruncatingHoursCalculator
from .model import AttendancePatch, AttendanceRecord, AttendanceStats, GeoStamp, PresenceBoard
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _validated_geo(geo: Optional[GeoStamp]) -> GeoStamp:
    if geo is None:
        return GeoStamp()
    return GeoStamp(
        latitude=require_between(geo.latitude, "latitude", -90, 90),
        longitude=require_between(geo.longitude, "longitude", -180, 180),
        address=geo.address,
    )


def _append_notes(existing: Optional[str], extra: Optional[str]) -> Optional[str]:
    if not extra:
        return existing
    if not existing:
        return extra
    return f"{existing}\n{extra}"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        squads: SquadRepository,
        *,
        hours_calculator: HoursCalculator | None = None,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self._attendance = attendance
        self._squads = squads
        self._hours = hours_calculator or TruncatingHoursCalculator()
        self._list_limit = int(list_limit)

    def _get_squad(self, squad_id: int) -> Squad:
        squad = self._squads.get_by_id(int(squad_id))
        if not squad:
            raise NotFound("Squad not found", details={"squad_id": squad_id})
        return squad

    def _get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFound("Attendance record not found", details={"attendance_id": attendance_id})
        return record

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        return self._get_record(attendance_id)

    def check_in(
        self,
        actor: User,
        squad_id: int,
        *,
        work_mode,
        event_tag=None,
        geo: Optional[GeoStamp] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or utc_now()
        squad = self._get_squad(squad_id)

        mode = require_enum(WorkMode, work_mode, "work_mode")
        tag = require_enum(EventTag, event_tag, "event_tag") if event_tag else EventTag.REGULAR
        geo = _validated_geo(geo)
        notes = optional_text(notes, "notes", MAX_NOTES_LENGTH)

        member_ids = {m.user_id for m in self._squads.active_members(squad.squad_id)}
        if not can_check_in(actor, member_ids):
            raise Forbidden("Only members of this squad can check in")

        today = local_today(now, squad.timezone)
        sprint = self._squads.active_sprint(squad.squad_id)

        # Fast path for a friendlier error; the unique index is the real guard.
        self._ensure_not_open(actor.user_id, squad.squad_id, today)

        attendance_id = self._attendance.create_checkin(
            user_id=actor.user_id,
            squad_id=squad.squad_id,
            sprint_id=sprint.sprint_id if sprint else None,
            work_date=today,
            check_in_time=now,
            geo=geo,
            work_mode=mode,
            event_tag=tag,
            status=AttendanceStatus.FULL_DAY,
            notes=notes,
        )
        logger.info("User %s checked in to squad %s on %s", actor.user_id, squad.squad_id, today)
        return self._get_record(attendance_id)

    def _ensure_not_open(self, user_id: int, squad_id: int, today: date) -> None:
        if self._attendance.get_open(user_id=user_id, squad_id=squad_id, work_date=today):
            logger.warning("Rejected duplicate check-in for user %s in squad %s", user_id, squad_id)
            raise AlreadyCheckedIn()

    def check_out(
        self,
        actor: User,
        attendance_id: int,
        *,
        geo: Optional[GeoStamp] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or utc_now()
        record = self._get_record(attendance_id)

        if record.user_id != actor.user_id:
            raise NotOwner()
        if not record.is_open:
            raise AlreadyCheckedOut()

        geo = _validated_geo(geo)
        notes = optional_text(notes, "notes", MAX_NOTES_LENGTH)
        hours = self._hours.total_hours(record.check_in_time, now)
        closed = record.closed(
            check_out_time=now,
            geo=geo,
            total_hours=hours,
            notes=_append_notes(record.notes, notes),
        )

        ok = self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            geo=geo,
            total_hours=hours,
            notes=closed.notes,
        )
        if not ok:
            # Lost the race against another check-out of the same record.
            raise AlreadyCheckedOut()

        logger.info("User %s checked out of record %s after %s hours", actor.user_id, record.attendance_id, hours)
        return closed

    def today(
        self,
        actor: User,
        squad_id: Optional[int] = None,
        *,
        now: datetime | None = None,
    ) -> Optional[AttendanceRecord]:
        """The actor's latest record whose work_date is today in its own squad's timezone."""
        now = now or utc_now()
        if squad_id is not None:
            squad_id = self._get_squad(squad_id).squad_id

        # Squad timezones are at most a day away from UTC.
        utc_today = local_today(now, "UTC")
        candidates = self._attendance.list_records(
            squad_id=squad_id,
            user_id=actor.user_id,
            start_date=utc_today - timedelta(days=1),
            end_date=utc_today + timedelta(days=1),
            limit=self._list_limit,
        )

        timezones: dict[int, str] = {}
        todays = []
        for r in candidates:
            if r.squad_id not in timezones:
                squad = self._squads.get_by_id(r.squad_id)
                timezones[r.squad_id] = squad.timezone if squad else DEFAULT_TIMEZONE
            if r.work_date == local_today(now, timezones[r.squad_id]):
                todays.append(r)
        return max(todays, key=lambda r: (r.check_in_time, r.attendance_id)) if todays else None

    def list_records(
        self,
        *,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if start_date and end_date:
            inclusive_day_count(start_date, end_date)
        return self._attendance.list_records(
            squad_id=squad_id,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            limit=min(int(limit or self._list_limit), self._list_limit),
        )

    def update_record(self, actor: User, attendance_id: int, patch: AttendancePatch) -> AttendanceRecord:
        if not can_edit_attendance(actor):
            raise Forbidden("Only administrators or squad leads can edit attendance")

        record = self._get_record(attendance_id)
        patch = AttendancePatch(
            work_mode=require_enum(WorkMode, patch.work_mode, "work_mode") if patch.work_mode else None,
            event_tag=require_enum(EventTag, patch.event_tag, "event_tag") if patch.event_tag else None,
            status=require_enum(AttendanceStatus, patch.status, "status") if patch.status else None,
            notes=require_max_length(patch.notes, "notes", MAX_NOTES_LENGTH),
        )
        self._attendance.update_details(attendance_id=record.attendance_id, patch=patch)
        logger.info("User %s edited attendance record %s", actor.user_id, record.attendance_id)
        return self._get_record(record.attendance_id)

    def delete_record(self, actor: User, attendance_id: int) -> None:
        if not can_delete_attendance(actor):
            raise Forbidden("Only administrators can delete attendance records")

        record = self._get_record(attendance_id)
        self._attendance.delete(record.attendance_id)
        logger.info("User %s deleted attendance record %s", actor.user_id, record.attendance_id)

    def presence_board(self, squad_id: int, *, now: datetime | None = None) -> PresenceBoard:
        now = now or utc_now()
        squad = self._get_squad(squad_id)
        today = local_today(now, squad.timezone)

        members = self._squads.active_members(squad.squad_id)
        records = self._attendance.list_for_squad_between(squad_id=squad.squad_id, start_date=today, end_date=today)
        return aggregator.build_presence_board(squad.squad_id, members, records, today)

    def stats(self, squad_id: int, *, start_date: date, end_date: date) -> AttendanceStats:
        inclusive_day_count(start_date, end_date)
        squad = self._get_squad(squad_id)
        records = self._attendance.list_for_squad_between(
            squad_id=squad.squad_id,
            start_date=start_date,
            end_date=end_date,
        )
        return aggregator.compute_stats(records)
