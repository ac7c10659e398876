from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AttendanceStatus, EventTag, WorkMode
from ..core.exceptions import AlreadyCheckedOut


@dataclass(frozen=True)
class GeoStamp:
    """Where a check-in/check-out came from."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class OpenShift:
    check_in_time: datetime
    check_in_geo: GeoStamp = field(default_factory=GeoStamp)

    def close(self, *, check_out_time: datetime, geo: GeoStamp, total_hours: int) -> "ClosedShift":
        return ClosedShift(
            check_in_time=self.check_in_time,
            check_in_geo=self.check_in_geo,
            check_out_time=check_out_time,
            check_out_geo=geo,
            total_hours=total_hours,
        )


@dataclass(frozen=True)
class ClosedShift:
    check_in_time: datetime
    check_out_time: datetime
    total_hours: int
    check_in_geo: GeoStamp = field(default_factory=GeoStamp)
    check_out_geo: GeoStamp = field(default_factory=GeoStamp)


Shift = Union[OpenShift, ClosedShift]


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in (and eventually one check-out) for a squad day."""

    attendance_id: int
    user_id: int
    squad_id: int
    work_date: date
    shift: Shift
    work_mode: WorkMode
    event_tag: EventTag = EventTag.REGULAR
    status: AttendanceStatus = AttendanceStatus.FULL_DAY
    sprint_id: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return isinstance(self.shift, OpenShift)

    @property
    def check_in_time(self) -> datetime:
        return self.shift.check_in_time

    @property
    def check_out_time(self) -> Optional[datetime]:
        return self.shift.check_out_time if isinstance(self.shift, ClosedShift) else None

    @property
    def total_hours(self) -> Optional[int]:
        return self.shift.total_hours if isinstance(self.shift, ClosedShift) else None

    def closed(self, *, check_out_time: datetime, geo: GeoStamp, total_hours: int, notes: Optional[str]) -> "AttendanceRecord":
        if not isinstance(self.shift, OpenShift):
            raise AlreadyCheckedOut()
        return replace(
            self,
            shift=self.shift.close(check_out_time=check_out_time, geo=geo, total_hours=total_hours),
            notes=notes,
        )


@dataclass(frozen=True)
class AttendancePatch:
    """Administrative edit; ``None`` leaves a field unchanged."""

    work_mode: Optional[WorkMode] = None
    event_tag: Optional[EventTag] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PresenceEntry:
    user_id: int
    name: str
    record: Optional[AttendanceRecord]

    @property
    def is_present(self) -> bool:
        return self.record is not None

    @property
    def work_mode(self) -> Optional[WorkMode]:
        return self.record.work_mode if self.record else None

    @property
    def check_in_time(self) -> Optional[datetime]:
        return self.record.check_in_time if self.record else None

    @property
    def check_out_time(self) -> Optional[datetime]:
        return self.record.check_out_time if self.record else None


@dataclass(frozen=True)
class PresenceBoard:
    squad_id: int
    on_date: date
    entries: list[PresenceEntry]

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def present(self) -> int:
        return sum(1 for e in self.entries if e.is_present)

    @property
    def absent(self) -> int:
        return self.total - self.present


@dataclass(frozen=True)
class AttendanceStats:
    total_records: int
    total_hours: int
    average_hours: float
    work_mode_breakdown: dict[str, int]
    event_breakdown: dict[str, int]
    status_breakdown: dict[str, int]


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports/exports (optimized for querying)."""

    attendance_id: int
    user_id: int
    user_name: str
    squad_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    total_hours: Optional[int]
    work_mode: WorkMode
    event_tag: EventTag
    status: AttendanceStatus
    notes: Optional[str] = None
