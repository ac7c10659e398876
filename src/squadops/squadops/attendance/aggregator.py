"""Read-side projections over attendance records.

Pure functions: callers pass in the records, nothing here touches storage.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Iterable, Sequence

from ..squads.model import Member
from .model import AttendanceRecord, AttendanceStats, PresenceBoard, PresenceEntry


def _first_by_user(records: Iterable[AttendanceRecord]) -> dict[int, AttendanceRecord]:
    # Earliest check-in wins; attendance_id breaks ties.
    first: dict[int, AttendanceRecord] = {}
    for r in sorted(records, key=lambda r: (r.check_in_time, r.attendance_id)):
        first.setdefault(r.user_id, r)
    return first


def build_presence_board(
    squad_id: int,
    active_members: Sequence[Member],
    todays_records: Iterable[AttendanceRecord],
    on_date: date,
) -> PresenceBoard:
    by_user = _first_by_user(r for r in todays_records if r.work_date == on_date)
    entries: list[PresenceEntry] = []
    seen: set[int] = set()
    for member in active_members:
        if member.user_id in seen:
            continue
        seen.add(member.user_id)
        entries.append(PresenceEntry(user_id=member.user_id, name=member.name, record=by_user.get(member.user_id)))
    return PresenceBoard(squad_id=squad_id, on_date=on_date, entries=entries)


def compute_stats(records: Sequence[AttendanceRecord]) -> AttendanceStats:
    hours = [r.total_hours for r in records if r.total_hours is not None]
    total_hours = sum(hours)
    average = round(total_hours / len(hours), 2) if hours else 0.0

    return AttendanceStats(
        total_records=len(records),
        total_hours=total_hours,
        average_hours=average,
        work_mode_breakdown=dict(Counter(r.work_mode.value for r in records)),
        event_breakdown=dict(Counter(r.event_tag.value for r in records)),
        status_breakdown=dict(Counter(r.status.value for r in records)),
    )
