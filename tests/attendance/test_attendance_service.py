from datetime import date

import pytest

from squadops.attendance.model import AttendancePatch, GeoStamp
from squadops.attendance.service import AttendanceService
from squadops.core.enums import AttendanceStatus, EventTag, SprintStatus, WorkMode
from squadops.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    Forbidden,
    InvalidRange,
    NotFound,
    NotOwner,
    ValidationError,
)
from squadops.squads.model import Sprint
from tests.fakes import ADMIN, LEAD, MEMBER, OTHER, OTHER_LEAD, FakeAttendanceRepo, FakeSquadsRepo, utc


def _service():
    repo = FakeAttendanceRepo()
    squads = FakeSquadsRepo()
    return AttendanceService(repo, squads), repo, squads


def test_check_in_uses_squad_local_date_and_defaults():
    svc, _, _ = _service()
    # 23:30 UTC on the 9th is already the 10th in Berlin.
    rec = svc.check_in(MEMBER, 1, work_mode="remote", now=utc(2025, 3, 9, 23, 30))

    assert rec.work_date == date(2025, 3, 10)
    assert rec.is_open
    assert rec.event_tag == EventTag.REGULAR
    assert rec.status == AttendanceStatus.FULL_DAY
    assert rec.work_mode == WorkMode.REMOTE


def test_check_in_attaches_active_sprint():
    svc, _, squads = _service()
    squads.add_sprint(Sprint(7, 1, "Sprint 7", date(2025, 3, 3), date(2025, 3, 14), SprintStatus.ACTIVE))

    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    assert rec.sprint_id == 7


def test_second_check_in_same_day_is_rejected():
    svc, _, _ = _service()
    svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    with pytest.raises(AlreadyCheckedIn):
        svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 9, 0))


def test_check_in_again_after_check_out_is_allowed():
    svc, _, _ = _service()
    first = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    svc.check_out(MEMBER, first.attendance_id, now=utc(2025, 3, 10, 11, 0))

    second = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 12, 0))

    assert second.attendance_id != first.attendance_id


def test_repository_race_surfaces_as_already_checked_in():
    svc, repo, _ = _service()
    svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    # Simulate a concurrent request that passed the pre-check.
    repo.get_open = lambda **kwargs: None

    with pytest.raises(AlreadyCheckedIn):
        svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))


def test_non_member_cannot_check_in_but_admin_can():
    svc, _, _ = _service()
    with pytest.raises(Forbidden):
        svc.check_in(OTHER_LEAD, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    rec = svc.check_in(ADMIN, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    assert rec.user_id == ADMIN.user_id


def test_check_in_unknown_squad():
    svc, _, _ = _service()
    with pytest.raises(NotFound):
        svc.check_in(MEMBER, 99, work_mode="office", now=utc(2025, 3, 10, 8, 0))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"work_mode": "beach"},
        {"work_mode": "office", "event_tag": "party"},
        {"work_mode": "office", "geo": GeoStamp(latitude=91, longitude=0)},
        {"work_mode": "office", "geo": GeoStamp(latitude=0, longitude=-181)},
        {"work_mode": "office", "notes": "x" * 501},
    ],
)
def test_check_in_validation(kwargs):
    svc, _, _ = _service()
    with pytest.raises(ValidationError):
        svc.check_in(MEMBER, 1, now=utc(2025, 3, 10, 8, 0), **kwargs)


def test_check_out_truncates_hours_and_appends_notes():
    svc, _, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", notes="standup first", now=utc(2025, 3, 10, 8, 0))

    closed = svc.check_out(MEMBER, rec.attendance_id, notes="left for dentist", now=utc(2025, 3, 10, 16, 30))

    assert closed.total_hours == 8
    assert closed.notes == "standup first\nleft for dentist"
    assert not closed.is_open
    assert svc.get_record(rec.attendance_id).total_hours == 8


def test_only_owner_can_check_out():
    svc, _, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    with pytest.raises(NotOwner):
        svc.check_out(OTHER, rec.attendance_id, now=utc(2025, 3, 10, 16, 0))
    with pytest.raises(NotOwner):
        svc.check_out(ADMIN, rec.attendance_id, now=utc(2025, 3, 10, 16, 0))


def test_double_check_out_is_rejected():
    svc, _, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    svc.check_out(MEMBER, rec.attendance_id, now=utc(2025, 3, 10, 16, 0))

    with pytest.raises(AlreadyCheckedOut):
        svc.check_out(MEMBER, rec.attendance_id, now=utc(2025, 3, 10, 17, 0))


def test_check_out_lost_race_is_already_checked_out():
    svc, repo, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    repo.update_checkout = lambda **kwargs: False

    with pytest.raises(AlreadyCheckedOut):
        svc.check_out(MEMBER, rec.attendance_id, now=utc(2025, 3, 10, 16, 0))


def test_today_returns_latest_record():
    svc, _, _ = _service()
    first = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))
    svc.check_out(MEMBER, first.attendance_id, now=utc(2025, 3, 10, 10, 0))
    second = svc.check_in(MEMBER, 1, work_mode="remote", now=utc(2025, 3, 10, 12, 0))

    assert svc.today(MEMBER, now=utc(2025, 3, 10, 13, 0)).attendance_id == second.attendance_id
    assert svc.today(LEAD, now=utc(2025, 3, 10, 13, 0)) is None


def test_today_follows_the_squad_timezone_near_midnight():
    svc, _, _ = _service()
    # 23:30 UTC on the 9th is the 10th in Berlin, where squad 1 works.
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 9, 23, 30))

    assert svc.today(MEMBER, now=utc(2025, 3, 9, 23, 45)).attendance_id == rec.attendance_id
    assert svc.today(MEMBER, 1, now=utc(2025, 3, 9, 23, 45)).attendance_id == rec.attendance_id
    # Berlin has moved on to the 11th.
    assert svc.today(MEMBER, now=utc(2025, 3, 10, 23, 30)) is None


def test_today_can_be_narrowed_to_one_squad():
    svc, _, _ = _service()
    svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    assert svc.today(MEMBER, 2, now=utc(2025, 3, 10, 9, 0)) is None
    with pytest.raises(NotFound):
        svc.today(MEMBER, 99, now=utc(2025, 3, 10, 9, 0))


def test_update_record_requires_admin_or_lead():
    svc, _, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    with pytest.raises(Forbidden):
        svc.update_record(MEMBER, rec.attendance_id, AttendancePatch(status="partial_day"))

    updated = svc.update_record(LEAD, rec.attendance_id, AttendancePatch(status="partial_day", notes="fixed"))
    assert updated.status == AttendanceStatus.PARTIAL_DAY
    assert updated.notes == "fixed"


def test_delete_record_is_admin_only():
    svc, repo, _ = _service()
    rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, 10, 8, 0))

    with pytest.raises(Forbidden):
        svc.delete_record(LEAD, rec.attendance_id)

    svc.delete_record(ADMIN, rec.attendance_id)
    assert repo.get_by_id(rec.attendance_id) is None
    with pytest.raises(NotFound):
        svc.delete_record(ADMIN, rec.attendance_id)


def test_presence_board_counts_members():
    svc, _, _ = _service()
    svc.check_in(MEMBER, 1, work_mode="remote", now=utc(2025, 3, 10, 8, 0))

    board = svc.presence_board(1, now=utc(2025, 3, 10, 12, 0))

    assert (board.total, board.present, board.absent) == (3, 1, 2)
    by_user = {e.user_id: e for e in board.entries}
    assert by_user[MEMBER.user_id].work_mode == WorkMode.REMOTE
    assert by_user[LEAD.user_id].record is None


def test_stats_validates_range():
    svc, _, _ = _service()
    with pytest.raises(InvalidRange):
        svc.stats(1, start_date=date(2025, 3, 10), end_date=date(2025, 3, 1))


def test_list_records_caps_limit():
    svc, _, _ = _service()
    for day in (10, 11, 12):
        rec = svc.check_in(MEMBER, 1, work_mode="office", now=utc(2025, 3, day, 8, 0))
        svc.check_out(MEMBER, rec.attendance_id, now=utc(2025, 3, day, 16, 0))

    rows = svc.list_records(user_id=MEMBER.user_id, limit=2)

    assert [r.work_date for r in rows] == [date(2025, 3, 12), date(2025, 3, 11)]
