"""In-memory repositories used across the test suite."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Optional

import pytz

from squadops.attendance.model import AttendanceRecord, AttendanceReportRow, OpenShift
from squadops.compliance.model import ComplianceReport, ComplianceRule, ComplianceScore
from squadops.core.enums import LeaveStatus, Role, SprintStatus
from squadops.core.exceptions import AlreadyCheckedIn
from squadops.leaves.model import Decision, LeaveApproval, LeaveRequest
from squadops.squads.model import Member, Sprint, Squad
from squadops.users.model import User

ADMIN = User(user_id=1, name="Ada Admin", role=Role.ADMIN)
LEAD = User(user_id=2, name="Lee Lead", role=Role.SQUAD_LEAD)
MEMBER = User(user_id=3, name="Max Member", role=Role.MEMBER)
OTHER = User(user_id=4, name="Olga Other", role=Role.MEMBER)
OTHER_LEAD = User(user_id=5, name="Omar Otherlead", role=Role.SQUAD_LEAD)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=pytz.UTC)


class FakeUsersRepo:
    def __init__(self, users=(ADMIN, LEAD, MEMBER, OTHER, OTHER_LEAD)):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))


class FakeSquadsRepo:
    """Squad 1 is led by LEAD with MEMBER and OTHER; squad 2 is led by OTHER_LEAD."""

    def __init__(self):
        self.squads = {
            1: Squad(squad_id=1, name="Platform", timezone="Europe/Berlin"),
            2: Squad(squad_id=2, name="Mobile", timezone="UTC"),
        }
        self.members = {
            1: [Member(2, "Lee Lead"), Member(3, "Max Member"), Member(4, "Olga Other")],
            2: [Member(5, "Omar Otherlead")],
        }
        self.lead_ids = {1: {2}, 2: {5}}
        self.sprints: dict[int, Sprint] = {}

    def add_sprint(self, sprint: Sprint) -> None:
        self.sprints[sprint.sprint_id] = sprint

    def get_by_id(self, squad_id):
        return self.squads.get(int(squad_id))

    def active_members(self, squad_id):
        return list(self.members.get(int(squad_id), []))

    def leads(self, squad_id):
        return set(self.lead_ids.get(int(squad_id), set()))

    def squads_led_by(self, user_id):
        return {sid for sid, leads in self.lead_ids.items() if int(user_id) in leads}

    def active_sprint(self, squad_id):
        for s in self.sprints.values():
            if s.squad_id == int(squad_id) and s.status == SprintStatus.ACTIVE:
                return s
        return None

    def get_sprint(self, sprint_id):
        return self.sprints.get(int(sprint_id))


class FakeAttendanceRepo:
    def __init__(self, user_names: Optional[dict[int, str]] = None):
        self._next_id = 1
        self.records: dict[int, AttendanceRecord] = {}
        self.user_names = user_names or {u.user_id: u.name for u in (ADMIN, LEAD, MEMBER, OTHER)}

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.attendance_id] = record
        self._next_id = max(self._next_id, record.attendance_id + 1)
        return record

    def get_by_id(self, attendance_id):
        return self.records.get(int(attendance_id))

    def get_open(self, *, user_id, squad_id, work_date):
        return self._find_open(user_id, squad_id, work_date)

    def _find_open(self, user_id, squad_id, work_date):
        # Stands in for the unique index, so it stays active when tests stub get_open.
        for r in self.records.values():
            if r.user_id == user_id and r.squad_id == squad_id and r.work_date == work_date and r.is_open:
                return r
        return None

    def create_checkin(self, *, user_id, squad_id, sprint_id, work_date, check_in_time, geo, work_mode, event_tag, status, notes=None):
        if self._find_open(user_id, squad_id, work_date):
            raise AlreadyCheckedIn()
        rid = self._next_id
        self._next_id += 1
        self.records[rid] = AttendanceRecord(
            attendance_id=rid,
            user_id=user_id,
            squad_id=squad_id,
            sprint_id=sprint_id,
            work_date=work_date,
            shift=OpenShift(check_in_time=check_in_time, check_in_geo=geo),
            work_mode=work_mode,
            event_tag=event_tag,
            status=status,
            notes=notes,
        )
        return rid

    def update_checkout(self, *, attendance_id, check_out_time, geo, total_hours, notes=None):
        rec = self.records.get(int(attendance_id))
        if not rec or not rec.is_open:
            return False
        self.records[rec.attendance_id] = rec.closed(check_out_time=check_out_time, geo=geo, total_hours=total_hours, notes=notes)
        return True

    def list_for_squad_between(self, *, squad_id, start_date, end_date):
        rows = [r for r in self.records.values() if r.squad_id == squad_id and start_date <= r.work_date <= end_date]
        return sorted(rows, key=lambda r: (r.work_date, r.check_in_time, r.attendance_id))

    def list_records(self, *, squad_id=None, user_id=None, start_date=None, end_date=None, limit=200):
        rows = [
            r
            for r in self.records.values()
            if (squad_id is None or r.squad_id == squad_id)
            and (user_id is None or r.user_id == user_id)
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        rows.sort(key=lambda r: (r.work_date, r.check_in_time), reverse=True)
        return rows[:limit]

    def update_details(self, *, attendance_id, patch):
        rec = self.records.get(int(attendance_id))
        if not rec:
            return False
        changes = {k: v for k, v in vars(patch).items() if v is not None}
        self.records[rec.attendance_id] = replace(rec, **changes)
        return True

    def delete(self, attendance_id):
        return self.records.pop(int(attendance_id), None) is not None

    def get_report_rows(self, *, squad_id, start_date, end_date, user_id=None):
        rows = []
        for r in self.list_for_squad_between(squad_id=squad_id, start_date=start_date, end_date=end_date):
            if user_id is not None and r.user_id != user_id:
                continue
            rows.append(
                AttendanceReportRow(
                    attendance_id=r.attendance_id,
                    user_id=r.user_id,
                    user_name=self.user_names.get(r.user_id, "?"),
                    squad_id=r.squad_id,
                    work_date=r.work_date,
                    check_in_time=r.check_in_time,
                    check_out_time=r.check_out_time,
                    total_hours=r.total_hours,
                    work_mode=r.work_mode,
                    event_tag=r.event_tag,
                    status=r.status,
                    notes=r.notes,
                )
            )
        return rows


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self._next_approval = 1
        self.requests: dict[int, LeaveRequest] = {}
        self.approvals: list[LeaveApproval] = []
        self._clock = utc(2025, 3, 1, 8, 0)

    def create(self, new):
        rid = self._next_id
        self._next_id += 1
        # Each insert gets a distinct, increasing created_at.
        self._clock += timedelta(minutes=1)
        self.requests[rid] = LeaveRequest(
            request_id=rid,
            user_id=new.user_id,
            squad_id=new.squad_id,
            leave_type=new.leave_type,
            start_date=new.start_date,
            end_date=new.end_date,
            total_days=new.total_days,
            reason=new.reason,
            attachments=tuple(new.attachments),
            status=LeaveStatus.PENDING,
            created_at=self._clock,
        )
        return rid

    def add(self, req: LeaveRequest) -> LeaveRequest:
        self.requests[req.request_id] = req
        self._next_id = max(self._next_id, req.request_id + 1)
        return req

    def get_by_id(self, request_id):
        return self.requests.get(int(request_id))

    def amend_pending(self, *, request_id, patch, total_days):
        req = self.requests.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        changes = {k: v for k, v in vars(patch).items() if v is not None}
        self.requests[req.request_id] = replace(req, total_days=total_days, **changes)
        return True

    def cancel_pending(self, *, request_id):
        req = self.requests.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.requests[req.request_id] = replace(req, status=LeaveStatus.CANCELLED)
        return True

    def decide_pending(self, decision: Decision):
        req = self.requests.get(int(decision.request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.requests[req.request_id] = replace(
            req,
            status=decision.status,
            approved_by=decision.approver_id,
            approved_at=decision.decided_at,
            rejection_reason=decision.rejection_reason,
        )
        self.approvals.append(
            LeaveApproval(
                approval_id=self._next_approval,
                request_id=req.request_id,
                approver_id=decision.approver_id,
                level=decision.level,
                outcome=decision.outcome,
                comments=decision.comments,
                reviewed_at=decision.decided_at,
            )
        )
        self._next_approval += 1
        return True

    def list_pending(self, *, squad_ids=None):
        rows = [
            r
            for r in self.requests.values()
            if r.status == LeaveStatus.PENDING and (squad_ids is None or r.squad_id in set(squad_ids))
        ]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id))

    def list_approved_overlapping(self, *, squad_id, start_date, end_date):
        rows = [
            r
            for r in self.requests.values()
            if r.squad_id == squad_id
            and r.status == LeaveStatus.APPROVED
            and r.start_date <= end_date
            and r.end_date >= start_date
        ]
        return sorted(rows, key=lambda r: (r.start_date, r.request_id))

    def list_requests(self, *, status=None, squad_id=None, user_id=None, visible_to_user=None, visible_squads=None, limit=200):
        rows = []
        for r in self.requests.values():
            if status is not None and r.status != status:
                continue
            if squad_id is not None and r.squad_id != squad_id:
                continue
            if user_id is not None and r.user_id != user_id:
                continue
            if visible_to_user is not None and not (r.user_id == visible_to_user or r.squad_id in set(visible_squads or ())):
                continue
            rows.append(r)
        rows.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        return rows[:limit]

    def approvals_for(self, request_id):
        return [a for a in self.approvals if a.request_id == int(request_id)]


class FakeComplianceRepo:
    def __init__(self, rules=()):
        self.rules: list[ComplianceRule] = list(rules)
        self.scores: dict[int, ComplianceScore] = {}

    def rules_for_squad(self, squad_id, *, active_only=True):
        return [r for r in self.rules if r.squad_id == squad_id and (r.is_active or not active_only)]

    def save_score(self, report: ComplianceReport):
        sid = len(self.scores) + 1
        self.scores[sid] = ComplianceScore(
            score_id=sid,
            squad_id=report.squad_id,
            sprint_id=report.period.sprint_id,
            period_start=report.period.start,
            period_end=report.period.end,
            period_type=report.period.period_type,
            score=report.score,
            violations=[v.to_dict() for v in report.violations],
            metrics=dict(report.metrics),
            created_at=utc(2025, 3, 20, 12, 0),
        )
        return sid

    def get_score(self, score_id):
        return self.scores.get(int(score_id))


def fake_container(**overrides) -> SimpleNamespace:
    """Duck-typed stand-in for squadops.container.Container."""
    from squadops.attendance.service import AttendanceService
    from squadops.compliance.service import ComplianceService
    from squadops.leaves.service import LeaveService
    from squadops.reports.service import AttendanceReportService

    users = overrides.pop("users_repo", FakeUsersRepo())
    squads = overrides.pop("squads_repo", FakeSquadsRepo())
    attendance = overrides.pop("attendance_repo", FakeAttendanceRepo())
    leaves = overrides.pop("leaves_repo", FakeLeaveRepo())
    compliance = overrides.pop("compliance_repo", FakeComplianceRepo())

    c = SimpleNamespace(
        conn=None,
        default_timezone="UTC",
        users_repo=users,
        squads_repo=squads,
        attendance_repo=attendance,
        leaves_repo=leaves,
        compliance_repo=compliance,
        attendance_service=AttendanceService(attendance, squads),
        leave_service=LeaveService(leaves, squads),
        compliance_service=ComplianceService(compliance, attendance, leaves, squads),
        report_service=AttendanceReportService(attendance, squads),
    )
    for k, v in overrides.items():
        setattr(c, k, v)
    return c
