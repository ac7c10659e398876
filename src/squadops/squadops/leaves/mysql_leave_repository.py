from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..common.datetime_utils import from_db, to_db
from ..core.enums import ApprovalLevel, DecisionOutcome, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import Decision, LeaveApproval, LeavePatch, LeaveRequest, NewLeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    request_id, user_id, squad_id, leave_type, start_date, end_date, total_days,
    reason, attachments, status, approved_by, approved_at, rejection_reason, created_at
"""


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        squad_id=int(r["squad_id"]) if r.get("squad_id") is not None else None,
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=int(r["total_days"]),
        reason=r["reason"],
        attachments=tuple(load_json(r.get("attachments"), [])),
        status=LeaveStatus(r["status"]),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=from_db(r.get("approved_at")),
        rejection_reason=r.get("rejection_reason"),
        created_at=from_db(r["created_at"]),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new: NewLeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, squad_id, leave_type, start_date, end_date, total_days,
                    reason, attachments, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.user_id),
                    new.squad_id,
                    new.leave_type.value,
                    new.start_date,
                    new.end_date,
                    int(new.total_days),
                    new.reason,
                    dump_json(list(new.attachments)),
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def amend_pending(self, *, request_id: int, patch: LeavePatch, total_days: int) -> bool:
        sets = ["total_days=%s"]
        params: list[object] = [int(total_days)]
        if patch.leave_type is not None:
            sets.append("leave_type=%s")
            params.append(patch.leave_type.value)
        if patch.start_date is not None:
            sets.append("start_date=%s")
            params.append(patch.start_date)
        if patch.end_date is not None:
            sets.append("end_date=%s")
            params.append(patch.end_date)
        if patch.reason is not None:
            sets.append("reason=%s")
            params.append(patch.reason)
        if patch.attachments is not None:
            sets.append("attachments=%s")
            params.append(dump_json(list(patch.attachments)))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE leave_requests SET {', '.join(sets)} WHERE request_id=%s AND status=%s",
                tuple(params + [int(request_id), LeaveStatus.PENDING.value]),
            )
            return cur.rowcount > 0

    def cancel_pending(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_requests SET status=%s WHERE request_id=%s AND status=%s",
                (LeaveStatus.CANCELLED.value, int(request_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def decide_pending(self, decision: Decision) -> bool:
        decided_at = to_db(decision.decided_at)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, approved_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    decision.status.value,
                    int(decision.approver_id),
                    decided_at,
                    decision.rejection_reason,
                    int(decision.request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            if cur.rowcount == 0:
                return False

            cur.execute(
                """
                INSERT INTO leave_approvals(request_id, approver_id, level, outcome, comments, reviewed_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(decision.request_id),
                    int(decision.approver_id),
                    decision.level.value,
                    decision.outcome.value,
                    decision.comments,
                    decided_at,
                ),
            )
            return True

    def list_pending(self, *, squad_ids: Optional[Collection[int]] = None) -> Sequence[LeaveRequest]:
        clauses = ["status=%s"]
        params: list[object] = [LeaveStatus.PENDING.value]
        if squad_ids is not None:
            ids = sorted(int(s) for s in squad_ids)
            if not ids:
                return []
            clauses.append(f"squad_id IN ({in_clause(ids)})")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at ASC, request_id ASC
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_approved_overlapping(self, *, squad_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE squad_id=%s AND status=%s AND start_date<=%s AND end_date>=%s
                ORDER BY start_date, request_id
                """,
                (int(squad_id), LeaveStatus.APPROVED.value, end_date, start_date),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_requests(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        squad_id: Optional[int] = None,
        user_id: Optional[int] = None,
        visible_to_user: Optional[int] = None,
        visible_squads: Optional[Collection[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if squad_id is not None:
            clauses.append("squad_id=%s")
            params.append(int(squad_id))
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if visible_to_user is not None:
            squads = sorted(int(s) for s in (visible_squads or ()))
            if squads:
                clauses.append(f"(user_id=%s OR squad_id IN ({in_clause(squads)}))")
                params.extend([int(visible_to_user), *squads])
            else:
                clauses.append("user_id=%s")
                params.append(int(visible_to_user))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def approvals_for(self, request_id: int) -> Sequence[LeaveApproval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT approval_id, request_id, approver_id, level, outcome, comments, reviewed_at
                FROM leave_approvals
                WHERE request_id=%s
                ORDER BY reviewed_at, approval_id
                """,
                (int(request_id),),
            )
            return [
                LeaveApproval(
                    approval_id=int(r["approval_id"]),
                    request_id=int(r["request_id"]),
                    approver_id=int(r["approver_id"]),
                    level=ApprovalLevel(r["level"]),
                    outcome=DecisionOutcome(r["outcome"]),
                    comments=r.get("comments"),
                    reviewed_at=from_db(r["reviewed_at"]),
                )
                for r in fetchall(cur)
            ]
