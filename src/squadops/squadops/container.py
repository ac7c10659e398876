from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import HoursCalculatorFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .compliance.mysql_compliance_repository import MySQLComplianceRepository
from .compliance.service import ComplianceService
from .core.constants import DEFAULT_LIST_LIMIT, DEFAULT_PENALTY_PER_SEVERITY, DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .reports.service import AttendanceReportService
from .squads.mysql_squad_repository import MySQLSquadRepository
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    default_timezone: str

    users_repo: MySQLUserRepository
    squads_repo: MySQLSquadRepository
    attendance_repo: MySQLAttendanceRepository
    leaves_repo: MySQLLeaveRepository
    compliance_repo: MySQLComplianceRepository

    attendance_service: AttendanceService
    leave_service: LeaveService
    compliance_service: ComplianceService
    report_service: AttendanceReportService


def build_container(
    *,
    db_config: dict,
    default_timezone: str = DEFAULT_TIMEZONE,
    hours_policy: str = "truncate",
    penalty_per_severity: float = DEFAULT_PENALTY_PER_SEVERITY,
    list_limit: int = DEFAULT_LIST_LIMIT,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    squads_repo = MySQLSquadRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    compliance_repo = MySQLComplianceRepository(conn)

    attendance_service = AttendanceService(
        attendance_repo,
        squads_repo,
        hours_calculator=HoursCalculatorFactory().for_policy(hours_policy),
        list_limit=list_limit,
    )
    leave_service = LeaveService(
        leaves_repo,
        squads_repo,
        default_timezone=default_timezone,
        list_limit=list_limit,
    )
    compliance_service = ComplianceService(
        compliance_repo,
        attendance_repo,
        leaves_repo,
        squads_repo,
        penalty_per_severity=penalty_per_severity,
    )
    report_service = AttendanceReportService(attendance_repo, squads_repo)

    return Container(
        conn=conn,
        default_timezone=default_timezone,
        users_repo=users_repo,
        squads_repo=squads_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        compliance_repo=compliance_repo,
        attendance_service=attendance_service,
        leave_service=leave_service,
        compliance_service=compliance_service,
        report_service=report_service,
    )
