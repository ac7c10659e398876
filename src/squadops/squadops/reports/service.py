from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import to_local
from ..common.time_window import inclusive_day_count
from ..core.exceptions import NotFound
from ..squads.repository import SquadRepository

REPORT_COLUMNS = [
    "work_date",
    "user_id",
    "user_name",
    "check_in",
    "check_out",
    "total_hours",
    "work_mode",
    "event_tag",
    "status",
    "notes",
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository, squads: SquadRepository):
        self._attendance = attendance
        self._squads = squads

    def build_attendance_report(
        self,
        *,
        squad_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> ReportData:
        inclusive_day_count(start, end)
        squad = self._squads.get_by_id(int(squad_id))
        if not squad:
            raise NotFound("Squad not found", details={"squad_id": squad_id})

        query_rows = self._attendance.get_report_rows(
            squad_id=squad.squad_id,
            start_date=start,
            end_date=end,
            user_id=user_id,
        )

        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in query_rows:
            hours = r.total_hours or 0
            out_rows.append(
                {
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "user_id": r.user_id,
                    "user_name": r.user_name,
                    "check_in": to_local(r.check_in_time, squad.timezone).strftime("%H:%M"),
                    "check_out": to_local(r.check_out_time, squad.timezone).strftime("%H:%M") if r.check_out_time else "-",
                    "total_hours": r.total_hours,
                    "work_mode": r.work_mode.value,
                    "event_tag": r.event_tag.value,
                    "status": r.status.value,
                    "notes": r.notes or "",
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {"user_id": r.user_id, "user_name": r.user_name, "days": set(), "total_hours": 0}
                summary_map[r.user_id] = s
            s["days"].add(r.work_date)
            s["total_hours"] += hours

        summary = [
            {
                "user_id": s["user_id"],
                "user_name": s["user_name"],
                "days_present": len(s["days"]),
                "total_hours": s["total_hours"],
            }
            for s in summary_map.values()
        ]
        summary.sort(key=lambda x: (-x["total_hours"], x["user_id"]))
        return ReportData(rows=out_rows, summary=summary)

    @staticmethod
    def _frame(data: ReportData) -> pd.DataFrame:
        return pd.DataFrame(data.rows, columns=REPORT_COLUMNS)

    def export_excel(self, data: ReportData) -> bytes:
        """Rows on one sheet, per-user summary on another (kept in memory)."""
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            self._frame(data).to_excel(writer, index=False, sheet_name="Attendance")
            pd.DataFrame(data.summary, columns=["user_id", "user_name", "days_present", "total_hours"]).to_excel(
                writer, index=False, sheet_name="Summary"
            )
        return output.getvalue()

    def export_csv(self, data: ReportData) -> bytes:
        return self._frame(data).to_csv(index=False).encode("utf-8-sig")
