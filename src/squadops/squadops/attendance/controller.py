from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.http import current_actor, date_value, int_value, json_body, ok, to_jsonable
from ..core.exceptions import Forbidden, ValidationError
from ..container import Container
from ..reports.service import XLSX_MIMETYPE
from ..users.policy import can_view_reports
from .model import AttendancePatch, AttendanceRecord, AttendanceStats, GeoStamp, PresenceBoard


def record_json(rec: AttendanceRecord) -> dict:
    return {
        "id": rec.attendance_id,
        "user_id": rec.user_id,
        "squad_id": rec.squad_id,
        "sprint_id": rec.sprint_id,
        "work_date": to_jsonable(rec.work_date),
        "check_in_time": to_jsonable(rec.check_in_time),
        "check_in_latitude": rec.shift.check_in_geo.latitude,
        "check_in_longitude": rec.shift.check_in_geo.longitude,
        "check_in_address": rec.shift.check_in_geo.address,
        "check_out_time": to_jsonable(rec.check_out_time),
        "check_out_latitude": None if rec.is_open else rec.shift.check_out_geo.latitude,
        "check_out_longitude": None if rec.is_open else rec.shift.check_out_geo.longitude,
        "check_out_address": None if rec.is_open else rec.shift.check_out_geo.address,
        "work_mode": rec.work_mode.value,
        "event_tag": rec.event_tag.value,
        "status": rec.status.value,
        "notes": rec.notes,
        "total_hours": rec.total_hours,
        "is_open": rec.is_open,
    }


def presence_json(board: PresenceBoard) -> dict:
    return {
        "squad_id": board.squad_id,
        "date": board.on_date.isoformat(),
        "presence_board": [
            {
                "user": {"id": e.user_id, "name": e.name},
                "attendance": record_json(e.record) if e.record else None,
                "is_present": e.is_present,
                "work_mode": e.work_mode.value if e.work_mode else None,
                "check_in_time": to_jsonable(e.check_in_time),
                "check_out_time": to_jsonable(e.check_out_time),
            }
            for e in board.entries
        ],
        "summary": {"total": board.total, "present": board.present, "absent": board.absent},
    }


def stats_json(stats: AttendanceStats) -> dict:
    return {
        "total_records": stats.total_records,
        "total_hours": stats.total_hours,
        "average_hours": stats.average_hours,
        "work_mode_breakdown": stats.work_mode_breakdown,
        "event_breakdown": stats.event_breakdown,
        "status_breakdown": stats.status_breakdown,
    }


def _geo(body: dict) -> GeoStamp:
    return GeoStamp(latitude=body.get("latitude"), longitude=body.get("longitude"), address=request.remote_addr)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _actor():
        return current_actor(container.users_repo)

    def _report_args():
        actor = _actor()
        squad_id = int_value(request.args.get("squad_id"), "squad_id", required=True)
        if not can_view_reports(actor, container.squads_repo.leads(squad_id)):
            raise Forbidden("Only administrators or leads of this squad can run reports")
        return {
            "squad_id": squad_id,
            "start": date_value(request.args.get("start_date"), "start_date", required=True),
            "end": date_value(request.args.get("end_date"), "end_date", required=True),
            "user_id": int_value(request.args.get("user_id"), "user_id"),
        }

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        actor = _actor()
        body = json_body()
        rec = service.check_in(
            actor,
            int_value(body.get("squad_id"), "squad_id", required=True),
            work_mode=body.get("work_mode"),
            event_tag=body.get("event_tag"),
            geo=_geo(body),
            notes=body.get("notes"),
        )
        return ok(record_json(rec), 201, message="Checked in successfully")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out():
        actor = _actor()
        body = json_body()
        rec = service.check_out(
            actor,
            int_value(body.get("attendance_id"), "attendance_id", required=True),
            geo=_geo(body),
            notes=body.get("notes"),
        )
        return ok(record_json(rec), message="Checked out successfully")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    def today():
        actor = _actor()
        rec = service.today(actor, int_value(request.args.get("squad_id"), "squad_id"))
        return ok(record_json(rec) if rec else None)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_index")
    def index():
        _actor()
        records = service.list_records(
            squad_id=int_value(request.args.get("squad_id"), "squad_id"),
            user_id=int_value(request.args.get("user_id"), "user_id"),
            start_date=date_value(request.args.get("start_date"), "start_date"),
            end_date=date_value(request.args.get("end_date"), "end_date"),
            limit=int_value(request.args.get("limit"), "limit"),
        )
        return ok([record_json(r) for r in records])

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_show")
    def show(attendance_id: int):
        _actor()
        return ok(record_json(service.get_record(attendance_id)))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_update")
    def update(attendance_id: int):
        actor = _actor()
        body = json_body()
        patch = AttendancePatch(
            work_mode=body.get("work_mode"),
            event_tag=body.get("event_tag"),
            status=body.get("status"),
            notes=body.get("notes"),
        )
        return ok(record_json(service.update_record(actor, attendance_id, patch)), message="Attendance record updated")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    def delete(attendance_id: int):
        actor = _actor()
        service.delete_record(actor, attendance_id)
        return ok(None, message="Attendance record deleted")

    @app.route("/api/squads/<int:squad_id>/presence", methods=["GET"], endpoint="squad_presence")
    def presence(squad_id: int):
        _actor()
        return ok(presence_json(service.presence_board(squad_id)))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    def stats():
        _actor()
        result = service.stats(
            int_value(request.args.get("squad_id"), "squad_id", required=True),
            start_date=date_value(request.args.get("start_date"), "start_date", required=True),
            end_date=date_value(request.args.get("end_date"), "end_date", required=True),
        )
        return ok(stats_json(result))

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    def report():
        data = container.report_service.build_attendance_report(**_report_args())
        return ok({"rows": data.rows, "summary": data.summary})

    @app.route("/api/attendance/export", methods=["GET"], endpoint="attendance_export")
    def export():
        args = _report_args()
        fmt = (request.args.get("format") or "xlsx").lower()
        if fmt not in {"xlsx", "csv"}:
            raise ValidationError.for_field("format", "format must be xlsx or csv")

        data = container.report_service.build_attendance_report(**args)
        filename = f"attendance_{args['squad_id']}_{args['start']:%Y%m%d}_{args['end']:%Y%m%d}.{fmt}"
        if fmt == "csv":
            payload, mimetype = container.report_service.export_csv(data), "text/csv"
        else:
            payload, mimetype = container.report_service.export_excel(data), XLSX_MIMETYPE
        return send_file(io.BytesIO(payload), download_name=filename, as_attachment=True, mimetype=mimetype)
