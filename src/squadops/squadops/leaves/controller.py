from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, date_value, int_value, json_body, ok, to_jsonable
from ..container import Container
from ..core.exceptions import ValidationError
from .model import LeaveApproval, LeavePatch, LeaveRequest


def request_json(req: LeaveRequest) -> dict:
    return {
        "id": req.request_id,
        "user_id": req.user_id,
        "squad_id": req.squad_id,
        "leave_type": req.leave_type.value,
        "start_date": req.start_date.isoformat(),
        "end_date": req.end_date.isoformat(),
        "total_days": req.total_days,
        "reason": req.reason,
        "attachments": list(req.attachments),
        "status": req.status.value,
        "approved_by": req.approved_by,
        "approved_at": to_jsonable(req.approved_at),
        "rejection_reason": req.rejection_reason,
        "created_at": to_jsonable(req.created_at),
    }


def approval_json(a: LeaveApproval) -> dict:
    return {
        "id": a.approval_id,
        "leave_request_id": a.request_id,
        "approver_id": a.approver_id,
        "level": a.level.value,
        "status": a.outcome.value,
        "comments": a.comments,
        "reviewed_at": to_jsonable(a.reviewed_at),
    }


def _attachments(body: dict):
    value = body.get("attachments")
    if value is not None and not isinstance(value, list):
        raise ValidationError.for_field("attachments", "attachments must be a list")
    return value


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    def _actor():
        return current_actor(container.users_repo)

    @app.route("/api/leave-requests", methods=["GET"], endpoint="leave_index")
    def index():
        actor = _actor()
        requests = service.list_requests(
            actor,
            status=request.args.get("status"),
            squad_id=int_value(request.args.get("squad_id"), "squad_id"),
            user_id=int_value(request.args.get("user_id"), "user_id"),
            limit=int_value(request.args.get("limit"), "limit"),
        )
        return ok([request_json(r) for r in requests])

    @app.route("/api/leave-requests", methods=["POST"], endpoint="leave_store")
    def store():
        actor = _actor()
        body = json_body()
        req = service.submit(
            actor,
            leave_type=body.get("leave_type"),
            start_date=date_value(body.get("start_date"), "start_date", required=True),
            end_date=date_value(body.get("end_date"), "end_date", required=True),
            reason=body.get("reason"),
            squad_id=int_value(body.get("squad_id"), "squad_id"),
            attachments=_attachments(body),
        )
        return ok(request_json(req), 201, message="Leave request submitted successfully")

    @app.route("/api/leave-requests/pending-approvals", methods=["GET"], endpoint="leave_pending")
    def pending_approvals():
        actor = _actor()
        return ok([request_json(r) for r in service.list_pending_approvals(actor)])

    @app.route("/api/leave-requests/calendar", methods=["GET"], endpoint="leave_calendar")
    def calendar():
        _actor()
        month = request.args.get("month") or ""
        cal = service.calendar(int_value(request.args.get("squad_id"), "squad_id", required=True), month)
        return ok({"month": month, "leave_requests": [request_json(r) for r in cal.requests]})

    @app.route("/api/leave-requests/<int:request_id>", methods=["GET"], endpoint="leave_show")
    def show(request_id: int):
        actor = _actor()
        req = service.get_request(actor, request_id)
        data = request_json(req)
        data["approvals"] = [approval_json(a) for a in service.approvals_for(actor, request_id)]
        return ok(data)

    @app.route("/api/leave-requests/<int:request_id>", methods=["PATCH", "PUT"], endpoint="leave_update")
    def update(request_id: int):
        actor = _actor()
        body = json_body()
        attachments = _attachments(body)
        patch = LeavePatch(
            leave_type=body.get("leave_type"),
            start_date=date_value(body.get("start_date"), "start_date"),
            end_date=date_value(body.get("end_date"), "end_date"),
            reason=body.get("reason"),
            attachments=tuple(attachments) if attachments is not None else None,
        )
        return ok(request_json(service.amend(actor, request_id, patch)), message="Leave request updated successfully")

    @app.route("/api/leave-requests/<int:request_id>", methods=["DELETE"], endpoint="leave_cancel")
    def cancel(request_id: int):
        actor = _actor()
        return ok(request_json(service.cancel(actor, request_id)), message="Leave request cancelled successfully")

    @app.route("/api/leave-requests/<int:request_id>/approve", methods=["POST"], endpoint="leave_approve")
    def approve(request_id: int):
        actor = _actor()
        body = json_body()
        req = service.approve(actor, request_id, comments=body.get("comments"))
        return ok(request_json(req), message="Leave request approved successfully")

    @app.route("/api/leave-requests/<int:request_id>/reject", methods=["POST"], endpoint="leave_reject")
    def reject(request_id: int):
        actor = _actor()
        body = json_body()
        req = service.reject(
            actor,
            request_id,
            rejection_reason=body.get("rejection_reason"),
            comments=body.get("comments"),
        )
        return ok(request_json(req), message="Leave request rejected")
