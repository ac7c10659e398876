from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import local_today, utc_now
from ..common.http import current_actor, date_value, int_value, json_body, ok
from ..container import Container
from .model import ComplianceReport, ComplianceScore


def report_json(report: ComplianceReport) -> dict:
    return {
        "squad_id": report.squad_id,
        "sprint_id": report.period.sprint_id,
        "period_start": report.period.start.isoformat(),
        "period_end": report.period.end.isoformat(),
        "period_type": report.period.period_type.value,
        "score": report.score,
        "violations": [v.to_dict() for v in report.violations],
        "metrics": report.metrics,
    }


def score_json(score: ComplianceScore) -> dict:
    return {
        "id": score.score_id,
        "squad_id": score.squad_id,
        "sprint_id": score.sprint_id,
        "period_start": score.period_start.isoformat(),
        "period_end": score.period_end.isoformat(),
        "period_type": score.period_type.value,
        "score": score.score,
        "violations": score.violations,
        "metrics": score.metrics,
        "created_at": score.created_at.isoformat() if score.created_at else None,
    }


def register(app: Flask, container: Container) -> None:
    service = container.compliance_service

    def _report(squad_id: int, params: dict) -> ComplianceReport:
        """Pick the period from sprint_id, start_date/end_date or week_of (default: this week)."""
        period = (params.get("period") or "").lower()
        sprint_id = int_value(params.get("sprint_id"), "sprint_id")
        if period == "sprint" or sprint_id is not None:
            return service.score_sprint(squad_id, sprint_id)

        start = date_value(params.get("start_date"), "start_date")
        end = date_value(params.get("end_date"), "end_date")
        if start or end:
            return service.score_period(
                squad_id,
                start_date=date_value(params.get("start_date"), "start_date", required=True),
                end_date=date_value(params.get("end_date"), "end_date", required=True),
            )

        day = date_value(params.get("week_of"), "week_of")
        if day is None:
            squad = container.squads_repo.get_by_id(squad_id)
            day = local_today(utc_now(), squad.timezone if squad else container.default_timezone)
        return service.score_week(squad_id, day)

    @app.route("/api/squads/<int:squad_id>/compliance", methods=["GET"], endpoint="squad_compliance")
    def compliance(squad_id: int):
        current_actor(container.users_repo)
        return ok(report_json(_report(squad_id, request.args)))

    @app.route("/api/squads/<int:squad_id>/compliance/scores", methods=["POST"], endpoint="squad_compliance_record")
    def record(squad_id: int):
        actor = current_actor(container.users_repo)
        service.ensure_can_record(actor, squad_id)
        report = _report(squad_id, json_body())
        return ok(score_json(service.record_score(actor, report)), 201, message="Compliance score recorded")
