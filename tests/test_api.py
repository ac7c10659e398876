from datetime import date, timedelta

import pytest

from squadops.main import create_app
from tests.fakes import ADMIN, LEAD, MEMBER, OTHER, OTHER_LEAD, fake_container


@pytest.fixture
def container():
    return fake_container()


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def login(client, user):
    with client.session_transaction() as sess:
        sess["user_id"] = user.user_id


def _future(days):
    return (date.today() + timedelta(days=days)).isoformat()


def _submit(client, **overrides):
    body = {
        "leave_type": "vacation",
        "start_date": _future(30),
        "end_date": _future(32),
        "reason": "Family trip",
        "squad_id": 1,
    }
    body.update(overrides)
    return client.post("/api/leave-requests", json=body)


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"


def test_requests_without_session_are_unauthenticated(client):
    res = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "office"})
    assert res.status_code == 401
    assert res.get_json()["error"] == "unauthenticated"


def test_check_in_then_duplicate_then_check_out(client):
    login(client, MEMBER)

    res = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "remote", "latitude": 52.5, "longitude": 13.4})
    assert res.status_code == 201
    record = res.get_json()["data"]
    assert record["is_open"] is True
    assert record["check_in_latitude"] == 52.5

    dup = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "remote"})
    assert dup.status_code == 409
    assert dup.get_json()["code"] == "already_checked_in"

    out = client.post("/api/attendance/check-out", json={"attendance_id": record["id"]})
    assert out.status_code == 200
    assert out.get_json()["data"]["is_open"] is False
    assert out.get_json()["data"]["total_hours"] == 0

    again = client.post("/api/attendance/check-out", json={"attendance_id": record["id"]})
    assert again.status_code == 409


def test_check_in_validation_and_membership(client):
    login(client, MEMBER)
    bad = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "beach"})
    assert bad.status_code == 422
    assert bad.get_json()["error"] == "validation_error"

    missing = client.post("/api/attendance/check-in", json={"work_mode": "office"})
    assert missing.status_code == 422

    foreign = client.post("/api/attendance/check-in", json={"squad_id": 2, "work_mode": "office"})
    assert foreign.status_code == 403

    unknown = client.post("/api/attendance/check-in", json={"squad_id": 99, "work_mode": "office"})
    assert unknown.status_code == 404


def test_presence_board(client):
    login(client, MEMBER)
    client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "office"})

    res = client.get("/api/squads/1/presence")

    data = res.get_json()["data"]
    assert data["summary"] == {"total": 3, "present": 1, "absent": 2}
    present = [e for e in data["presence_board"] if e["is_present"]]
    assert present[0]["user"]["id"] == MEMBER.user_id


def test_reports_are_limited_to_admins_and_leads(client):
    params = {"squad_id": 1, "start_date": "2025-03-01", "end_date": "2025-03-31"}

    login(client, MEMBER)
    assert client.get("/api/attendance/report", query_string=params).status_code == 403

    login(client, OTHER_LEAD)
    assert client.get("/api/attendance/report", query_string=params).status_code == 403

    login(client, LEAD)
    res = client.get("/api/attendance/report", query_string=params)
    assert res.status_code == 200
    assert res.get_json()["data"] == {"rows": [], "summary": []}


def test_export_csv_download(client):
    login(client, ADMIN)
    res = client.get(
        "/api/attendance/export",
        query_string={"squad_id": 1, "start_date": "2025-03-01", "end_date": "2025-03-31", "format": "csv"},
    )
    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert "attendance_1_20250301_20250331.csv" in res.headers["Content-Disposition"]


def test_export_rejects_unknown_format(client):
    login(client, ADMIN)
    res = client.get(
        "/api/attendance/export",
        query_string={"squad_id": 1, "start_date": "2025-03-01", "end_date": "2025-03-31", "format": "pdf"},
    )
    assert res.status_code == 422


def test_leave_submit_and_approve_flow(client):
    login(client, MEMBER)
    res = _submit(client)
    assert res.status_code == 201
    req = res.get_json()["data"]
    assert req["status"] == "pending"
    assert req["total_days"] == 3

    login(client, LEAD)
    queue = client.get("/api/leave-requests/pending-approvals").get_json()["data"]
    assert [r["id"] for r in queue] == [req["id"]]

    approved = client.post(f"/api/leave-requests/{req['id']}/approve", json={"comments": "Enjoy"})
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "approved"
    assert approved.get_json()["data"]["approved_by"] == LEAD.user_id

    again = client.post(f"/api/leave-requests/{req['id']}/reject", json={"rejection_reason": "late"})
    assert again.status_code == 409
    assert again.get_json()["code"] == "not_pending"

    login(client, MEMBER)
    shown = client.get(f"/api/leave-requests/{req['id']}").get_json()["data"]
    assert [a["status"] for a in shown["approvals"]] == ["approved"]
    assert shown["approvals"][0]["level"] == "squad_lead"


def test_leave_decisions_need_a_lead_of_the_squad(client):
    login(client, MEMBER)
    req = _submit(client).get_json()["data"]

    login(client, OTHER_LEAD)
    res = client.post(f"/api/leave-requests/{req['id']}/approve", json={})
    assert res.status_code == 403

    login(client, OTHER)
    assert client.get(f"/api/leave-requests/{req['id']}").status_code == 403


def test_reject_requires_reason(client):
    login(client, MEMBER)
    req = _submit(client).get_json()["data"]

    login(client, ADMIN)
    res = client.post(f"/api/leave-requests/{req['id']}/reject", json={})
    assert res.status_code == 422


def test_leave_with_end_before_start_is_rejected(client):
    login(client, MEMBER)
    res = _submit(client, start_date=_future(10), end_date=_future(5))
    assert res.status_code == 409
    assert res.get_json()["code"] == "invalid_range"


def test_cancel_and_amend(client):
    login(client, MEMBER)
    req = _submit(client).get_json()["data"]

    amended = client.patch(f"/api/leave-requests/{req['id']}", json={"end_date": _future(34)})
    assert amended.status_code == 200
    assert amended.get_json()["data"]["total_days"] == 5

    cancelled = client.delete(f"/api/leave-requests/{req['id']}")
    assert cancelled.status_code == 200
    assert cancelled.get_json()["data"]["status"] == "cancelled"

    assert client.delete(f"/api/leave-requests/{req['id']}").status_code == 409


def test_leave_calendar_requires_valid_month(client):
    login(client, MEMBER)
    assert client.get("/api/leave-requests/calendar", query_string={"squad_id": 1, "month": "March"}).status_code == 422

    res = client.get("/api/leave-requests/calendar", query_string={"squad_id": 1, "month": "2025-03"})
    assert res.status_code == 200
    assert res.get_json()["data"] == {"month": "2025-03", "leave_requests": []}


def test_unknown_leave_request_is_not_found(client):
    login(client, MEMBER)
    res = client.get("/api/leave-requests/999")
    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_compliance_report_and_record(client):
    login(client, MEMBER)
    res = client.get("/api/squads/1/compliance", query_string={"week_of": "2025-03-12"})
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["period_start"] == "2025-03-10"
    assert data["period_end"] == "2025-03-16"
    assert data["score"] == 100.0

    assert client.post("/api/squads/1/compliance/scores", json={"week_of": "2025-03-12"}).status_code == 403

    login(client, LEAD)
    saved = client.post("/api/squads/1/compliance/scores", json={"start_date": "2025-03-01", "end_date": "2025-03-31"})
    assert saved.status_code == 201
    assert saved.get_json()["data"]["period_type"] == "weekly"
    assert saved.get_json()["data"]["id"] == 1


def test_compliance_sprint_without_active_sprint_is_not_found(client):
    login(client, LEAD)
    res = client.get("/api/squads/1/compliance", query_string={"period": "sprint"})
    assert res.status_code == 404


def test_unexpected_errors_become_500(client, container):
    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    container.leave_service.list_pending_approvals = boom
    login(client, LEAD)
    res = client.get("/api/leave-requests/pending-approvals")
    assert res.status_code == 500
    assert res.get_json()["code"] == "server_error"


@pytest.mark.parametrize("reason", [5, ["sick"], {"text": "x"}])
def test_leave_reason_must_be_text(client, reason):
    login(client, MEMBER)
    res = _submit(client, reason=reason)
    assert res.status_code == 422
    assert "reason" in res.get_json()["details"]


def test_check_in_notes_must_be_text(client):
    login(client, MEMBER)
    res = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "office", "notes": 7})
    assert res.status_code == 422
    assert "notes" in res.get_json()["details"]


def test_attendance_edit_notes_must_be_text(client):
    login(client, MEMBER)
    record = client.post("/api/attendance/check-in", json={"squad_id": 1, "work_mode": "office"}).get_json()["data"]

    login(client, LEAD)
    res = client.patch(f"/api/attendance/{record['id']}", json={"notes": ["late"]})
    assert res.status_code == 422


def test_decision_text_fields_must_be_text(client):
    login(client, MEMBER)
    req = _submit(client).get_json()["data"]

    login(client, LEAD)
    approve = client.post(f"/api/leave-requests/{req['id']}/approve", json={"comments": 42})
    assert approve.status_code == 422
    assert "comments" in approve.get_json()["details"]

    reject = client.post(f"/api/leave-requests/{req['id']}/reject", json={"rejection_reason": 42})
    assert reject.status_code == 422
    assert "rejection_reason" in reject.get_json()["details"]

    # Nothing was decided.
    assert client.get(f"/api/leave-requests/{req['id']}").get_json()["data"]["status"] == "pending"


def test_recording_scores_checks_permission_before_scoring(client, container):
    calls = []
    score_sprint = container.compliance_service.score_sprint
    container.compliance_service.score_sprint = lambda *a, **kw: calls.append(a) or score_sprint(*a, **kw)

    login(client, MEMBER)
    res = client.post("/api/squads/1/compliance/scores", json={"period": "sprint"})

    assert res.status_code == 403
    assert calls == []
