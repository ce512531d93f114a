import json
import re

import httpx
import pytest
from sqlalchemy import func, select

from app.application.services.alert_dispatcher import TelegramAlertDispatcher
from app.domain.models.downtime_report import DowntimeReport
from app.domain.models.notification import AdminNotification, UserNotification
from app.domain.models.user_activity_log import UserActivityLog
from app.interfaces.api import report_downtime

REPORT_ID_PATTERN = re.compile(r"^DT\d{6}SOCP$")


class AlertRecorder:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.messages: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.messages.append(json.loads(request.content)["text"])
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})


@pytest.fixture
def alerts(monkeypatch):
    recorder = AlertRecorder()
    dispatcher = TelegramAlertDispatcher(
        bot_token="123:abc",
        chat_id="-1001",
        base_url="https://telegram.test",
        transport=httpx.MockTransport(recorder),
    )
    monkeypatch.setattr(report_downtime, "get_alert_dispatcher", lambda: dispatcher)
    return recorder


def _count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_single_category_report_is_normalized_and_stored(client, db_session, report_payload, caller_headers, alerts):
    response = client.post("/user_dashboard/report_downtime", json=report_payload, headers=caller_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Downtime reported successfully"
    assert body["categoriesCount"] == 1
    assert REPORT_ID_PATTERN.match(body["downtimeId"])

    row = db_session.execute(select(DowntimeReport)).scalar_one()
    assert row.downtime_id == body["downtimeId"]
    assert row.category == "Network"
    assert row.start_date_time == "2024-01-01 16:00:00"
    assert row.end_date_time == "2024-01-01 17:00:00"
    assert row.duration == "01:00:00"
    assert row.issue_date.isoformat() == "2024-01-01"
    assert row.affected_service == "SEND MONEY"

    assert len(alerts.messages) == 1
    assert body["downtimeId"] in alerts.messages[0]
    assert "Successful" in alerts.messages[0]


def test_multi_category_report_writes_rows_notifications_and_audit(
    client, db_session, report_payload, caller_headers, alerts
):
    report_payload["categories"] = ["Network", "CASHOUT", "BILL PAYMENT"]
    report_payload["categoryTimes"] = {"CASHOUT": {"startTime": "2024-01-01T10:15:00Z"}}

    response = client.post("/user_dashboard/report_downtime", json=report_payload, headers=caller_headers)

    assert response.status_code == 200
    downtime_id = response.json()["downtimeId"]
    rows = db_session.execute(select(DowntimeReport).order_by(DowntimeReport.id)).scalars().all()
    assert [row.category for row in rows] == ["Network", "CASHOUT", "BILL PAYMENT"]
    assert {row.downtime_id for row in rows} == {downtime_id}
    assert [row.duration for row in rows] == ["01:00:00", "00:45:00", "01:00:00"]

    admin = db_session.execute(select(AdminNotification)).scalar_one()
    user = db_session.execute(select(UserNotification)).scalar_one()
    assert admin.notification_id == "AN0001SOCP"
    assert admin.title == "New Downtime Reported: Gateway Timeout By SOC Shift A"
    assert user.notification_id == "UN0001SOCP"
    assert user.soc_portal_id == "SOC-0042"

    audit = db_session.execute(select(UserActivityLog)).scalar_one()
    assert audit.action == "REPORT_DOWNTIME"
    assert audit.description == "Reported downtime for Gateway Timeout (3 categories)"
    assert audit.eid == "E1042"
    assert audit.sid == "sess-abc"
    assert audit.ip_address == "10.0.0.7"
    assert audit.device_info == "pytest-agent"


def test_end_before_start_is_rejected_without_writes(client, db_session, report_payload, alerts):
    report_payload["startTime"], report_payload["endTime"] = report_payload["endTime"], report_payload["startTime"]

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "End time must be after start time"}
    assert _count(db_session, DowntimeReport) == 0
    assert _count(db_session, AdminNotification) == 0
    assert alerts.messages == []


def test_missing_categories_are_rejected_before_allocation(client, db_session, report_payload, alerts):
    report_payload["categories"] = []

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 400
    assert "categories" in response.json()["message"]
    follow_up = client.post("/user_dashboard/report_downtime", json={**report_payload, "categories": ["Network"]})
    assert follow_up.json()["downtimeId"] == "DT000001SOCP"


def test_inverted_category_window_fails_whole_report(client, db_session, report_payload, alerts):
    report_payload["categories"] = ["Network", "CASHOUT"]
    report_payload["categoryTimes"] = {"CASHOUT": {"endTime": "2024-01-01T09:00:00Z"}}

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Category CASHOUT has end time before start time"
    assert _count(db_session, DowntimeReport) == 0
    assert _count(db_session, UserActivityLog) == 0
    assert len(alerts.messages) == 1
    assert "Failed: Category CASHOUT" in alerts.messages[0]
    assert "Downtime ID          : DT000001SOCP" in alerts.messages[0]


def test_identical_payload_twice_creates_two_reports(client, db_session, report_payload, alerts):
    first = client.post("/user_dashboard/report_downtime", json=report_payload)
    second = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert first.status_code == second.status_code == 200
    first_id = first.json()["downtimeId"]
    second_id = second.json()["downtimeId"]
    assert first_id != second_id
    assert int(second_id[2:8]) > int(first_id[2:8])
    assert _count(db_session, DowntimeReport) == 2
    assert _count(db_session, AdminNotification) == 2


def test_write_failure_rolls_back_and_returns_500(client, db_session, report_payload, alerts):
    db_session.add(AdminNotification(serial=1, notification_id="AN0001SOCP", title="older", status="Unread"))
    db_session.commit()
    db_session.expunge_all()

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Internal server error"
    assert body["error"]
    assert _count(db_session, DowntimeReport) == 0
    assert _count(db_session, UserNotification) == 0
    assert _count(db_session, UserActivityLog) == 0
    assert len(alerts.messages) == 1
    assert "Downtime ID          : DT000001SOCP" in alerts.messages[0]
    assert "Failed: Failed to persist downtime report DT000001SOCP" in alerts.messages[0]


def test_alert_failure_does_not_change_success(client, db_session, report_payload, alerts):
    alerts.status_code = 502

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert _count(db_session, DowntimeReport) == 1
    assert len(alerts.messages) == 1


def test_unparseable_body_is_invalid_form_data(client, db_session):
    response = client.post(
        "/user_dashboard/report_downtime",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid form data"
    assert _count(db_session, DowntimeReport) == 0


def test_wrongly_typed_body_is_invalid_form_data(client, report_payload):
    report_payload["categories"] = "Network"

    response = client.post("/user_dashboard/report_downtime", json=report_payload)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid form data"


def test_response_carries_request_id(client, report_payload, alerts):
    response = client.post(
        "/user_dashboard/report_downtime",
        json=report_payload,
        headers={"X-Request-ID": "req-123"},
    )
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
