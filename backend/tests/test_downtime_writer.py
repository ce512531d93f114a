from datetime import date
import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.application.services.downtime_contract import AuditEntry, CategoryRecord, NotificationRecord
from app.application.services.downtime_errors import PersistenceFailed
from app.application.services.downtime_writer import TransactionalWriter
from app.application.services.identifier_allocator import NotificationStream
from app.domain.models.downtime_report import DowntimeReport
from app.domain.models.notification import AdminNotification, UserNotification
from app.domain.models.user_activity_log import UserActivityLog


def _record(category: str) -> CategoryRecord:
    return CategoryRecord(
        downtime_id="DT000001SOCP",
        category=category,
        issue_date=date(2024, 1, 1),
        start_date_time="2024-01-01 16:00:00",
        end_date_time="2024-01-01 17:00:00",
        duration="01:00:00",
        issue_title="Gateway Timeout",
        affected_channel="APP",
        affected_persona=None,
        affected_mno=None,
        affected_portal=None,
        affected_type=None,
        affected_service="SEND MONEY",
        impact_type="FULL",
        modality="UNPLANNED",
        reliability_impacted="YES",
        concern="INTERNAL",
        reason="Upstream gateway stopped responding",
        resolution="Gateway pods restarted",
        service_desk_ticket_id=None,
        system_unavailability="SYSTEM",
        tracked_by="SOC Shift A",
        service_desk_ticket_link=None,
        remark=None,
    )


NOTIFICATIONS = [
    NotificationRecord(
        stream=NotificationStream.ADMIN,
        serial=1,
        notification_id="AN0001SOCP",
        title="New Downtime Reported: Gateway Timeout By SOC Shift A",
    ),
    NotificationRecord(
        stream=NotificationStream.USER,
        serial=1,
        notification_id="UN0001SOCP",
        title="Added New Downtime Report: Gateway Timeout",
        soc_portal_id="SOC-0042",
    ),
]

AUDIT = AuditEntry(
    soc_portal_id="SOC-0042",
    action="REPORT_DOWNTIME",
    description="Reported downtime for Gateway Timeout (2 categories)",
    eid="E1042",
    sid="sess-abc",
    ip_address="10.0.0.7",
    device_info="pytest-agent",
)


def _count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_commit_writes_all_rows_together(db_session):
    ack = TransactionalWriter(db_session).commit(
        downtime_id="DT000001SOCP",
        category_records=[_record("Network"), _record("CASHOUT")],
        notifications=NOTIFICATIONS,
        audit_entry=AUDIT,
    )

    assert ack.downtime_id == "DT000001SOCP"
    assert ack.categories_count == 2
    assert ack.notification_ids == ("AN0001SOCP", "UN0001SOCP")
    assert _count(db_session, DowntimeReport) == 2
    assert _count(db_session, AdminNotification) == 1
    assert _count(db_session, UserNotification) == 1
    assert _count(db_session, UserActivityLog) == 1
    user_row = db_session.execute(select(UserNotification)).scalar_one()
    assert user_row.soc_portal_id == "SOC-0042"
    assert user_row.status == "Unread"


def test_duplicate_notification_rolls_back_everything(db_session):
    db_session.add(AdminNotification(serial=1, notification_id="AN0001SOCP", title="older", status="Unread"))
    db_session.commit()
    db_session.expunge_all()

    with pytest.raises(PersistenceFailed) as exc_info:
        TransactionalWriter(db_session).commit(
            downtime_id="DT000001SOCP",
            category_records=[_record("Network")],
            notifications=NOTIFICATIONS,
            audit_entry=AUDIT,
        )

    assert isinstance(exc_info.value.cause, IntegrityError)
    assert _count(db_session, DowntimeReport) == 0
    assert _count(db_session, UserNotification) == 0
    assert _count(db_session, UserActivityLog) == 0
    assert _count(db_session, AdminNotification) == 1


def test_notifications_must_cover_both_streams(db_session):
    with pytest.raises(ValueError):
        TransactionalWriter(db_session).commit(
            downtime_id="DT000001SOCP",
            category_records=[_record("Network")],
            notifications=NOTIFICATIONS[:1],
            audit_entry=AUDIT,
        )
    assert _count(db_session, DowntimeReport) == 0


def test_rollback_failure_is_logged_as_critical(caplog):
    session = MagicMock()
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))
    session.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("connection gone"))

    with caplog.at_level(logging.WARNING), pytest.raises(PersistenceFailed):
        TransactionalWriter(session).commit(
            downtime_id="DT000009SOCP",
            category_records=[_record("Network")],
            notifications=NOTIFICATIONS,
            audit_entry=AUDIT,
        )

    critical = [record for record in caplog.records if record.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert critical[0].task == "DatabaseError"
    assert critical[0].meta["downtimeId"] == "DT000009SOCP"
    session.commit.assert_not_called()
