from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.services.audit_service import log_audit_event
from app.application.services.downtime_contract import AuditEntry, CategoryRecord, CommitAck, NotificationRecord
from app.application.services.downtime_errors import PersistenceFailed
from app.application.services.identifier_allocator import NotificationStream
from app.application.services.time_normalizer import storage_now
from app.domain.models.downtime_report import DowntimeReport
from app.domain.models.notification import AdminNotification, NotificationStatus, UserNotification
from app.infrastructure.logging.json_formatter import log_event

logger = logging.getLogger(__name__)


class TransactionalWriter:
    def __init__(self, db: Session) -> None:
        self.db = db

    def commit(
        self,
        *,
        downtime_id: str,
        category_records: Sequence[CategoryRecord],
        notifications: Sequence[NotificationRecord],
        audit_entry: AuditEntry,
    ) -> CommitAck:
        streams = sorted(notification.stream.value for notification in notifications)
        if streams != sorted(stream.value for stream in NotificationStream):
            raise ValueError("exactly one admin and one user notification are required")

        now = storage_now()
        # Any failure below discards every row added for this report.
        try:
            for record in category_records:
                self.db.add(DowntimeReport(**asdict(record), created_at=now, updated_at=now))
                self.db.flush()
                log_event(
                    logger,
                    logging.DEBUG,
                    "category record inserted",
                    task="Database",
                    downtimeId=downtime_id,
                    category=record.category,
                )

            for notification in notifications:
                self.db.add(self._notification_row(notification))
            self.db.flush()
            log_event(
                logger,
                logging.INFO,
                "notifications created",
                task="Notification",
                downtimeId=downtime_id,
                notificationIds=[notification.notification_id for notification in notifications],
            )

            log_audit_event(self.db, entry=audit_entry)
            self.db.flush()

            self.db.commit()
        except SQLAlchemyError as exc:
            self._rollback(downtime_id)
            raise PersistenceFailed(f"Failed to persist downtime report {downtime_id}: {exc}", cause=exc) from exc
        except Exception:
            self._rollback(downtime_id)
            raise

        log_event(
            logger,
            logging.INFO,
            "transaction committed",
            task="Database",
            downtimeId=downtime_id,
            categories=[record.category for record in category_records],
        )
        return CommitAck(
            downtime_id=downtime_id,
            categories_count=len(category_records),
            notification_ids=tuple(notification.notification_id for notification in notifications),
            committed_at=now,
        )

    def _notification_row(self, notification: NotificationRecord) -> AdminNotification | UserNotification:
        if notification.stream == NotificationStream.ADMIN:
            return AdminNotification(
                serial=notification.serial,
                notification_id=notification.notification_id,
                title=notification.title,
                status=NotificationStatus.UNREAD.value,
            )
        return UserNotification(
            serial=notification.serial,
            notification_id=notification.notification_id,
            title=notification.title,
            status=NotificationStatus.UNREAD.value,
            soc_portal_id=notification.soc_portal_id or "Unknown",
        )

    def _rollback(self, downtime_id: str) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as rollback_exc:
            log_event(
                logger,
                logging.CRITICAL,
                "rollback failed",
                task="DatabaseError",
                downtimeId=downtime_id,
                details=f"Rollback error: {rollback_exc}",
            )
            return
        log_event(
            logger,
            logging.WARNING,
            "transaction rolled back",
            task="Database",
            downtimeId=downtime_id,
        )
