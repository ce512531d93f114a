from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.services.alert_dispatcher import (
    AlertScheduler,
    build_failure_alert,
    build_success_alert,
    get_alert_dispatcher,
)
from app.application.services.audit_service import REPORT_DOWNTIME_ACTION
from app.application.services.category_splitter import format_duration, split_categories
from app.application.services.downtime_contract import (
    AuditEntry,
    DowntimeReportSubmission,
    NotificationRecord,
    SubmissionState,
)
from app.application.services.downtime_errors import DowntimeSubmissionError, ValidationFailed
from app.application.services.downtime_writer import TransactionalWriter
from app.application.services.identifier_allocator import IdentifierAllocator, NotificationStream
from app.application.services.report_validator import validate_submission
from app.application.services.time_normalizer import parse_timestamp
from app.infrastructure.logging.context import CallerContext
from app.infrastructure.logging.json_formatter import log_event
from app.infrastructure.observability.metrics import record_submission_outcome

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Downtime reported successfully"
INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    status_code: int
    message: str
    states: tuple[SubmissionState, ...]
    downtime_id: str | None = None
    categories_count: int = 0
    error: str | None = None

    @property
    def state(self) -> SubmissionState:
        return self.states[-1]

    def to_response(self) -> dict:
        if self.success:
            return {
                "success": True,
                "message": self.message,
                "downtimeId": self.downtime_id,
                "categoriesCount": self.categories_count,
            }
        payload = {"success": False, "message": self.message}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class DowntimeSubmissionService:
    """Runs one downtime report through validate, allocate, split, write and alert.

    States move ``Received -> Validated -> Allocated -> Normalized`` and end in
    ``Committed -> Alerted``, ``RolledBack -> Alerted`` or ``Rejected``. The
    verdict returned to the caller depends only on whether the write committed;
    the alert is handed to ``schedule_alert`` after the transaction is closed.
    """

    def __init__(self, db: Session, *, schedule_alert: AlertScheduler | None = None) -> None:
        self.db = db
        self.allocator = IdentifierAllocator(db)
        self.writer = TransactionalWriter(db)
        self.schedule_alert = schedule_alert or get_alert_dispatcher().notify_blocking

    def submit(self, submission: DowntimeReportSubmission, *, caller: CallerContext) -> SubmissionResult:
        states = [SubmissionState.RECEIVED]
        log_event(
            logger,
            logging.INFO,
            "downtime report submission initiated",
            task="ReportDowntime",
            categories=len(submission.categories),
            categoryTimes=len(submission.category_times),
            **caller.as_log_meta(),
        )

        try:
            validate_submission(submission)
        except ValidationFailed as exc:
            states.append(SubmissionState.REJECTED)
            record_submission_outcome("rejected")
            return SubmissionResult(
                success=False,
                status_code=exc.status_code,
                message=exc.message,
                states=tuple(states),
            )
        states.append(SubmissionState.VALIDATED)

        downtime_id: str | None = None
        try:
            downtime_id = self.allocator.next_report_id().formatted
            admin_id = self.allocator.next_notification_id(NotificationStream.ADMIN)
            user_id = self.allocator.next_notification_id(NotificationStream.USER)
            states.append(SubmissionState.ALLOCATED)

            records = split_categories(submission, downtime_id=downtime_id)
            states.append(SubmissionState.NORMALIZED)

            ack = self.writer.commit(
                downtime_id=downtime_id,
                category_records=records,
                notifications=[
                    NotificationRecord(
                        stream=NotificationStream.ADMIN,
                        serial=admin_id.value,
                        notification_id=admin_id.formatted,
                        title=f"New Downtime Reported: {submission.issue_title} By {submission.tracked_by}",
                    ),
                    NotificationRecord(
                        stream=NotificationStream.USER,
                        serial=user_id.value,
                        notification_id=user_id.formatted,
                        title=f"Added New Downtime Report: {submission.issue_title}",
                        soc_portal_id=caller.soc_portal_id,
                    ),
                ],
                audit_entry=AuditEntry(
                    soc_portal_id=caller.soc_portal_id,
                    action=REPORT_DOWNTIME_ACTION,
                    description=(
                        f"Reported downtime for {submission.issue_title} ({len(records)} categories)"
                    ),
                    eid=caller.eid,
                    sid=caller.session_id,
                    ip_address=caller.ip_address,
                    device_info=caller.user_agent,
                ),
            )
        except Exception as exc:
            states.append(SubmissionState.ROLLED_BACK)
            if not isinstance(exc, DowntimeSubmissionError):
                self._discard_open_transaction()
            return self._fail(submission, exc, caller=caller, states=states, downtime_id=downtime_id)

        states.append(SubmissionState.COMMITTED)
        record_submission_outcome("committed")

        duration = format_duration(parse_timestamp(submission.start_time), parse_timestamp(submission.end_time))
        alert = build_success_alert(submission, downtime_id=ack.downtime_id, duration=duration, caller=caller)
        self._dispatch_alert(alert.render())
        states.append(SubmissionState.ALERTED)

        log_event(
            logger,
            logging.INFO,
            "downtime reported successfully",
            task="ReportSuccess",
            details=f"Report ID: {ack.downtime_id} | Categories: {ack.categories_count}",
            downtimeId=ack.downtime_id,
            notificationIds=list(ack.notification_ids),
            **caller.as_log_meta(),
        )
        return SubmissionResult(
            success=True,
            status_code=200,
            message=SUCCESS_MESSAGE,
            states=tuple(states),
            downtime_id=ack.downtime_id,
            categories_count=ack.categories_count,
        )

    def _fail(
        self,
        submission: DowntimeReportSubmission,
        exc: Exception,
        *,
        caller: CallerContext,
        states: list[SubmissionState],
        downtime_id: str | None,
    ) -> SubmissionResult:
        record_submission_outcome("rolled_back")
        alert = build_failure_alert(submission, error=exc, caller=caller, downtime_id=downtime_id)
        self._dispatch_alert(alert.render())
        states.append(SubmissionState.ALERTED)

        log_event(
            logger,
            logging.ERROR,
            "downtime report failed",
            task="SystemError",
            details=f"Error: {exc}",
            errorType=exc.__class__.__name__,
            downtimeId=downtime_id,
            **caller.as_log_meta(),
        )

        if isinstance(exc, ValidationFailed):
            return SubmissionResult(
                success=False,
                status_code=exc.status_code,
                message=exc.message,
                states=tuple(states),
            )
        return SubmissionResult(
            success=False,
            status_code=500,
            message=INTERNAL_ERROR_MESSAGE,
            states=tuple(states),
            error=str(exc),
        )

    def _discard_open_transaction(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as rollback_exc:
            log_event(
                logger,
                logging.CRITICAL,
                "rollback failed",
                task="DatabaseError",
                details=f"Rollback error: {rollback_exc}",
            )

    def _dispatch_alert(self, message: str) -> None:
        try:
            self.schedule_alert(message)
        except Exception as exc:
            log_event(logger, logging.ERROR, "alert scheduling failed", task="Alert", details=str(exc))
