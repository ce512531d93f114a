from __future__ import annotations

import logging
from datetime import UTC, date, datetime

from app.application.services.downtime_contract import CategoryRecord, DowntimeReportSubmission
from app.application.services.downtime_errors import ValidationFailed
from app.application.services.time_normalizer import STORAGE_FORMAT, extract_date, to_storage_datetime, to_storage_zone
from app.infrastructure.logging.json_formatter import log_event

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is None else value.astimezone(UTC)


def format_duration(start: datetime, end: datetime) -> str:
    # Elapsed time, so zone offsets changing inside the window do not count.
    total_minutes = int((_as_utc(end) - _as_utc(start)).total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}:00"


def split_categories(submission: DowntimeReportSubmission, *, downtime_id: str) -> list[CategoryRecord]:
    records: list[CategoryRecord] = []
    for category in submission.categories:
        window = submission.window_for(category)
        start = to_storage_datetime(window.start_time)
        end = to_storage_datetime(window.end_time)
        start_text = start.strftime(STORAGE_FORMAT) if start else to_storage_zone(window.start_time)
        end_text = end.strftime(STORAGE_FORMAT) if end else to_storage_zone(window.end_time)

        if start is None or end is None or _as_utc(start) >= _as_utc(end):
            message = f"Category {category} has end time before start time"
            log_event(
                logger,
                logging.WARNING,
                "category time validation failed",
                task="Validation",
                details=message,
                category=category,
                catStartDateTime=start_text,
                catEndDateTime=end_text,
            )
            raise ValidationFailed(message, invalid_time_range=True, category=category)

        records.append(
            CategoryRecord(
                downtime_id=downtime_id,
                category=category,
                issue_date=date.fromisoformat(extract_date(start_text)),
                start_date_time=start_text,
                end_date_time=end_text,
                duration=format_duration(start, end),
                issue_title=submission.issue_title,
                affected_channel=submission.affected_channel,
                affected_persona=submission.affected_persona,
                affected_mno=submission.resolved_mno,
                affected_portal=submission.affected_portal,
                affected_type=submission.affected_type,
                affected_service=submission.affected_service,
                impact_type=submission.impact_type,
                modality=submission.modality,
                reliability_impacted=submission.reliability_impacted,
                concern=submission.concern,
                reason=submission.reason,
                resolution=submission.resolution,
                service_desk_ticket_id=submission.ticket_id or None,
                system_unavailability=submission.system_unavailability,
                tracked_by=submission.tracked_by,
                service_desk_ticket_link=submission.ticket_link or None,
                remark=submission.remark or None,
            )
        )
        log_event(
            logger,
            logging.DEBUG,
            "category window resolved",
            task="Normalization",
            downtimeId=downtime_id,
            category=category,
            startDateTime=start_text,
            endDateTime=end_text,
            duration=records[-1].duration,
        )
    return records
