from __future__ import annotations

import logging

from app.application.services.downtime_contract import DowntimeReportSubmission
from app.application.services.downtime_errors import ValidationFailed
from app.application.services.time_normalizer import parse_timestamp
from app.infrastructure.logging.json_formatter import log_event

logger = logging.getLogger(__name__)

# (attribute, client-facing field name), in the order they are reported back.
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("issue_title", "issueTitle"),
    ("impact_type", "impactType"),
    ("modality", "modality"),
    ("start_time", "startTime"),
    ("end_time", "endTime"),
    ("concern", "concern"),
    ("reason", "reason"),
    ("resolution", "resolution"),
    ("system_unavailability", "systemUnavailability"),
    ("tracked_by", "trackedBy"),
)

TIME_ORDER_MESSAGE = "End time must be after start time"


def find_missing_fields(submission: DowntimeReportSubmission) -> list[str]:
    missing = [
        field_name
        for attribute, field_name in REQUIRED_FIELDS
        if not str(getattr(submission, attribute) or "").strip()
    ]
    if not submission.categories:
        missing.append("categories")
    if submission.requires_mno and not submission.affected_mno:
        missing.append("affectedMNO")
    return missing


def validate_submission(submission: DowntimeReportSubmission) -> None:
    missing = find_missing_fields(submission)
    if missing:
        error = ValidationFailed.for_missing_fields(missing)
        log_event(logger, logging.WARNING, "validation failed", task="Validation", details=error.message, missingFields=missing)
        raise error

    start = parse_timestamp(submission.start_time)
    end = parse_timestamp(submission.end_time)
    if start is None or end is None or start >= end:
        log_event(
            logger,
            logging.WARNING,
            "time validation failed",
            task="Validation",
            details=TIME_ORDER_MESSAGE,
            startTime=submission.start_time,
            endTime=submission.end_time,
        )
        raise ValidationFailed(TIME_ORDER_MESSAGE, invalid_time_range=True)
