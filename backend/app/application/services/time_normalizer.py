from __future__ import annotations

import logging
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.infrastructure.logging.json_formatter import log_event

logger = logging.getLogger(__name__)

STORAGE_FORMAT = "%Y-%m-%d %H:%M:%S"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
DISPLAY_DATETIME_FORMAT = "%d/%m/%Y, %H:%M"


def storage_zone() -> ZoneInfo:
    return ZoneInfo(settings.storage_timezone)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime; naive input is read as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_storage_datetime(value: str | datetime | None) -> datetime | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone(storage_zone()).replace(microsecond=0)


def to_storage_zone(value: str | datetime | None) -> str | None:
    # Unparseable input is returned unchanged.
    if value is None:
        return None
    converted = to_storage_datetime(value)
    if converted is None:
        log_event(
            logger,
            logging.WARNING,
            "timestamp normalization failed",
            task="DataQuality",
            value=str(value),
            storageZone=settings.storage_timezone,
        )
        return value if isinstance(value, str) else str(value)
    return converted.strftime(STORAGE_FORMAT)


def extract_date(normalized: str) -> str:
    return normalized[:10]


def format_display_date(value: str | datetime | None) -> str:
    converted = to_storage_datetime(value)
    if converted is None:
        return "N/A"
    return converted.strftime(DISPLAY_DATE_FORMAT)


def format_display_datetime(value: str | datetime | None) -> str:
    converted = to_storage_datetime(value)
    if converted is None:
        return "N/A"
    return converted.strftime(DISPLAY_DATETIME_FORMAT)


def storage_now() -> datetime:
    return datetime.now(storage_zone()).replace(microsecond=0)
