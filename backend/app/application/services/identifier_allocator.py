from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.services.downtime_errors import AllocationFailed
from app.core.config import settings
from app.domain.models.id_sequence import IdSequence
from app.infrastructure.logging.json_formatter import log_event

logger = logging.getLogger(__name__)

REPORT_SEQUENCE = "downtime_id"

REPORT_ID_DIGITS = 6
NOTIFICATION_ID_DIGITS = 4


class NotificationStream(StrEnum):
    ADMIN = "admin_notification"
    USER = "user_notification"


@dataclass(frozen=True)
class AllocatedId:
    value: int
    formatted: str


def _digits(value: int, width: int, *, sequence: str) -> str:
    if value >= 10**width:
        raise AllocationFailed(f"Counter {sequence} exhausted its {width}-digit range at {value}")
    return f"{value:0{width}d}"


def format_report_id(value: int) -> str:
    digits = _digits(value, REPORT_ID_DIGITS, sequence=REPORT_SEQUENCE)
    return f"{settings.report_id_prefix}{digits}{settings.id_suffix}"


def format_notification_id(stream: NotificationStream, value: int) -> str:
    prefix = (
        settings.admin_notification_prefix
        if stream == NotificationStream.ADMIN
        else settings.user_notification_prefix
    )
    return f"{prefix}{_digits(value, NOTIFICATION_ID_DIGITS, sequence=stream.value)}{settings.id_suffix}"


class IdentifierAllocator:
    def __init__(self, db: Session) -> None:
        self.db = db

    def next_report_id(self) -> AllocatedId:
        value = self._draw(REPORT_SEQUENCE)
        allocated = AllocatedId(value=value, formatted=format_report_id(value))
        log_event(logger, logging.DEBUG, "downtime id generated", task="IDGeneration", downtimeId=allocated.formatted)
        return allocated

    def next_notification_id(self, stream: NotificationStream) -> AllocatedId:
        value = self._draw(stream.value)
        allocated = AllocatedId(value=value, formatted=format_notification_id(stream, value))
        log_event(
            logger,
            logging.DEBUG,
            "notification id generated",
            task="IDGeneration",
            stream=stream.value,
            notificationId=allocated.formatted,
        )
        return allocated

    def _draw(self, name: str) -> int:
        stmt = (
            update(IdSequence)
            .where(IdSequence.name == name)
            .values(value=IdSequence.value + 1)
            .returning(IdSequence.value)
            .execution_options(synchronize_session=False)
        )
        try:
            value = self.db.execute(stmt).scalar_one_or_none()
            if value is None:
                self._seed(name)
                value = self.db.execute(stmt).scalar_one()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            log_event(logger, logging.ERROR, "id allocation failed", task="IDGeneration", sequence=name, error=str(exc))
            raise AllocationFailed(f"Error generating identifier for {name}: {exc}") from exc
        return int(value)

    def _seed(self, name: str) -> None:
        # Counters are normally seeded by migration; a concurrent seeder winning the insert is fine.
        try:
            self.db.add(IdSequence(name=name, value=0))
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
