from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from app.application.services.downtime_contract import DowntimeReportSubmission
from app.application.services.downtime_errors import AlertDeliveryFailed
from app.application.services.time_normalizer import (
    STORAGE_FORMAT,
    format_display_date,
    format_display_datetime,
    storage_now,
)
from app.core.config import settings
from app.infrastructure.logging.context import CallerContext
from app.infrastructure.logging.json_formatter import log_event
from app.infrastructure.observability.metrics import record_alert_failure

logger = logging.getLogger(__name__)

NOT_APPLICABLE = "N/A"
SUCCESS_STATUS = "Successful"

AlertScheduler = Callable[[str], None]


@dataclass(frozen=True)
class DowntimeAlert:
    downtime_id: str
    issue_title: str
    issue_date: str
    start_time: str
    end_time: str
    duration: str
    categories: list[str]
    status: str
    caller: CallerContext
    details: dict[str, str] = field(default_factory=dict)
    reported_at: str = ""

    def render(self) -> str:
        d = self.details
        categories = ", ".join(self.categories) if self.categories else NOT_APPLICABLE
        lines = [
            "⚠️ SOC PORTAL | DOWNTIME REPORTED ⚠️",
            "━━━━━━━━━━━━━━━━━━━━━━━━━━━━",
            f"🆔 Downtime ID          : {self.downtime_id}",
            f"📛 Issue Title         : {self.issue_title}",
            f"🌐 Affected Channel    : {d.get('affectedChannel', NOT_APPLICABLE)}",
            f"📡 Affected Service    : {d.get('affectedService', NOT_APPLICABLE)}",
            f"👥 Affected Persona    : {d.get('affectedPersona', NOT_APPLICABLE)}",
            f"📱 Affected MNO        : {d.get('affectedMno', NOT_APPLICABLE)}",
            f"🌍 Affected Portal     : {d.get('affectedPortal', NOT_APPLICABLE)}",
            f"📌 Affected Type       : {d.get('affectedType', NOT_APPLICABLE)}",
            f"📅 Issue Date          : {self.issue_date}",
            f"⏰ Start Time          : {self.start_time}",
            f"⏱️ End Time            : {self.end_time}",
            f"⏳ Duration            : {self.duration}",
            f"📦 Categories          : {categories}",
            f"🔍 Impact Type         : {d.get('impactType', NOT_APPLICABLE)}",
            f"📱 Modality            : {d.get('modality', NOT_APPLICABLE)}",
            f"⚙️ Reliability Impacted: {d.get('reliabilityImpacted', NOT_APPLICABLE)}",
            f"⚠️ Concern             : {d.get('concern', NOT_APPLICABLE)}",
            f"📋 Reason              : {d.get('reason', NOT_APPLICABLE)}",
            f"✅ Resolution          : {d.get('resolution', NOT_APPLICABLE)}",
            f"🔌 System Unavailability: {d.get('systemUnavailability', NOT_APPLICABLE)}",
            f"👤 Tracked By          : {d.get('trackedBy', NOT_APPLICABLE)}",
            f"🎫 Ticket ID           : {d.get('ticketId', NOT_APPLICABLE)}",
            f"🔗 Ticket Link         : {d.get('ticketLink', NOT_APPLICABLE)}",
            f"📝 Remark              : {d.get('remark', NOT_APPLICABLE)}",
            f"👤 Reported By         : {self.caller.soc_portal_id}",
            f"🌐 IP Address          : {self.caller.ip_address}",
            f"🖥️ Device Info         : {self.caller.user_agent}",
            f"🔖 EID                 : {self.caller.eid}",
            f"🕒 Report Time         : {self.reported_at or storage_now().strftime(STORAGE_FORMAT)}",
            f"✅ Status              : {self.status}",
        ]
        return "\n".join(lines)


def _details(submission: DowntimeReportSubmission | None) -> dict[str, str]:
    if submission is None:
        return {}
    values = {
        "affectedChannel": submission.affected_channel,
        "affectedService": submission.affected_service,
        "affectedPersona": submission.affected_persona,
        "affectedMno": submission.resolved_mno,
        "affectedPortal": submission.affected_portal,
        "affectedType": submission.affected_type,
        "impactType": submission.impact_type,
        "modality": submission.modality,
        "reliabilityImpacted": submission.reliability_impacted,
        "concern": submission.concern,
        "reason": submission.reason,
        "resolution": submission.resolution,
        "systemUnavailability": submission.system_unavailability,
        "trackedBy": submission.tracked_by,
        "ticketId": submission.ticket_id,
        "ticketLink": submission.ticket_link,
        "remark": submission.remark,
    }
    return {key: value or NOT_APPLICABLE for key, value in values.items()}


def build_success_alert(
    submission: DowntimeReportSubmission,
    *,
    downtime_id: str,
    duration: str,
    caller: CallerContext,
) -> DowntimeAlert:
    return DowntimeAlert(
        downtime_id=downtime_id,
        issue_title=submission.issue_title or NOT_APPLICABLE,
        issue_date=format_display_date(submission.start_time),
        start_time=format_display_datetime(submission.start_time),
        end_time=format_display_datetime(submission.end_time),
        duration=duration,
        categories=list(submission.categories),
        status=SUCCESS_STATUS,
        caller=caller,
        details=_details(submission),
    )


def build_failure_alert(
    submission: DowntimeReportSubmission | None,
    *,
    error: BaseException,
    caller: CallerContext,
    downtime_id: str | None = None,
) -> DowntimeAlert:
    # downtime_id is None when allocation never completed.
    return DowntimeAlert(
        downtime_id=downtime_id or NOT_APPLICABLE,
        issue_title=(submission.issue_title if submission else None) or "No title",
        issue_date=format_display_date(submission.start_time) if submission else NOT_APPLICABLE,
        start_time=format_display_datetime(submission.start_time) if submission else NOT_APPLICABLE,
        end_time=format_display_datetime(submission.end_time) if submission else NOT_APPLICABLE,
        duration=NOT_APPLICABLE,
        categories=list(submission.categories) if submission else [],
        status=f"Failed: {error}",
        caller=caller,
        details=_details(submission),
    )


class TelegramAlertDispatcher:
    def __init__(
        self,
        *,
        bot_token: str | None = None,
        chat_id: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.chat_id = chat_id if chat_id is not None else settings.telegram_chat_id
        self.base_url = (base_url or settings.telegram_api_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.alert_timeout_seconds
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def notify(self, message: str) -> None:
        if not self.configured:
            log_event(logger, logging.INFO, "alert channel not configured; alert skipped", task="Alert")
            return
        try:
            await self._send(message)
        except AlertDeliveryFailed as exc:
            record_alert_failure()
            log_event(logger, logging.ERROR, "alert delivery failed", task="Alert", details=exc.message)
        except Exception as exc:
            record_alert_failure()
            log_event(logger, logging.ERROR, "alert delivery failed", task="Alert", details=str(exc))
        else:
            log_event(logger, logging.INFO, "alert delivered", task="Alert")

    async def _send(self, message: str) -> None:
        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(url, json={"chat_id": self.chat_id, "text": message})
        except httpx.HTTPError as exc:
            raise AlertDeliveryFailed(f"Telegram request error: {exc.__class__.__name__}") from exc
        if response.status_code >= 400:
            raise AlertDeliveryFailed(f"Telegram sendMessage failed: {response.status_code}")

    def notify_blocking(self, message: str) -> None:
        asyncio.run(self.notify(message))


_default_dispatcher: TelegramAlertDispatcher | None = None


def get_alert_dispatcher() -> TelegramAlertDispatcher:
    global _default_dispatcher
    if _default_dispatcher is None:
        _default_dispatcher = TelegramAlertDispatcher()
    return _default_dispatcher
