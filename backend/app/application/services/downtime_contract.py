from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.application.services.identifier_allocator import NotificationStream

MULTI_VALUE_SEPARATOR = ","
MNO_REQUIRED_CHANNELS = frozenset({"USSD", "SMS"})
DEFAULT_MNO = "ALL"


class CategoryWindow(BaseModel):
    """Optional per-category override of the report window.

    Either end left unset falls back to the report's own ``startTime``/``endTime``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")


class DowntimeReportSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    issue_title: str | None = Field(default=None, alias="issueTitle")
    affected_service: str | None = Field(
        default=None,
        alias="affectedService",
        validation_alias=AliasChoices("affectedService", "impactedService", "affected_service"),
    )
    impact_type: str | None = Field(default=None, alias="impactType")
    modality: str | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    concern: str | None = None
    reason: str | None = None
    resolution: str | None = None
    system_unavailability: str | None = Field(default=None, alias="systemUnavailability")
    tracked_by: str | None = Field(default=None, alias="trackedBy")
    categories: list[str] = Field(default_factory=list)
    category_times: dict[str, CategoryWindow] = Field(default_factory=dict, alias="categoryTimes")
    ticket_id: str | None = Field(default=None, alias="ticketId")
    ticket_link: str | None = Field(default=None, alias="ticketLink")
    reliability_impacted: str | None = Field(default=None, alias="reliabilityImpacted")
    affected_channel: str | None = Field(default=None, alias="affectedChannel")
    affected_persona: str | None = Field(default=None, alias="affectedPersona")
    affected_mno: str | None = Field(default=None, alias="affectedMNO")
    affected_portal: str | None = Field(default=None, alias="affectedPortal")
    affected_type: str | None = Field(default=None, alias="affectedType")
    remark: str | None = None

    @field_validator(
        "affected_service",
        "affected_channel",
        "affected_persona",
        "affected_mno",
        "affected_portal",
        "affected_type",
        mode="before",
    )
    @classmethod
    def _join_multi_values(cls, value):
        if isinstance(value, (list, tuple)):
            return MULTI_VALUE_SEPARATOR.join(str(item).strip() for item in value if str(item).strip()) or None
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _categories_list(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            cleaned = []
            for item in value:
                if isinstance(item, str):
                    item = item.strip()
                    if not item:
                        continue
                cleaned.append(item)
            return cleaned
        return value

    @field_validator("category_times", mode="before")
    @classmethod
    def _category_times_dict(cls, value):
        if value is None:
            return {}
        return value

    @property
    def channels(self) -> list[str]:
        if not self.affected_channel:
            return []
        return [item.strip().upper() for item in self.affected_channel.split(MULTI_VALUE_SEPARATOR) if item.strip()]

    @property
    def requires_mno(self) -> bool:
        return any(channel in MNO_REQUIRED_CHANNELS for channel in self.channels)

    @property
    def resolved_mno(self) -> str | None:
        if not self.requires_mno:
            return None
        return self.affected_mno or DEFAULT_MNO

    def window_for(self, category: str) -> CategoryWindow:
        override = self.category_times.get(category) or CategoryWindow()
        return CategoryWindow(
            start_time=override.start_time or self.start_time,
            end_time=override.end_time or self.end_time,
        )


class SubmissionState(StrEnum):
    RECEIVED = "Received"
    VALIDATED = "Validated"
    REJECTED = "Rejected"
    ALLOCATED = "Allocated"
    NORMALIZED = "Normalized"
    COMMITTED = "Committed"
    ROLLED_BACK = "RolledBack"
    ALERTED = "Alerted"


@dataclass(frozen=True)
class CategoryRecord:
    downtime_id: str
    category: str
    issue_date: date
    start_date_time: str
    end_date_time: str
    duration: str
    issue_title: str
    affected_channel: str | None
    affected_persona: str | None
    affected_mno: str | None
    affected_portal: str | None
    affected_type: str | None
    affected_service: str | None
    impact_type: str
    modality: str
    reliability_impacted: str | None
    concern: str
    reason: str
    resolution: str
    service_desk_ticket_id: str | None
    system_unavailability: str
    tracked_by: str
    service_desk_ticket_link: str | None
    remark: str | None


@dataclass(frozen=True)
class NotificationRecord:
    stream: NotificationStream
    serial: int
    notification_id: str
    title: str
    soc_portal_id: str | None = None


@dataclass(frozen=True)
class AuditEntry:
    soc_portal_id: str
    action: str
    description: str
    eid: str
    sid: str
    ip_address: str
    device_info: str


@dataclass(frozen=True)
class CommitAck:
    downtime_id: str
    categories_count: int
    notification_ids: tuple[str, ...]
    committed_at: datetime
