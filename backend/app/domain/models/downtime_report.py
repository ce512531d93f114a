from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.base import Base


class DowntimeReport(Base):
    """One row per impacted category of a submitted downtime report.

    Rows sharing a ``downtime_id`` form one report; the descriptive columns are
    copied onto every row so each category can be queried on its own.
    """

    __tablename__ = "downtime_report_v2"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    downtime_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    issue_title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    affected_channel: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affected_persona: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affected_mno: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affected_portal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affected_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    affected_service: Mapped[str | None] = mapped_column(String(255), nullable=True)
    impact_type: Mapped[str] = mapped_column(String(32), nullable=False)
    modality: Mapped[str] = mapped_column(String(32), nullable=False)
    reliability_impacted: Mapped[str | None] = mapped_column(String(16), nullable=True)
    start_date_time: Mapped[str] = mapped_column(String(19), nullable=False)
    end_date_time: Mapped[str] = mapped_column(String(19), nullable=False)
    duration: Mapped[str] = mapped_column(String(16), nullable=False)
    concern: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    resolution: Mapped[str] = mapped_column(Text, nullable=False)
    service_desk_ticket_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    system_unavailability: Mapped[str] = mapped_column(String(128), nullable=False)
    tracked_by: Mapped[str] = mapped_column(String(128), nullable=False)
    service_desk_ticket_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
