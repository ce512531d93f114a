from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.base import Base


class NotificationStatus(StrEnum):
    UNREAD = "Unread"
    READ = "Read"


class AdminNotification(Base):
    __tablename__ = "admin_notification_details"
    __table_args__ = (
        CheckConstraint("status IN ('Unread', 'Read')", name="ck_admin_notification_status_values"),
    )

    serial: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    notification_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=NotificationStatus.UNREAD.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserNotification(Base):
    __tablename__ = "user_notification_details"
    __table_args__ = (
        CheckConstraint("status IN ('Unread', 'Read')", name="ck_user_notification_status_values"),
    )

    serial: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    notification_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=NotificationStatus.UNREAD.value)
    soc_portal_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
