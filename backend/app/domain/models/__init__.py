from app.domain.models.downtime_report import DowntimeReport
from app.domain.models.id_sequence import IdSequence
from app.domain.models.notification import AdminNotification, NotificationStatus, UserNotification
from app.domain.models.user_activity_log import UserActivityLog

__all__ = [
    "AdminNotification",
    "DowntimeReport",
    "IdSequence",
    "NotificationStatus",
    "UserActivityLog",
    "UserNotification",
]
