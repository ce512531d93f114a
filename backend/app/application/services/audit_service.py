from sqlalchemy.orm import Session

from app.application.services.downtime_contract import AuditEntry
from app.domain.models.user_activity_log import UserActivityLog

REPORT_DOWNTIME_ACTION = "REPORT_DOWNTIME"


def log_audit_event(db: Session, *, entry: AuditEntry) -> None:
    db.add(
        UserActivityLog(
            soc_portal_id=entry.soc_portal_id,
            action=entry.action,
            description=entry.description,
            eid=entry.eid,
            sid=entry.sid,
            ip_address=entry.ip_address,
            device_info=entry.device_info,
        )
    )
