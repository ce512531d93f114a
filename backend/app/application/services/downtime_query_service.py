from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.domain.models.downtime_report import DowntimeReport

TOP_ISSUES_LIMIT = 5


def get_top_issues(db: Session, *, limit: int = TOP_ISSUES_LIMIT) -> list[dict]:
    incident_count = func.count(func.distinct(DowntimeReport.downtime_id)).label("incident_count")
    rows = db.execute(
        select(DowntimeReport.issue_title, incident_count)
        .group_by(DowntimeReport.issue_title)
        .order_by(incident_count.desc(), DowntimeReport.issue_title.asc())
        .limit(limit)
    ).all()
    return [{"issue_title": row.issue_title, "incident_count": int(row.incident_count)} for row in rows]


def get_report_rows(db: Session, *, downtime_id: str) -> list[DowntimeReport]:
    return (
        db.execute(
            select(DowntimeReport)
            .where(DowntimeReport.downtime_id == downtime_id)
            .order_by(DowntimeReport.id.asc())
        )
        .scalars()
        .all()
    )


def serialize_report_row(row: DowntimeReport) -> dict:
    return {
        "downtime_id": row.downtime_id,
        "issue_date": row.issue_date.isoformat(),
        "issue_title": row.issue_title,
        "category": row.category,
        "affected_channel": row.affected_channel,
        "affected_persona": row.affected_persona,
        "affected_mno": row.affected_mno,
        "affected_portal": row.affected_portal,
        "affected_type": row.affected_type,
        "affected_service": row.affected_service,
        "impact_type": row.impact_type,
        "modality": row.modality,
        "reliability_impacted": row.reliability_impacted,
        "start_date_time": row.start_date_time,
        "end_date_time": row.end_date_time,
        "duration": row.duration,
        "concern": row.concern,
        "reason": row.reason,
        "resolution": row.resolution,
        "service_desk_ticket_id": row.service_desk_ticket_id,
        "system_unavailability": row.system_unavailability,
        "tracked_by": row.tracked_by,
        "service_desk_ticket_link": row.service_desk_ticket_link,
        "remark": row.remark,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }
