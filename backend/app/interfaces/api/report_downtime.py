import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.application.services.alert_dispatcher import get_alert_dispatcher
from app.application.services.downtime_contract import DowntimeReportSubmission
from app.application.services.downtime_query_service import get_report_rows, get_top_issues, serialize_report_row
from app.application.services.downtime_submission_service import DowntimeSubmissionService
from app.application.services.predefined_issues import current_month_year, list_predefined_issues
from app.infrastructure.db.session import get_db
from app.infrastructure.logging.context import CallerContext
from app.infrastructure.logging.json_formatter import log_event
from app.interfaces.api.deps import get_caller_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user_dashboard", tags=["downtime"])


def _invalid_form_data(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Invalid form data", "error": error},
    )


@router.post("/report_downtime")
async def report_downtime(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_caller_context),
) -> JSONResponse:
    try:
        body = await request.json()
    except (ValueError, UnicodeDecodeError) as exc:
        log_event(logger, logging.WARNING, "unparseable downtime report body", task="ReportDowntime", details=str(exc))
        return _invalid_form_data(str(exc))

    try:
        submission = DowntimeReportSubmission.model_validate(body)
    except ValidationError as exc:
        log_event(
            logger,
            logging.WARNING,
            "downtime report body rejected",
            task="ReportDowntime",
            details=json.dumps(exc.errors(include_url=False), default=str),
        )
        return _invalid_form_data(str(exc))

    dispatcher = get_alert_dispatcher()
    service = DowntimeSubmissionService(
        db,
        schedule_alert=lambda message: background_tasks.add_task(dispatcher.notify, message),
    )
    result = await run_in_threadpool(service.submit, submission, caller=caller)
    return JSONResponse(status_code=result.status_code, content=result.to_response())


@router.get("/report_downtime")
def top_issues(db: Session = Depends(get_db)) -> JSONResponse:
    try:
        issues = get_top_issues(db)
    except SQLAlchemyError as exc:
        log_event(logger, logging.ERROR, "failed to fetch top issues", task="TopIssues", details=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Failed to fetch top issues"},
        )
    return JSONResponse(content={"success": True, "topIssues": issues})


@router.get("/report_downtime/pre_defined_issue")
def predefined_issues() -> dict:
    return {
        "success": True,
        "issues": list_predefined_issues(),
        "currentMonthYear": current_month_year(),
    }


@router.get("/downtime_log/{downtime_id}")
def downtime_log(downtime_id: str, db: Session = Depends(get_db)) -> JSONResponse:
    rows = get_report_rows(db, downtime_id=downtime_id)
    if not rows:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": f"Downtime report {downtime_id} not found"},
        )
    return JSONResponse(
        content={
            "success": True,
            "downtimeId": downtime_id,
            "categoriesCount": len(rows),
            "records": [serialize_report_row(row) for row in rows],
        }
    )
