from time import perf_counter

from fastapi import APIRouter, Response, status
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from app.application.services.alert_dispatcher import get_alert_dispatcher
from app.application.services.identifier_allocator import REPORT_SEQUENCE, NotificationStream
from app.domain.models.id_sequence import IdSequence
from app.infrastructure.db.session import SessionLocal
from app.infrastructure.observability.metrics import metrics_response

router = APIRouter()

EXPECTED_SEQUENCES = frozenset({REPORT_SEQUENCE, *(stream.value for stream in NotificationStream)})


def _probe_database() -> dict:
    probe = {"database": "down", "db_latency_ms": None, "id_sequences": "unknown"}
    try:
        started_at = perf_counter()
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            probe["db_latency_ms"] = round((perf_counter() - started_at) * 1000, 2)
            probe["database"] = "up"
            seeded = set(db.execute(select(IdSequence.name)).scalars())
    except SQLAlchemyError:
        return probe
    # Missing counters are seeded lazily, so they only degrade the report.
    probe["id_sequences"] = "seeded" if EXPECTED_SEQUENCES <= seeded else "lazy"
    return probe


@router.get("/health", status_code=status.HTTP_200_OK)
def health_check() -> dict:
    services = {"api": "up", **_probe_database(), "alerts_configured": get_alert_dispatcher().configured}
    return {
        "status": "ok" if services["database"] == "up" else "degraded",
        "services": services,
    }


@router.get("/ready", status_code=status.HTTP_200_OK)
def readiness_check(response: Response) -> dict:
    payload = health_check()
    if payload["services"]["database"] != "up":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "services": payload["services"]}
    return {"status": "ready", "services": payload["services"]}


@router.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_response()
