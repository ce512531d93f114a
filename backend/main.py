import json
import logging
import logging.config
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.application.services.downtime_errors import DowntimeSubmissionError
from app.core.config import settings
from app.domain import models  # noqa: F401
from app.infrastructure.logging.json_formatter import log_event
from app.interfaces.api.router import api_router
from app.interfaces.http.middleware import (
    CallerContextMiddleware,
    MetricsMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)

LOGGING_CONFIG_PATH = Path(__file__).with_name("logging.json")

logger = logging.getLogger("app")


def configure_logging(config_path: Path = LOGGING_CONFIG_PATH) -> None:
    if config_path.exists():
        logging.config.dictConfig(json.loads(config_path.read_text(encoding="utf-8")))
    else:
        logging.basicConfig(level=logging.INFO)


def _error_payload(*, request: Request, error_code: str, message: str) -> dict:
    return {
        "error_code": error_code,
        "message": message,
        "trace_id": getattr(request.state, "request_id", None),
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(request=request, error_code=str(exc.status_code), message=detail),
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_payload(request=request, error_code="validation_error", message="Request validation failed"),
    )


async def downtime_error_handler(request: Request, exc: DowntimeSubmissionError) -> JSONResponse:
    # The submission pipeline turns its own failures into verdicts; this only catches ones raised outside it.
    log_event(logger, logging.ERROR, "downtime error escaped pipeline", task="SystemError", details=exc.message)
    content = {"success": False, "message": exc.message}
    content.update(_error_payload(request=request, error_code=exc.error_code, message=exc.message))
    return JSONResponse(status_code=exc.status_code, content=content)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception path=%s method=%s", request.url.path, request.method)
    return JSONResponse(
        status_code=500,
        content=_error_payload(request=request, error_code="internal_server_error", message="Internal server error"),
    )


def create_app() -> FastAPI:
    configure_logging()

    application = FastAPI(title=settings.app_name)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(CallerContextMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(MetricsMiddleware)

    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    application.add_exception_handler(DowntimeSubmissionError, downtime_error_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    application.include_router(api_router)
    log_event(
        logger,
        logging.INFO,
        "application configured",
        task="Startup",
        env=settings.app_env,
        storageZone=settings.storage_timezone,
        alertsConfigured=settings.alerts_configured,
    )
    return application


app = create_app()
