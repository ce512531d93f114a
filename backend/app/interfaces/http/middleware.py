from time import perf_counter
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.logging.context import (
    CallerContext,
    reset_caller_context,
    reset_request_id,
    set_caller_context,
    set_request_id,
)
from app.infrastructure.observability.metrics import record_request


UNKNOWN = "Unknown"
UNKNOWN_IP = "Unknown IP"
UNKNOWN_USER_AGENT = "Unknown User-Agent"


def _first_forwarded_address(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client is not None and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def caller_from_request(request: Request) -> CallerContext:
    return CallerContext(
        soc_portal_id=request.headers.get("X-SOC-Portal-ID") or UNKNOWN,
        eid=request.headers.get("X-EID") or UNKNOWN,
        session_id=request.headers.get("X-Session-ID") or UNKNOWN,
        ip_address=_first_forwarded_address(request),
        user_agent=request.headers.get("User-Agent") or UNKNOWN_USER_AGENT,
    )


class CallerContextMiddleware(BaseHTTPMiddleware):
    """Lifts the identity headers set by the session layer into request state and logs."""

    async def dispatch(self, request: Request, call_next):
        caller = caller_from_request(request)
        request.state.caller = caller
        caller_token = set_caller_context(caller)
        try:
            return await call_next(request)
        finally:
            reset_caller_context(caller_token)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started_at = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            record_request(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_seconds=perf_counter() - started_at,
            )


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        request_token = set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            reset_request_id(request_token)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response
