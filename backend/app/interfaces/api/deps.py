from fastapi import Request

from app.infrastructure.logging.context import CallerContext
from app.interfaces.http.middleware import caller_from_request


def get_caller_context(request: Request) -> CallerContext:
    caller = getattr(request.state, "caller", None)
    if caller is None:
        caller = caller_from_request(request)
    return caller
