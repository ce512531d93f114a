from contextvars import ContextVar
from dataclasses import dataclass

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
_caller_ctx: ContextVar["CallerContext | None"] = ContextVar("caller_context", default=None)


@dataclass(frozen=True)
class CallerContext:
    """Identity and provenance attached by the upstream session layer."""

    soc_portal_id: str = "Unknown"
    eid: str = "Unknown"
    session_id: str = "Unknown"
    ip_address: str = "Unknown IP"
    user_agent: str = "Unknown User-Agent"

    def as_log_meta(self) -> dict:
        return {
            "eid": self.eid,
            "sid": self.session_id,
            "userId": self.soc_portal_id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
        }


def set_request_id(request_id: str | None) -> object:
    return _request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def reset_request_id(token: object) -> None:
    _request_id_ctx.reset(token)


def set_caller_context(caller: CallerContext | None) -> object:
    return _caller_ctx.set(caller)


def get_caller_context() -> CallerContext | None:
    return _caller_ctx.get()


def reset_caller_context(token: object) -> None:
    _caller_ctx.reset(token)
