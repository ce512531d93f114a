import json
import logging
from datetime import UTC, datetime

from app.infrastructure.logging.context import get_caller_context, get_request_id


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        caller = get_caller_context()
        payload = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "request_id": get_request_id(),
            "eid": caller.eid if caller else None,
            "sid": caller.session_id if caller else None,
            "user_id": caller.soc_portal_id if caller else None,
            "logger": record.name,
        }
        task = getattr(record, "task", None)
        if task:
            payload["task"] = task
        meta = getattr(record, "meta", None)
        if meta:
            payload["meta"] = meta
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def log_event(logger: logging.Logger, level: int, message: str, *, task: str, **meta) -> None:
    logger.log(level, message, extra={"task": task, "meta": meta})
