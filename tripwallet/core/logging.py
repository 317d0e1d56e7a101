"""Structured logging for the service.

Every record is written to stdout as one JSON object. Records emitted while a
request is being handled carry that request's id, taken from the incoming
``x-request-id`` header or generated, and echoed back on the response.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "x-request-id"
# Extra attributes copied from ``logger.info(..., extra={...})`` into the payload.
_EXTRA_FIELDS = ("method", "path", "status_code", "duration_ms")

access_logger = logging.getLogger("tripwallet.request")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = request_id_ctx.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def init_logging(debug: bool = False) -> None:
    """Install the JSON stdout handler on the root logger (idempotent)."""
    root = logging.getLogger()
    # Only replace our own handler; pytest's capture handlers stay in place.
    for existing in [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]:
        root.removeHandler(existing)
    level = logging.DEBUG if debug else logging.INFO
    root.setLevel(level)

    stream = logging.StreamHandler(sys.stdout)
    stream.setLevel(level)
    stream.addFilter(RequestIdFilter())
    stream.setFormatter(JsonFormatter())
    root.addHandler(stream)
    # httpx INFO lines include the full URL, api_key query parameter included.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def request_context_middleware(request, call_next):  # type: ignore
    rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = request_id_ctx.set(rid)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    finally:
        access_logger.info(
            "%s %s -> %d",
            request.method,
            request.url.path,
            status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        request_id_ctx.reset(token)
