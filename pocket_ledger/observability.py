"""
Structured logging and request correlation.

Every log line is a single JSON object so it can be shipped to any log
aggregator without parsing rules. A request id is attached to each HTTP
request (taken from the X-Request-Id header when the caller sends one)
and stored in a ContextVar, so log lines written deep inside a use case
or a recalculation cascade still carry the id of the request that
triggered them.

Attach structured fields to a record with:
    logger.info("movement.created", extra={"extra_fields": {"movement_id": str(id)}})
"""

import json
import logging
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Awaitable, Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response

from pocket_ledger.config import settings


request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.APP_NAME,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get() or None,
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps({k: v for k, v in payload.items() if v is not None}, default=str)


def setup_logging() -> None:
    """Install a single stream handler on the root logger."""
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    root_logger.addHandler(handler)


def install_request_logging(app: FastAPI) -> None:
    """Register the request-id / access-log middleware."""

    @app.middleware("http")
    async def _request_logging_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        logger = logging.getLogger("http.access")
        started = time.perf_counter()

        request_id = request.headers.get("X-Request-Id") or f"req_{uuid4().hex[:12]}"
        token = request_id_var.set(request_id)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-Id"] = request_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info(
                "request.completed",
                extra={
                    "extra_fields": {
                        "http_method": request.method,
                        "endpoint": request.url.path,
                        "status_code": status_code,
                        "latency_ms": latency_ms,
                    }
                },
            )
            request_id_var.reset(token)
