"""
Observability helpers.

Every HTTP request gets a correlation ID (taken from ``X-Correlation-ID`` or
generated). It is echoed back on the response, held in a context variable
for the duration of the request, and stamped onto every log
record, so a location accepted deep in the store can be traced back to the
request that carried it.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from truckspot.app.core.config import settings

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

logger = logging.getLogger("truckspot.requests")


def current_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to records ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = correlation_id_var.get() or "-"
        return True


def configure_logging(level: str = None) -> None:
    """Set up root logging once for the process and tag records with correlation IDs."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Correlation IDs, timing headers and one log record per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = correlation_id_var.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"

        truck_id = request.path_params.get("truck_id")
        line = "%s %s -> %d (%.1fms)"
        args = (request.method, request.url.path, response.status_code, elapsed_ms)
        extra = {
            "correlation_id": correlation_id,
            "status_code": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "truck_id": truck_id,
            "client_ip": request.client.host if request.client else None,
        }

        if response.status_code >= 500:
            logger.error(line, *args, extra=extra)
        elif response.status_code >= 400:
            logger.warning(line, *args, extra=extra)
        else:
            logger.info(line, *args, extra=extra)

        return response
