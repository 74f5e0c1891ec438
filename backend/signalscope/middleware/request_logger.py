"""
Signal Scope — Request Logger Middleware

One structlog line when an analysis request arrives and one when it
finishes. The request ID (taken from ``X-Request-ID`` or generated) is
bound to the log context, stored on ``request.state`` for the error
handlers, and echoed back in the response header.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

log = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 2000.0

# Health checks and browser noise
_QUIET_PATHS = frozenset({"/health", "/favicon.ico"})


def _request_fields(request: Request) -> dict:
    fields = {"method": request.method, "path": request.url.path}
    ticker = request.query_params.get("ticker")
    if ticker:
        fields["ticker"] = ticker.upper()
    size = request.headers.get("content-length")
    if size:
        fields["upload_bytes"] = int(size) if size.isdigit() else size
    return fields


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID and log its outcome and latency."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        quiet = request.url.path in _QUIET_PATHS
        fields = _request_fields(request)
        start = time.perf_counter()

        if not quiet:
            structlog.contextvars.clear_contextvars()
            structlog.contextvars.bind_contextvars(request_id=request_id)
            log.info("request.start", **fields)

        try:
            response = await call_next(request)
        except Exception:
            log.error("request.error", latency_ms=_elapsed_ms(start), **fields)
            raise

        if not quiet:
            latency_ms = _elapsed_ms(start)
            log.info(
                "request.complete",
                status=response.status_code,
                latency_ms=latency_ms,
                slow=latency_ms > SLOW_REQUEST_MS,
                **fields,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
