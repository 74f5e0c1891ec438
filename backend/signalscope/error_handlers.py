"""
Signal Scope — Global Exception Handlers

Every error leaves the API with the same body:
``{error, status_code, detail, request_id}`` plus optional extras.
Loader and downloader errors carry their own status code; request
validation failures list the offending fields; anything else is logged
with its traceback and returned as a bare 500.
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

import structlog

from signalscope.errors import SignalScopeError

log = structlog.get_logger(__name__)


def error_response(request: Request, status_code: int, detail, **extra) -> JSONResponse:
    """JSON error body tagged with the request ID set by the logger middleware."""
    body = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "request_id": getattr(request.state, "request_id", None),
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def _field_errors(exc: RequestValidationError) -> list[dict]:
    # loc looks like ("query", "ticker")
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


async def handle_domain_error(request: Request, exc: SignalScopeError) -> JSONResponse:
    error_type = type(exc).__name__
    log.warning("domain_error", path=request.url.path, error_type=error_type, detail=exc.detail)
    return error_response(request, exc.status_code, exc.detail, error_type=error_type)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(request, exc.status_code, exc.detail)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _field_errors(exc)
    log.warning("validation_error", path=request.url.path, fields=[e["field"] for e in errors])
    return error_response(request, 422, "Validation error", errors=errors)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    return error_response(request, 500, "Internal server error")


_HANDLERS = (
    (SignalScopeError, handle_domain_error),
    (StarletteHTTPException, handle_http_error),
    (RequestValidationError, handle_validation_error),
    (Exception, handle_unexpected_error),
)


def register_error_handlers(app: FastAPI) -> None:
    """Attach every handler above to ``app``."""
    for exc_type, handler in _HANDLERS:
        app.add_exception_handler(exc_type, handler)
